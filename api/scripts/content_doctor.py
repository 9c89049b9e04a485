#!/usr/bin/env python3
"""
Content engine diagnostics and maintenance.

Checks the bundled data, reports per-scripture health, runs a prefetch
and purges or measures the on-disk cache. Run from the api directory.

Usage:
    python -m scripts.content_doctor --verify
    python -m scripts.content_doctor --report
    python -m scripts.content_doctor --prefetch [--force]
    python -m scripts.content_doctor --purge chapters
    python -m scripts.content_doctor --size
"""

import argparse
import logging
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.content import ContentService


def print_report(service: ContentService) -> int:
    report = service.data_status_report()
    print(f"Bundle index: {'ok' if report.has_bundle_index else 'missing'}")
    print(f"Cache index:  {'ok' if report.has_cache_index else 'missing'}")
    print(f"Remote index: {'ok' if report.has_remote_index else 'unreachable'}")
    print(f"Source:       {report.source_summary}")
    print("-" * 60)

    failures = 0
    for status in report.scripture_statuses:
        mark = "✓" if status.sample_chapter_success else "✗"
        print(f"  [{mark}] {status.id:16} {status.name}")
        print(f"      Books: {status.total_books}, Chapters: {status.total_chapters}, "
              f"Sample: {status.sample_chapter_reference}")
        if not status.sample_chapter_success:
            failures += 1
    return 0 if failures == 0 else 1


def main():
    parser = argparse.ArgumentParser(
        description="Diagnose and maintain Seek scripture content",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m scripts.content_doctor --verify          # Check bundled data
  python -m scripts.content_doctor --report          # Per-scripture health
  python -m scripts.content_doctor --prefetch        # Prefetch if eligible
  python -m scripts.content_doctor --prefetch --force
  python -m scripts.content_doctor --purge all
        """
    )
    parser.add_argument("--verify", action="store_true", help="Check bundled index and sample chapters")
    parser.add_argument("--report", action="store_true", help="Show data status report")
    parser.add_argument("--prefetch", action="store_true", help="Prefetch privileged scriptures")
    parser.add_argument("--force", action="store_true", help="With --prefetch: ignore throttle and device state")
    parser.add_argument("--purge", choices=["all", "chapters"], help="Purge cached content")
    parser.add_argument("--size", action="store_true", help="Show cache size")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    service = ContentService()
    print(f"Bundled data: {service.bundle.data_root}")
    print(f"Cache root:   {service.storage.cache_root}")
    print()

    if args.verify:
        results = service.verify_bundle()
        for name, ok in results.items():
            print(f"  {name}: {'ok' if ok else 'missing'}")
        return 0 if all(results.values()) else 1

    if args.report:
        return print_report(service)

    if args.prefetch:
        result = service.prefetch_now() if args.force else service.prefetch_if_eligible()
        if result is None:
            print("Prefetch skipped (throttled or device not on Wi-Fi/power)")
            return 0
        print(f"Prefetch complete: {result.succeeded_chapters}/{result.attempted_chapters} "
              f"chapters cached, {result.failed_chapters} failed.")
        return 0 if result.failed_chapters == 0 else 1

    if args.purge:
        if args.purge == "all":
            service.purge_all()
        else:
            service.purge_chapters()
        print(f"Purged {args.purge}; cache is now {service.size_in_bytes()} bytes")
        return 0

    if args.size:
        stats = service.cache_stats()
        print(f"Cache size: {stats['total_size_bytes']} bytes ({stats['total_size_mb']} MB)")
        print(f"Chapter files: {stats['chapter_files']}")
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
