# core/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env
load_dotenv()


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip().rstrip("/") for item in raw.split(",") if item.strip()]


# ---- BUNDLED DATA ----
BUNDLED_DATA_FOLDER = os.getenv("SEEK_BUNDLED_DATA_FOLDER", "SeekData")
DATA_ROOT = Path(os.getenv(
    "SEEK_DATA_ROOT",
    os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data", BUNDLED_DATA_FOLDER),
))

# ---- DISK CACHE ----
APP_SUPPORT_DIR = Path(os.getenv(
    "SEEK_CACHE_ROOT",
    os.path.join(os.path.expanduser("~"), ".local", "share", "seek"),
))
CACHE_NAMESPACE = os.getenv("SEEK_CACHE_NAMESPACE", "SeekCache")

# ---- REMOTE ----
REMOTE_BASE_URLS = _env_list("SEEK_REMOTE_BASE_URLS", [
    "https://cdn.jsdelivr.net/gh/seek-texts/seek-texts@main/data",
    "https://raw.githubusercontent.com/seek-texts/seek-texts/main/data",
])
INDEX_PATH = os.getenv("SEEK_INDEX_PATH", "index.json")
CHAPTER_PATH_TEMPLATE = os.getenv("SEEK_CHAPTER_PATH_TEMPLATE", "{scriptureId}/{bookId}/{chapter}.json")

# bundle_only | bundle_preferred | remote_preferred
DATASET_MODE = os.getenv("SEEK_DATASET_MODE", "bundle_preferred")

REQUEST_TIMEOUT = float(os.getenv("SEEK_REQUEST_TIMEOUT", "30"))
MAX_RETRIES = int(os.getenv("SEEK_MAX_RETRIES", "2"))

# ---- PREFETCH ----
PREFETCH_INTERVAL_HOURS = float(os.getenv("SEEK_PREFETCH_INTERVAL_HOURS", "12"))
PROBE_TIMEOUT = float(os.getenv("SEEK_PROBE_TIMEOUT", "2"))
