# api/services/content/models.py
"""
Dataclasses for catalog metadata, resolved chapters and engine reports.

Catalog types round-trip through the JSON wire format used by the bundled
`index.json`, the remote index and the disk cache snapshot (camelCase keys).
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Book:
    id: str
    name: str
    chapter_count: int

    @classmethod
    def from_dict(cls, data: dict) -> "Book":
        return cls(
            id=data["id"],
            name=data["name"],
            chapter_count=int(data["chapterCount"]),
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "chapterCount": self.chapter_count}


@dataclass
class Scripture:
    id: str
    name: str
    books: list[Book]
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Scripture":
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description"),
            books=[Book.from_dict(b) for b in data["books"]],
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "books": [b.to_dict() for b in self.books],
        }


@dataclass
class Tradition:
    id: str
    name: str
    icon: str
    scriptures: list[str]

    @classmethod
    def from_dict(cls, data: dict) -> "Tradition":
        return cls(
            id=data["id"],
            name=data["name"],
            icon=data["icon"],
            scriptures=list(data["scriptures"]),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "scriptures": list(self.scriptures),
        }


@dataclass
class Catalog:
    """
    Tradition -> scripture -> book metadata.

    Attributes:
        version: Dataset version string
        traditions: Ordered traditions as published
        scriptures: Scripture id -> Scripture
    """
    version: str
    traditions: list[Tradition]
    scriptures: dict[str, Scripture]

    @classmethod
    def from_dict(cls, data: dict) -> "Catalog":
        return cls(
            version=str(data["version"]),
            traditions=[Tradition.from_dict(t) for t in data["traditions"]],
            scriptures={
                key: Scripture.from_dict(value)
                for key, value in data["scriptures"].items()
            },
        )

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "traditions": [t.to_dict() for t in self.traditions],
            "scriptures": {key: s.to_dict() for key, s in self.scriptures.items()},
        }


@dataclass(frozen=True)
class Verse:
    id: str
    number: int
    text: str

    def to_dict(self) -> dict:
        return {"id": self.id, "number": self.number, "text": self.text}


@dataclass
class Chapter:
    scripture_id: str
    book_id: str
    chapter: int
    verses: list[Verse]

    def to_dict(self) -> dict:
        return {
            "scriptureId": self.scripture_id,
            "bookId": self.book_id,
            "chapter": self.chapter,
            "verses": [v.to_dict() for v in self.verses],
        }


@dataclass
class PrefetchResult:
    attempted_chapters: int = 0
    succeeded_chapters: int = 0
    failed_chapters: int = 0

    def to_dict(self) -> dict:
        return {
            "attempted": self.attempted_chapters,
            "succeeded": self.succeeded_chapters,
            "failed": self.failed_chapters,
        }


@dataclass
class ScriptureStatus:
    id: str
    name: str
    total_books: int
    total_chapters: int
    sample_chapter_success: bool
    sample_chapter_reference: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "total_books": self.total_books,
            "total_chapters": self.total_chapters,
            "sample_chapter_success": self.sample_chapter_success,
            "sample_chapter_reference": self.sample_chapter_reference,
        }


@dataclass
class DataStatusReport:
    """Diagnostics snapshot consumed by operational tooling."""
    has_bundle_index: bool
    has_cache_index: bool
    has_remote_index: bool
    source_summary: str
    scripture_statuses: list[ScriptureStatus] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "has_bundle_index": self.has_bundle_index,
            "has_cache_index": self.has_cache_index,
            "has_remote_index": self.has_remote_index,
            "source_summary": self.source_summary,
            "scriptures": [s.to_dict() for s in self.scripture_statuses],
        }
