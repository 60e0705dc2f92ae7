"""Dataclasses describing both sides of a Suwatte → Aidoku conversion."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Source side (Suwatte JSON backup)
# ---------------------------------------------------------------------------


class SourceShape(str, Enum):
    """Which of the two Suwatte backup layouts a document uses.

    ``RICH`` backups carry a ``storedContents`` array with one record per
    title.  ``LEGACY`` backups have no such array; content records are embedded
    in ``contentLinks`` and categories are declared in ``collections``.
    """

    RICH = "rich"
    LEGACY = "legacy"


@dataclass
class LibraryEntry:
    id: str
    last_updated: Any = None
    date_added: Any = None
    last_opened: Any = None
    collections: List[str] = field(default_factory=list)


@dataclass
class StoredContent:
    id: str
    source_id: str = ""
    title: Optional[str] = None
    summary: Optional[str] = None
    cover: Optional[str] = None
    creators: List[str] = field(default_factory=list)
    is_nsfw: bool = False
    status: int = 0


@dataclass
class StoredChapter:
    id: str
    content_id: str
    source_id: str = ""
    volume: Optional[float] = None
    number: Optional[float] = None
    language: Optional[str] = None
    title: Optional[str] = None
    date: Any = None
    index: Optional[int] = None


@dataclass
class ChapterReference:
    content_id: str
    chapter_id: str
    source_id: Optional[str] = None


@dataclass
class ProgressMarker:
    chapter: Optional[ChapterReference]
    last_page_read: int = 0
    total_page_count: int = 0
    date_read: Any = None


@dataclass
class ContentLink:
    id: str
    content_id: str
    source_id: Optional[str] = None
    content: Optional[StoredContent] = None


@dataclass
class Collection:
    id: str
    name: str


@dataclass
class SuwatteBackup:
    """Parsed Suwatte backup.  Read-only input to the mappers."""

    shape: SourceShape
    library: List[LibraryEntry] = field(default_factory=list)
    stored_contents: List[StoredContent] = field(default_factory=list)
    chapters: List[StoredChapter] = field(default_factory=list)
    progress_markers: List[ProgressMarker] = field(default_factory=list)
    content_links: List[ContentLink] = field(default_factory=list)
    collections: List[Collection] = field(default_factory=list)
    date: Any = None
    app_version: Optional[str] = None
    notes: List[str] = field(default_factory=list)

    def content_records(self) -> List[StoredContent]:
        """Return the content records for this backup's shape."""

        if self.shape is SourceShape.RICH:
            return list(self.stored_contents)
        return [link.content for link in self.content_links if link.content is not None]


# ---------------------------------------------------------------------------
# Target side (Aidoku property-list backup)
# ---------------------------------------------------------------------------


def _drop_none(payload: Dict[str, Any]) -> Dict[str, Any]:
    # Property lists have no null; absent optionals are left out.
    return {key: value for key, value in payload.items() if value is not None}


@dataclass
class Library:
    manga_id: str
    source_id: str
    categories: List[str]
    last_updated: int
    date_added: int
    last_opened: int

    def to_plist(self) -> Dict[str, Any]:
        return {
            "mangaId": self.manga_id,
            "lastUpdated": self.last_updated,
            "categories": list(self.categories),
            "dateAdded": self.date_added,
            "sourceId": self.source_id,
            "lastOpened": self.last_opened,
        }


@dataclass
class Manga:
    id: str
    source_id: str
    title: Optional[str]
    desc: Optional[str]
    cover: Optional[str]
    author: str
    nsfw: int
    status: int
    last_update: int
    tags: List[str] = field(default_factory=list)
    url: str = ""
    viewer: int = 0

    def to_plist(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "lastUpdate": self.last_update,
                "author": self.author,
                "url": self.url,
                "nsfw": self.nsfw,
                "tags": list(self.tags),
                "title": self.title,
                "sourceId": self.source_id,
                "desc": self.desc,
                "cover": self.cover,
                "viewer": self.viewer,
                "status": self.status,
            }
        )


@dataclass
class Chapter:
    id: str
    manga_id: str
    source_id: str
    volume: Optional[float]
    chapter: Optional[float]
    lang: str
    title: str
    date_uploaded: int
    source_order: int = 0
    scanlator: str = ""

    def to_plist(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "volume": self.volume,
                "mangaId": self.manga_id,
                "lang": self.lang,
                "id": self.id,
                "scanlator": self.scanlator,
                "title": self.title,
                "sourceId": self.source_id,
                "dateUploaded": self.date_uploaded,
                "chapter": self.chapter,
                "sourceOrder": self.source_order,
            }
        )


@dataclass
class History:
    manga_id: str
    chapter_id: str
    source_id: str
    progress: int
    total: int
    completed: bool
    date_read: int

    def to_plist(self) -> Dict[str, Any]:
        return {
            "progress": self.progress,
            "mangaId": self.manga_id,
            "chapterId": self.chapter_id,
            "completed": self.completed,
            "sourceId": self.source_id,
            "dateRead": self.date_read,
            "total": self.total,
        }


@dataclass
class AidokuBackup:
    """The assembled Aidoku document, ready for binary encoding."""

    library: List[Library]
    manga: List[Manga]
    chapters: List[Chapter]
    history: List[History]
    sources: List[str]
    categories: List[str]
    date: int
    version: str

    def to_plist(self) -> Dict[str, Any]:
        return {
            "library": [entry.to_plist() for entry in self.library],
            "history": [entry.to_plist() for entry in self.history],
            "manga": [entry.to_plist() for entry in self.manga],
            "chapters": [entry.to_plist() for entry in self.chapters],
            "sources": list(self.sources),
            "date": self.date,
            "version": self.version,
            "categories": list(self.categories),
        }
