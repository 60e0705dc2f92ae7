"""Entity mappers turning Suwatte records into their Aidoku counterparts.

Each ``map_*`` function converts a single source record and touches no state
other than the run's :class:`MappingContext`, through which it reports
recoverable problems.  :func:`map_backup` walks a whole document and is the
only place that knows about the two source layouts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .conversion_log import ConversionLog
from .dates import Clock, normalize, utc_now
from .errors import ConversionWarning, InvalidDateWarning, MissingReferenceWarning
from .models import (
    Chapter,
    History,
    Library,
    LibraryEntry,
    Manga,
    ProgressMarker,
    SourceShape,
    StoredChapter,
    StoredContent,
    SuwatteBackup,
)

DEFAULT_LANGUAGE = "en"
AUTHOR_SEPARATOR = ", "


@dataclass
class MappingContext:
    """Clock, log and lookup tables shared by the mappers of a single run."""

    log: ConversionLog = field(default_factory=ConversionLog)
    clock: Clock = utc_now
    collection_names: Mapping[str, str] = field(default_factory=dict)

    def timestamp(self, value: Any, label: str) -> int:
        def _report(raw: Any) -> None:
            self.log.warn(
                InvalidDateWarning(
                    f"Could not interpret {label} value {raw!r}; substituted a fallback timestamp"
                )
            )

        return normalize(value, now=self.clock, on_invalid=_report)


@dataclass
class MappedEntities:
    library: List[Library] = field(default_factory=list)
    manga: List[Manga] = field(default_factory=list)
    chapters: List[Chapter] = field(default_factory=list)
    history: List[History] = field(default_factory=list)
    # Extra aggregation inputs only legacy documents provide.
    link_source_ids: List[str] = field(default_factory=list)
    collection_names: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Single entity mappers
# ---------------------------------------------------------------------------


def map_library_entry(entry: LibraryEntry, content: StoredContent, ctx: MappingContext) -> Library:
    owner = f"library entry {entry.id}"
    return Library(
        manga_id=entry.id,
        source_id=content.source_id,
        categories=[ctx.collection_names.get(name, name) for name in entry.collections],
        last_updated=ctx.timestamp(entry.last_updated, f"lastUpdated of {owner}"),
        date_added=ctx.timestamp(entry.date_added, f"dateAdded of {owner}"),
        last_opened=ctx.timestamp(entry.last_opened, f"lastOpened of {owner}"),
    )


def map_stored_content(content: StoredContent, last_update: int) -> Manga:
    # Suwatte tags are not carried over; Aidoku refreshes them from the source.
    return Manga(
        id=content.id,
        source_id=content.source_id,
        title=content.title,
        desc=content.summary,
        cover=content.cover,
        author=AUTHOR_SEPARATOR.join(content.creators),
        nsfw=1 if content.is_nsfw else 0,
        status=content.status,
        last_update=last_update,
        tags=[],
    )


def map_stored_chapter(chapter: StoredChapter, ctx: MappingContext) -> Chapter:
    return Chapter(
        id=chapter.id,
        manga_id=chapter.content_id,
        source_id=chapter.source_id,
        volume=chapter.volume,
        chapter=chapter.number,
        lang=chapter.language or DEFAULT_LANGUAGE,
        title=chapter.title or "",
        date_uploaded=ctx.timestamp(chapter.date, f"date of chapter {chapter.id}"),
        source_order=chapter.index or 0,
    )


def map_progress_marker(
    marker: ProgressMarker, ctx: MappingContext, source_id: str = ""
) -> Optional[History]:
    """Return the history record for ``marker``, or ``None`` if it has no chapter."""

    reference = marker.chapter
    if reference is None:
        ctx.log.warn(MissingReferenceWarning("Skipped progress marker without a chapter reference"))
        return None
    return History(
        manga_id=reference.content_id,
        chapter_id=reference.chapter_id,
        source_id=source_id,
        progress=marker.last_page_read,
        total=marker.total_page_count,
        completed=marker.last_page_read == marker.total_page_count,
        date_read=ctx.timestamp(
            marker.date_read, f"dateRead of chapter {reference.chapter_id}"
        ),
    )


# ---------------------------------------------------------------------------
# Document walk
# ---------------------------------------------------------------------------


def map_backup(document: SuwatteBackup, ctx: MappingContext) -> MappedEntities:
    """Map every entity of ``document`` into Aidoku records."""

    mapped = MappedEntities()

    if document.collections:
        ctx.collection_names = {collection.id: collection.name for collection in document.collections}
        mapped.collection_names = [collection.name for collection in document.collections]
    if document.shape is SourceShape.LEGACY:
        mapped.link_source_ids = [link.source_id for link in document.content_links if link.source_id]

    contents: Dict[str, StoredContent] = {}
    for content in document.content_records():
        contents.setdefault(content.id, content)

    seen: set = set()
    for entry in document.library:
        content = contents.get(entry.id)
        if content is None:
            ctx.log.warn(MissingReferenceWarning(f"No content found for library entry {entry.id}"))
            continue
        if entry.id in seen:
            ctx.log.warn(ConversionWarning(f"Skipped duplicate library entry {entry.id}"))
            continue
        seen.add(entry.id)
        if not content.source_id:
            ctx.log.warn(
                MissingReferenceWarning(f"Manga {content.id} has no sourceId and is not listed in sources")
            )

        library_entry = map_library_entry(entry, content, ctx)
        mapped.library.append(library_entry)
        mapped.manga.append(map_stored_content(content, library_entry.last_updated))

    chapter_sources: Dict[Tuple[str, str], str] = {}
    for chapter in document.chapters:
        mapped.chapters.append(map_stored_chapter(chapter, ctx))
        if chapter.source_id:
            chapter_sources.setdefault((chapter.content_id, chapter.id), chapter.source_id)

    for marker in document.progress_markers:
        history = map_progress_marker(
            marker, ctx, _history_source_id(marker, chapter_sources, contents)
        )
        if history is not None:
            mapped.history.append(history)

    return mapped


def _history_source_id(
    marker: ProgressMarker,
    chapter_sources: Mapping[Tuple[str, str], str],
    contents: Mapping[str, StoredContent],
) -> str:
    reference = marker.chapter
    if reference is None:
        return ""
    if reference.source_id:
        return reference.source_id
    key = (reference.content_id, reference.chapter_id)
    if key in chapter_sources:
        return chapter_sources[key]
    content = contents.get(reference.content_id)
    return content.source_id if content is not None else ""
