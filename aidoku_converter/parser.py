"""Deserialisation of raw Suwatte backup JSON into :mod:`models` dataclasses.

The parser is deliberately forgiving about individual records: entries that
are not JSON objects, or that lack an identifier, are skipped and described in
``SuwatteBackup.notes`` so the pipeline can report them.  Only problems with
the document as a whole (undecodable bytes, malformed JSON, top-level
collections of the wrong type) raise :class:`~aidoku_converter.errors.ParseError`.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Mapping, Optional, Union

from .errors import ParseError
from .models import (
    ChapterReference,
    Collection,
    ContentLink,
    LibraryEntry,
    ProgressMarker,
    SourceShape,
    StoredChapter,
    StoredContent,
    SuwatteBackup,
)

LOGGER = logging.getLogger(__name__)

INVALID_FORMAT_MESSAGE = (
    "Invalid JSON format in backup file. Please make sure your backup file is a "
    "valid Suwatte backup."
)

MISSING_LIBRARY_MESSAGE = "Invalid backup: Missing library entries"

# Bounds of a signed 64 bit property list integer.
_INT_MIN = -(1 << 63)
_INT_MAX = (1 << 63) - 1

_OPTIONAL_ARRAY_KEYS = (
    "storedContents",
    "chapters",
    "progressMarkers",
    "contentLinks",
    "collections",
)


def parse_backup(raw: Union[bytes, str]) -> SuwatteBackup:
    """Parse ``raw`` (UTF-8 bytes or text) into a :class:`SuwatteBackup`."""

    if isinstance(raw, (bytes, bytearray)):
        try:
            text = bytes(raw).decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ParseError(f"Backup file is not UTF-8 encoded text: {exc}") from exc
    else:
        text = raw

    try:
        payload = json.loads(text)
    except (ValueError, RecursionError) as exc:
        raise ParseError(f"{INVALID_FORMAT_MESSAGE} ({exc})") from exc

    if not isinstance(payload, Mapping):
        raise ParseError(f"{INVALID_FORMAT_MESSAGE} (top-level value is not an object)")

    if not isinstance(payload.get("library"), list):
        raise ParseError(MISSING_LIBRARY_MESSAGE)

    for key in _OPTIONAL_ARRAY_KEYS:
        value = payload.get(key)
        if value is not None and not isinstance(value, list):
            raise ParseError(f"Invalid backup: '{key}' must be an array")

    return _build_backup(payload)


def detect_shape(payload: Mapping[str, Any]) -> SourceShape:
    if isinstance(payload.get("storedContents"), list):
        return SourceShape.RICH
    if payload.get("contentLinks") is not None or payload.get("collections") is not None:
        return SourceShape.LEGACY
    return SourceShape.RICH


def _build_backup(payload: Mapping[str, Any]) -> SuwatteBackup:
    backup = SuwatteBackup(
        shape=detect_shape(payload),
        date=payload.get("date"),
        app_version=_normalise_optional(payload.get("appVersion")),
    )

    for index, entry in _iter_objects(payload.get("library"), "library", backup.notes):
        identifier = _normalise_optional(entry.get("id"))
        if identifier is None:
            backup.notes.append(f"Skipped library entry #{index}: missing id")
            continue
        backup.library.append(
            LibraryEntry(
                id=identifier,
                last_updated=entry.get("lastUpdated"),
                date_added=entry.get("dateAdded"),
                last_opened=entry.get("lastOpened"),
                collections=_string_list(entry.get("collections")),
            )
        )

    for index, entry in _iter_objects(payload.get("storedContents"), "storedContents", backup.notes):
        content = _parse_content(entry)
        if content is None:
            backup.notes.append(f"Skipped stored content #{index}: missing id")
            continue
        backup.stored_contents.append(content)

    for index, entry in _iter_objects(payload.get("chapters"), "chapters", backup.notes):
        identifier = _normalise_optional(entry.get("id")) or _normalise_optional(entry.get("chapterId"))
        content_id = _normalise_optional(entry.get("contentId"))
        if identifier is None or content_id is None:
            backup.notes.append(f"Skipped chapter #{index}: missing id or contentId")
            continue
        backup.chapters.append(
            StoredChapter(
                id=identifier,
                content_id=content_id,
                source_id=_normalise_optional(entry.get("sourceId")) or "",
                volume=_coerce_float(entry.get("volume")),
                number=_coerce_float(entry.get("number")),
                language=_normalise_optional(entry.get("language")),
                title=_normalise_optional(entry.get("title")),
                date=entry.get("date"),
                index=_coerce_optional_int(entry.get("index")),
            )
        )

    for _, entry in _iter_objects(payload.get("progressMarkers"), "progressMarkers", backup.notes):
        backup.progress_markers.append(
            ProgressMarker(
                chapter=_parse_chapter_reference(entry.get("chapter")),
                last_page_read=_coerce_int(entry.get("lastPageRead")),
                total_page_count=_coerce_int(entry.get("totalPageCount")),
                date_read=entry.get("dateRead"),
            )
        )

    for index, entry in _iter_objects(payload.get("contentLinks"), "contentLinks", backup.notes):
        embedded = entry.get("content")
        content = _parse_content(embedded) if isinstance(embedded, Mapping) else None
        content_id = _normalise_optional(entry.get("contentId")) or (content.id if content else None)
        if content_id is None:
            backup.notes.append(f"Skipped content link #{index}: missing contentId")
            continue
        backup.content_links.append(
            ContentLink(
                id=_normalise_optional(entry.get("id")) or content_id,
                content_id=content_id,
                source_id=_normalise_optional(entry.get("sourceId")),
                content=content,
            )
        )

    for index, entry in _iter_objects(payload.get("collections"), "collections", backup.notes):
        name = _normalise_optional(entry.get("name"))
        if name is None:
            backup.notes.append(f"Skipped collection #{index}: missing name")
            continue
        backup.collections.append(
            Collection(id=_normalise_optional(entry.get("id")) or name, name=name)
        )

    LOGGER.debug(
        "Parsed %s backup: %d library, %d contents, %d chapters, %d markers",
        backup.shape.value,
        len(backup.library),
        len(backup.stored_contents),
        len(backup.chapters),
        len(backup.progress_markers),
    )
    return backup


# ---------------------------------------------------------------------------
# Record helpers
# ---------------------------------------------------------------------------


def _iter_objects(value: Any, key: str, notes: List[str]):
    if not value:
        return
    for index, entry in enumerate(value):
        if not isinstance(entry, Mapping):
            notes.append(f"Skipped {key} entry #{index}: not an object")
            continue
        yield index, entry


def _parse_content(entry: Mapping[str, Any]) -> Optional[StoredContent]:
    identifier = _normalise_optional(entry.get("id"))
    if identifier is None:
        return None
    return StoredContent(
        id=identifier,
        source_id=_normalise_optional(entry.get("sourceId")) or "",
        title=_normalise_optional(entry.get("title")),
        summary=_normalise_optional(entry.get("summary")),
        cover=_normalise_optional(entry.get("cover")),
        creators=_string_list(entry.get("creators")),
        is_nsfw=bool(entry.get("isNSFW")),
        status=_coerce_int(entry.get("status")),
    )


def _parse_chapter_reference(value: Any) -> Optional[ChapterReference]:
    if not isinstance(value, Mapping):
        return None
    content_id = _normalise_optional(value.get("contentId"))
    chapter_id = _normalise_optional(value.get("chapterId"))
    if content_id is None or chapter_id is None:
        return None
    return ChapterReference(
        content_id=content_id,
        chapter_id=chapter_id,
        source_id=_normalise_optional(value.get("sourceId")),
    )


def _string_list(value: Any) -> List[str]:
    if value in (None, ""):
        return []
    if isinstance(value, str):
        return [value]
    result: List[str] = []
    if isinstance(value, list):
        for entry in value:
            if isinstance(entry, Mapping):
                entry = entry.get("name") or entry.get("id")
            text = _normalise_optional(entry)
            if text is not None:
                result.append(text)
    return result


# ---------------------------------------------------------------------------
# Normalisation helpers
# ---------------------------------------------------------------------------


def _coerce_int(value: Any) -> int:
    if value in (None, ""):
        return 0
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        try:
            number = int(float(value))
        except (TypeError, ValueError, OverflowError):
            return 0
    return min(max(number, _INT_MIN), _INT_MAX)


def _coerce_optional_int(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    return _coerce_int(value)


def _coerce_float(value: Any) -> Optional[float]:
    if value in (None, "") or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _normalise_optional(value: Any) -> Optional[str]:
    if value in (None, "") or isinstance(value, (Mapping, list)):
        return None
    return str(value)
