"""End-to-end Suwatte → Aidoku conversion.

``convert_backup`` runs the stages in order (parse, map, validate, aggregate,
assemble, encode) and raises on fatal problems.  ``run_conversion`` wraps it
for user facing shells: it never raises a :class:`ConversionError` and always
returns the progress log together with a success flag.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from .aggregate import aggregate
from .assembler import assemble
from .binary_plist import encode
from .conversion_log import ConversionLog, LogEntry
from .dates import Clock, utc_now
from .errors import ConversionError, ConversionWarning, EncodingError, ParseError
from .mappers import MappingContext, map_backup
from .models import AidokuBackup
from .parser import parse_backup
from .validation import validate

LOGGER = logging.getLogger(__name__)

BACKUP_PREFIX = "Aidoku"
BACKUP_EXTENSION = ".aib"


def backup_filename(clock: Optional[Clock] = None) -> str:
    """Return ``Aidoku-YYYY-MM-DD.aib`` for the current (UTC) calendar date."""

    stamp = (clock or utc_now)().date().isoformat()
    return f"{BACKUP_PREFIX}-{stamp}{BACKUP_EXTENSION}"


@dataclass
class ConversionResult:
    backup: AidokuBackup
    data: bytes
    filename: str
    log: ConversionLog
    input_counts: Dict[str, int] = field(default_factory=dict)


@dataclass
class ConversionOutcome:
    """What a shell needs to show the user: bytes, a name, the log and a flag."""

    success: bool
    log: List[LogEntry]
    data: bytes = b""
    filename: Optional[str] = None
    error: Optional[ConversionError] = None

    @property
    def messages(self) -> List[str]:
        return [entry.message for entry in self.log]


def convert_backup(
    raw: Union[bytes, str],
    *,
    clock: Optional[Clock] = None,
    log: Optional[ConversionLog] = None,
) -> ConversionResult:
    """Convert a Suwatte backup into Aidoku's binary property list format.

    Raises :class:`~aidoku_converter.errors.ParseError` for unreadable input,
    :class:`~aidoku_converter.errors.ValidationError` when the mapped library or
    manga list is empty, and :class:`~aidoku_converter.errors.EncodingError` when
    the result cannot be written as a property list.  Recoverable problems end
    up as warnings in the log.
    """

    clock = clock or utc_now
    log = log if log is not None else ConversionLog()

    log.info("Reading backup file...")
    document = parse_backup(raw)
    counts = {
        "library": len(document.library),
        "manga": len(document.content_records()),
        "chapters": len(document.chapters),
        "progress_markers": len(document.progress_markers),
    }
    log.info(f"Successfully parsed Suwatte backup ({document.shape.value} layout)")
    log.info(f"  Library entries: {counts['library']}")
    log.info(f"  Manga entries: {counts['manga']}")
    log.info(f"  Chapters: {counts['chapters']}")
    log.info(f"  Progress markers: {counts['progress_markers']}")
    if document.app_version:
        log.info(f"  Suwatte version: {document.app_version}")
    for note in document.notes:
        log.warn(ConversionWarning(note))

    ctx = MappingContext(log=log, clock=clock)
    entities = map_backup(document, ctx)
    validate(entities)

    sets = aggregate(
        entities.manga,
        entities.library,
        extra_sources=entities.link_source_ids,
        extra_categories=entities.collection_names,
    )
    backup = assemble(
        entities.library,
        entities.manga,
        entities.chapters,
        entities.history,
        sets.sources,
        sets.categories,
        clock=clock,
    )
    log.info("Successfully converted to Aidoku format")
    log.info(f"  Library entries: {len(backup.library)}")
    log.info(f"  Manga entries: {len(backup.manga)}")
    log.info(f"  Chapters: {len(backup.chapters)}")
    log.info(f"  History entries: {len(backup.history)}")
    log.info(f"  Sources: {len(backup.sources)}")
    log.info(f"  Categories: {len(backup.categories)}")

    try:
        data = encode(backup.to_plist())
    except (TypeError, ValueError, OverflowError) as exc:
        raise EncodingError(f"Could not write the Aidoku backup: {exc}") from exc
    filename = backup_filename(clock)
    log.info("Conversion successful.")
    log.info(f"  Your new backup name is: {filename}")

    return ConversionResult(
        backup=backup,
        data=data,
        filename=filename,
        log=log,
        input_counts=counts,
    )


def run_conversion(raw: Union[bytes, str], *, clock: Optional[Clock] = None) -> ConversionOutcome:
    """Collaborator entry point: convert ``raw`` and report instead of raising."""

    log = ConversionLog()
    try:
        result = convert_backup(raw, clock=clock, log=log)
    except ConversionError as exc:
        detail = str(exc) if isinstance(exc, ParseError) else f"Details: {exc}"
        log.error(f"ERROR: Failed to process backup. {detail}")
        return ConversionOutcome(success=False, log=list(log.entries), error=exc)

    return ConversionOutcome(
        success=True,
        log=list(log.entries),
        data=result.data,
        filename=result.filename,
    )
