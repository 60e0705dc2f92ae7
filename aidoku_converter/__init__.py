"""Convert Suwatte JSON backups into Aidoku binary property-list backups."""
from __future__ import annotations

from .binary_plist import encode
from .dates import normalize
from .errors import (
    ConversionError,
    ConversionWarning,
    EncodingError,
    InvalidDateWarning,
    MissingLibraryError,
    MissingMangaError,
    MissingReferenceWarning,
    ParseError,
    ValidationError,
)
from .pipeline import ConversionOutcome, ConversionResult, convert_backup, run_conversion

__all__ = [
    "ConversionError",
    "ConversionOutcome",
    "ConversionResult",
    "ConversionWarning",
    "EncodingError",
    "InvalidDateWarning",
    "MissingLibraryError",
    "MissingMangaError",
    "MissingReferenceWarning",
    "ParseError",
    "ValidationError",
    "convert_backup",
    "encode",
    "normalize",
    "run_conversion",
]
