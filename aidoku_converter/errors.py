"""Exceptions and warnings raised while converting Suwatte backups."""
from __future__ import annotations

__all__ = [
    "ConversionError",
    "ParseError",
    "ValidationError",
    "MissingLibraryError",
    "MissingMangaError",
    "EncodingError",
    "ConversionWarning",
    "MissingReferenceWarning",
    "InvalidDateWarning",
]


class ConversionError(RuntimeError):
    """Raised when a backup cannot be converted and no output should be produced."""


class ParseError(ConversionError):
    """Raised when the uploaded file is not a readable Suwatte backup."""


class ValidationError(ConversionError):
    """Raised when the mapped entities are missing a required collection."""


class MissingLibraryError(ValidationError):
    def __init__(self, message: str = "No valid library entries found in backup") -> None:
        super().__init__(message)


class MissingMangaError(ValidationError):
    def __init__(self, message: str = "No valid manga entries found in backup") -> None:
        super().__init__(message)


class EncodingError(ConversionError):
    """Raised when the assembled backup cannot be written as a property list."""


class ConversionWarning(UserWarning):
    """A recoverable problem. Recorded in the conversion log, never raised."""


class MissingReferenceWarning(ConversionWarning):
    """A source entity points at a record that does not exist in the backup."""


class InvalidDateWarning(ConversionWarning):
    """A date value could not be interpreted and was replaced."""
