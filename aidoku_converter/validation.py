"""Structural checks run between mapping and assembly."""

from __future__ import annotations

from .errors import MissingLibraryError, MissingMangaError
from .mappers import MappedEntities


def validate(entities: MappedEntities) -> None:
    """Raise a :class:`~aidoku_converter.errors.ValidationError` if a required list is empty."""

    if not entities.library:
        raise MissingLibraryError()
    if not entities.manga:
        raise MissingMangaError()
