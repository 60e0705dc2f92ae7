"""Deduplicated source and category sets derived from mapped entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from .models import Library, Manga


@dataclass
class Aggregates:
    sources: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)


def _unique(values: Iterable[str]) -> List[str]:
    # dict keeps first-seen order, which keeps the encoded output stable.
    return list(dict.fromkeys(value for value in values if value))


def aggregate(
    manga: Sequence[Manga],
    library: Sequence[Library],
    *,
    extra_sources: Iterable[str] = (),
    extra_categories: Iterable[str] = (),
) -> Aggregates:
    """Collect every distinct ``sourceId`` and category name.

    Sources come from the manga records, categories from the library entries.
    ``extra_sources`` and ``extra_categories`` carry values that exist only in
    the source document (content links, declared collections).
    """

    sources = [item.source_id for item in manga]
    sources.extend(extra_sources)

    categories = [name for entry in library for name in entry.categories]
    categories.extend(extra_categories)

    return Aggregates(sources=_unique(sources), categories=_unique(categories))
