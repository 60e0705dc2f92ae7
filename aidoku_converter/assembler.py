"""Composition of the final Aidoku backup document."""

from __future__ import annotations

from typing import Optional, Sequence

from .dates import Clock, now_ms
from .models import AidokuBackup, Chapter, History, Library, Manga

FORMAT_VERSION = "1.0.0"


def assemble(
    library: Sequence[Library],
    manga: Sequence[Manga],
    chapters: Sequence[Chapter],
    history: Sequence[History],
    sources: Sequence[str],
    categories: Sequence[str],
    *,
    clock: Optional[Clock] = None,
) -> AidokuBackup:
    return AidokuBackup(
        library=list(library),
        manga=list(manga),
        chapters=list(chapters),
        history=list(history),
        sources=list(sources),
        categories=list(categories),
        date=now_ms(clock),
        version=FORMAT_VERSION,
    )
