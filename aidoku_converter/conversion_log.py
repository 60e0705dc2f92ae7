"""Per-run progress log handed back to whichever shell drives a conversion."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .errors import ConversionWarning

LOGGER = logging.getLogger(__name__)

INFO = "info"
WARNING = "warning"
ERROR = "error"


@dataclass(frozen=True)
class LogEntry:
    level: str
    message: str
    warning: Optional[ConversionWarning] = None

    def as_dict(self) -> Dict[str, str]:
        return {"level": self.level, "message": self.message}


@dataclass
class ConversionLog:
    """Ordered list of ``{level, message}`` records for one conversion.

    Every entry is mirrored to the standard :mod:`logging` tree so server logs
    and the user facing console tell the same story.
    """

    entries: List[LogEntry] = field(default_factory=list)

    def info(self, message: str) -> None:
        LOGGER.info(message)
        self.entries.append(LogEntry(INFO, message))

    def warn(self, warning: ConversionWarning) -> None:
        LOGGER.warning("%s: %s", type(warning).__name__, warning)
        self.entries.append(LogEntry(WARNING, str(warning), warning))

    def error(self, message: str) -> None:
        LOGGER.error(message)
        self.entries.append(LogEntry(ERROR, message))

    @property
    def warnings(self) -> List[ConversionWarning]:
        return [entry.warning for entry in self.entries if entry.warning is not None]

    def messages(self) -> List[str]:
        return [entry.message for entry in self.entries]

    def as_dicts(self) -> List[Dict[str, str]]:
        return [entry.as_dict() for entry in self.entries]
