"""Runtime settings for the command line and web shells.

Values come from the process environment, optionally seeded from a ``.env``
file in the working directory.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import dotenv_values, find_dotenv

LOGGER = logging.getLogger(__name__)

ENV_PREFIX = "AIDOKU_CONVERTER_"

DEFAULT_PORT = 5002
DEFAULT_MAX_UPLOAD_MB = 64
DEFAULT_LOG_LEVEL = "INFO"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    port: int = DEFAULT_PORT
    max_upload_mb: int = DEFAULT_MAX_UPLOAD_MB
    log_level: str = DEFAULT_LOG_LEVEL
    open_browser: bool = True

    @property
    def max_content_length(self) -> int:
        return self.max_upload_mb * 1024 * 1024


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings` from ``environ``.

    Without an explicit mapping the process environment is used, layered over
    any ``.env`` file found from the working directory upwards.  The ``.env``
    values are read, not exported, so ``os.environ`` is left untouched.
    """

    if environ is None:
        dotenv_path = find_dotenv(usecwd=True)
        environ = {**(dotenv_values(dotenv_path) if dotenv_path else {}), **os.environ}

    return Settings(
        port=_int_setting(environ, "PORT", DEFAULT_PORT),
        max_upload_mb=_int_setting(environ, "MAX_UPLOAD_MB", DEFAULT_MAX_UPLOAD_MB),
        log_level=_log_level(environ.get(ENV_PREFIX + "LOG_LEVEL")),
        open_browser=_bool_setting(environ, "OPEN_BROWSER", True),
    )


def _int_setting(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(ENV_PREFIX + name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except ValueError:
        LOGGER.warning("Ignoring non-integer %s%s=%r", ENV_PREFIX, name, raw)
        return default
    if value <= 0:
        LOGGER.warning("Ignoring non-positive %s%s=%r", ENV_PREFIX, name, raw)
        return default
    return value


def _bool_setting(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(ENV_PREFIX + name)
    if raw in (None, ""):
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    LOGGER.warning("Ignoring unrecognised %s%s=%r", ENV_PREFIX, name, raw)
    return default


def _log_level(raw: Optional[str]) -> str:
    if not raw:
        return DEFAULT_LOG_LEVEL
    level = raw.strip().upper()
    if level not in _LOG_LEVELS:
        LOGGER.warning("Ignoring unknown log level %r", raw)
        return DEFAULT_LOG_LEVEL
    return level
