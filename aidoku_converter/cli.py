"""Command line interface: ``python -m aidoku_converter backup.json``."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config import load_settings
from .conversion_log import ERROR, WARNING
from .pipeline import run_conversion

LOGGER = logging.getLogger(__name__)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Convert a Suwatte JSON backup into an Aidoku ``.aib`` file."""

    parser = argparse.ArgumentParser(description="Convert a Suwatte backup into an Aidoku backup.")
    parser.add_argument("source", type=Path, help="Path to the Suwatte backup (.json)")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory where the .aib file should be written (default: next to the source)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only print warnings, errors and the output path",
    )
    args = parser.parse_args(list(argv) if argv is not None else None)

    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")

    source = args.source.expanduser()
    try:
        raw = source.read_bytes()
    except OSError as exc:
        print(f"ERROR: Could not read {source}: {exc}", file=sys.stderr)
        return 1

    outcome = run_conversion(raw)
    for entry in outcome.log:
        if args.quiet and entry.level not in (WARNING, ERROR):
            continue
        stream = sys.stderr if entry.level in (WARNING, ERROR) else sys.stdout
        print(f"> {entry.message}", file=stream)

    if not outcome.success:
        return 1

    destination_dir = (args.output_dir or source.parent).expanduser()
    destination_dir.mkdir(parents=True, exist_ok=True)
    destination = destination_dir / outcome.filename
    destination.write_bytes(outcome.data)
    LOGGER.info("Wrote Aidoku backup to %s", destination)
    print(destination)
    return 0
