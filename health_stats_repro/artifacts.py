"""
Run Artifacts.

Timestamp-qualified, append-only output files holding one JSON object
per line.
"""

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, TextIO

logger = logging.getLogger(__name__)


def run_stamp(started_at: datetime, pid: int) -> str:
    """RFC 3339 start time plus pid, unique per concurrently started process."""
    return f"{started_at.isoformat(timespec='seconds')}-{pid}"


def open_log_file(output_dir: Path, name: str, stamp: str) -> TextIO:
    """Open ``<output_dir>/<name>-<stamp>`` for appending."""
    path = Path(output_dir) / f"{name}-{stamp}"
    logger.info(f"logging {name!r} to {str(path)!r}")

    fd = os.open(path, os.O_CREAT | os.O_WRONLY | os.O_APPEND, 0o640)
    return os.fdopen(fd, "a", encoding="utf-8")


class RecordWriter:
    """Writes records as JSON lines to a text stream."""

    def __init__(self, out: TextIO):
        self.out = out
        self.count = 0

    def write(self, record: Any):
        self.out.write(json.dumps(record, default=str) + "\n")
        self.out.flush()
        self.count += 1
