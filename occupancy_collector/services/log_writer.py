# occupancy_collector/services/log_writer.py
"""
Occupancy log writer: appends one CSV row per successful fetch.

Columns: timestamp, the four telepen columns, then four columns for every
name in the fixed affluence level list. The header is written once, when the
file is created. Appends hold the guard in shared mode so they never run
while the rotator is renaming the file; creating the file takes the
exclusive mode.
"""

import csv
import os
from datetime import datetime
from typing import List, Optional, Sequence

from occupancy_collector.exceptions import LogFileError
from occupancy_collector.schemas.occupancy import AFFLUENCE_LEVELS, LevelReading, OccupancyReading
from occupancy_collector.utils.logger import get_logger
from occupancy_collector.utils.rwlock import ReadWriteLock

logger = get_logger(__name__)

_LEVEL_SUFFIXES = ("free", "total", "free_pct", "used_pct")


def build_header(levels: Sequence[str] = AFFLUENCE_LEVELS) -> List[str]:
    header = ["timestamp"] + [f"telepen_{suffix}" for suffix in _LEVEL_SUFFIXES]
    for level in levels:
        header.extend(f"{level}_{suffix}" for suffix in _LEVEL_SUFFIXES)
    return header


def _level_columns(reading: LevelReading) -> List[str]:
    return [
        str(reading.free),
        str(reading.total),
        f"{reading.free_percentage:.1f}",
        f"{reading.used_percentage:.1f}",
    ]


def build_row(reading: OccupancyReading, timestamp: str,
              levels: Sequence[str] = AFFLUENCE_LEVELS) -> List[str]:
    row = [timestamp] + _level_columns(reading.telepen)
    for level in levels:
        row.extend(_level_columns(reading.level(level)))
    return row


def format_timestamp(now: Optional[datetime] = None) -> str:
    """Local time with UTC offset, e.g. 2025-05-19T14:03:27+01:00."""
    now = now or datetime.now()
    if now.tzinfo is None:
        now = now.astimezone()
    return now.isoformat(timespec="seconds")


def _write_rows(path: str, rows: List[List[str]], mode: str):
    with open(path, mode, newline="", encoding="utf-8") as fh:
        csv.writer(fh, lineterminator="\n").writerows(rows)


def append_row(
    path: str,
    reading: OccupancyReading,
    guard: ReadWriteLock,
    levels: Sequence[str] = AFFLUENCE_LEVELS,
    now: Optional[datetime] = None,
) -> str:
    """
    Append one reading to the log at `path`, writing the header first if the
    file does not exist yet. Returns the timestamp written.

    Rows for an existing file go out under the shared guard. The file is only
    ever created under the exclusive guard, header and first row in one
    write, so no appender can see a file whose first line is not the header.

    Raises LogFileError if the file cannot be opened or written.
    """
    timestamp = format_timestamp(now)
    row = build_row(reading, timestamp, levels)

    try:
        with guard.read_locked():
            appended = os.path.exists(path)
            if appended:
                _write_rows(path, [row], "a")

        if not appended:
            with guard.write_locked():
                parent = os.path.dirname(path)
                if parent:
                    os.makedirs(parent, exist_ok=True)
                try:
                    _write_rows(path, [build_header(levels), row], "x")
                except FileExistsError:
                    # another appender created it first
                    _write_rows(path, [row], "a")
    except OSError as e:
        raise LogFileError(f"failed to write occupancy log: {e}", path=path) from e

    logger.info(f"📝 Logged occupancy data | timestamp={timestamp}")
    return timestamp
