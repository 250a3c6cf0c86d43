# occupancy_collector/services/rotator.py
"""
Weekly rotation of the occupancy log.

The active log is renamed to occupancy_<YYYY-MM-DD>.csv in the same directory.
An existing archive for the same date is never overwritten.
"""

import os
from datetime import date
from pathlib import Path
from typing import Optional

from occupancy_collector.exceptions import LogFileError
from occupancy_collector.utils.logger import get_logger
from occupancy_collector.utils.rwlock import ReadWriteLock

logger = get_logger(__name__)


def archive_path_for(path: str, day: date) -> Path:
    return Path(path).with_name(f"occupancy_{day.strftime('%Y-%m-%d')}.csv")


def rotate_log(path: str, guard: ReadWriteLock, today: Optional[date] = None) -> Optional[Path]:
    """
    Rename the active log to its dated archive name.

    Returns the archive path, or None when there was nothing to rotate or the
    archive already exists. Raises LogFileError if the rename fails.
    """
    with guard.write_locked():
        target = archive_path_for(path, today or date.today())

        if not os.path.exists(path):
            logger.info("No occupancy log to rotate")
            return None

        if target.exists():
            logger.warning(f"⚠️  Rotation target already exists: {target}")
            return None

        try:
            os.rename(path, target)
        except OSError as e:
            raise LogFileError(f"failed to rotate occupancy log: {e}", path=path) from e

    logger.info(f"🔄 Rotated occupancy log → {target}")
    return target
