# occupancy_collector/services/jobs.py
"""
Scheduled jobs: poll-and-append, and weekly rotation.

Both jobs swallow CollectorError after logging it. The next scheduled tick is
the only retry.
"""

import threading
from typing import Optional

from occupancy_collector.config import Settings
from occupancy_collector.exceptions import CollectorError, LogFileError
from occupancy_collector.services.fetcher import fetch_occupancy
from occupancy_collector.services.log_writer import append_row
from occupancy_collector.services.rotator import rotate_log
from occupancy_collector.utils.logger import get_logger
from occupancy_collector.utils.rwlock import ReadWriteLock

logger = get_logger(__name__)


def poll_occupancy(settings: Settings, guard: ReadWriteLock,
                   cancel: Optional[threading.Event] = None) -> bool:
    if cancel is not None and cancel.is_set():
        return False

    try:
        reading = fetch_occupancy(
            url=settings.OCCUPANCY_URL,
            user_agent=settings.USER_AGENT,
            timeout=settings.REQUEST_TIMEOUT_SECONDS,
        )
    except CollectorError as e:
        logger.error(f"❌ Occupancy fetch failed: {e.message} {e.details}")
        return False

    if cancel is not None and cancel.is_set():
        logger.info("Shutdown requested, dropping fetched reading")
        return False

    try:
        append_row(settings.LOG_PATH, reading, guard, levels=settings.AFFLUENCE_LEVELS)
    except LogFileError as e:
        logger.error(f"❌ {e.message} ({e.path})")
        return False
    return True


def rotate_occupancy_log(settings: Settings, guard: ReadWriteLock,
                         cancel: Optional[threading.Event] = None) -> bool:
    if cancel is not None and cancel.is_set():
        return False

    try:
        rotate_log(settings.LOG_PATH, guard)
    except LogFileError as e:
        logger.error(f"❌ {e.message} ({e.path})")
        return False
    return True
