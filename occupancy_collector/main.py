# occupancy_collector/main.py
"""
Collector entry point.
Polls occupancy every POLL_INTERVAL_SECONDS and rotates the log weekly.

Usage: python -m occupancy_collector.main
       python -m occupancy_collector.main --once
"""

import argparse
import signal
import sys
from datetime import timedelta
from functools import partial
from typing import Optional

from occupancy_collector.config import Settings, settings as default_settings
from occupancy_collector.exceptions import SchedulerError
from occupancy_collector.services.jobs import poll_occupancy, rotate_occupancy_log
from occupancy_collector.services.scheduler import Scheduler
from occupancy_collector.utils.logger import get_logger
from occupancy_collector.utils.rwlock import ReadWriteLock

logger = get_logger(__name__)


def build_scheduler(settings: Settings, guard: ReadWriteLock) -> Scheduler:
    scheduler = Scheduler()
    scheduler.every(
        partial(poll_occupancy, settings, guard),
        timedelta(seconds=settings.POLL_INTERVAL_SECONDS),
        name="poll-occupancy",
    )
    scheduler.weekly(
        partial(rotate_occupancy_log, settings, guard),
        settings.ROTATION_WEEKDAY,
        settings.ROTATION_TIME,
        name="rotate-log",
    )
    return scheduler


def run(settings: Settings) -> int:
    logger.info("🚀 Occupancy collector starting up...")
    logger.info(f"📡 Endpoint: {settings.OCCUPANCY_URL}")
    logger.info(f"📝 Logging to {settings.LOG_PATH} every {settings.POLL_INTERVAL_SECONDS}s")

    guard = ReadWriteLock()
    scheduler = build_scheduler(settings, guard)

    try:
        scheduler.start()
    except SchedulerError as e:
        logger.critical(f"❌ Failed to start scheduler: {e}")
        return 1

    def _shutdown(signum, frame):
        logger.info(f"Received signal {signum}")
        scheduler.stop()

    signal.signal(signal.SIGTERM, _shutdown)
    scheduler.wait()
    logger.info("🛑 Occupancy collector stopped")
    return 0


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Poll building occupancy into a weekly-rotated CSV log")
    parser.add_argument("--once", action="store_true", help="Fetch and log a single reading, then exit")
    args = parser.parse_args(argv)

    if args.once:
        ok = poll_occupancy(default_settings, ReadWriteLock())
        return 0 if ok else 1
    return run(default_settings)


if __name__ == "__main__":
    sys.exit(main())
