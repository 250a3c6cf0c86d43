# occupancy_collector/services/scheduler.py
"""
Job scheduler: runs functions on a fixed interval or once a week at a given
weekday and time of day.

Each job gets a dispatcher thread that sleeps until the next firing; every
firing runs in its own worker thread, so a slow job never delays the next tick
and firings may overlap. Jobs are called with the scheduler's stop event as
their cancellation signal.

Lifecycle: NOT_STARTED → RUNNING (start) → STOPPED (stop, or wait() interrupted).
stop() before start() is a no-op.
"""

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from datetime import time as dt_time
from enum import Enum
from typing import Callable, List, Optional, Set

from occupancy_collector.exceptions import SchedulerError
from occupancy_collector.utils.logger import get_logger

logger = get_logger(__name__)

JobFunc = Callable[[threading.Event], object]

MAX_WAIT_SECONDS = 60.0


class SchedulerState(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    STOPPED = "stopped"


def next_weekly_run(now: datetime, weekday: int, at: dt_time) -> datetime:
    """
    First instant strictly after `now` that falls on `weekday` (Monday=0) at
    time-of-day `at`.
    """
    days_ahead = (weekday - now.weekday()) % 7
    candidate = datetime.combine(now.date() + timedelta(days=days_ahead), at, tzinfo=now.tzinfo)
    if candidate <= now:
        candidate += timedelta(days=7)
    return candidate


class IntervalTrigger:
    """Fires every `interval`, optionally once right away. Deadlines do not drift."""

    def __init__(self, interval: timedelta, run_immediately: bool = True,
                 clock: Callable[[], float] = time.monotonic):
        if interval.total_seconds() <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.run_immediately = run_immediately
        self._clock = clock
        self._deadline: Optional[float] = None

    def now(self) -> float:
        return self._clock()

    def next_deadline(self) -> float:
        now = self.now()
        step = self.interval.total_seconds()
        if self._deadline is None:
            self._deadline = now if self.run_immediately else now + step
        else:
            self._deadline += step
            # skip ticks missed while the process was suspended
            while self._deadline < now - step:
                self._deadline += step
        return self._deadline

    def seconds_until_next(self) -> float:
        return max(0.0, self.next_deadline() - self.now())

    def describe(self) -> str:
        return f"every {self.interval.total_seconds():g}s"


class WeeklyTrigger:
    """
    Fires once a week on `weekday` at `at`, local wall-clock time.

    Deadlines are POSIX timestamps, so a daylight-saving change between now
    and the next slot does not shift the firing by an hour.
    """

    def __init__(self, weekday: int, at: dt_time, clock: Callable[[], datetime] = datetime.now):
        if not 0 <= weekday <= 6:
            raise ValueError("weekday must be between 0 (Monday) and 6 (Sunday)")
        self.weekday = weekday
        self.at = at
        self._clock = clock
        self._last: Optional[datetime] = None

    def now(self) -> float:
        return self._clock().timestamp()

    def next_deadline(self) -> float:
        target = next_weekly_run(self._clock(), self.weekday, self.at)
        # never hand out the same slot twice
        if self._last is not None and target <= self._last:
            target = next_weekly_run(self._last, self.weekday, self.at)
        self._last = target
        return target.timestamp()

    def seconds_until_next(self) -> float:
        return max(0.0, self.next_deadline() - self.now())

    def describe(self) -> str:
        day = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")[self.weekday]
        return f"weekly on {day} at {self.at.isoformat()}"


@dataclass
class Job:
    name: str
    func: JobFunc
    trigger: object
    runs: int = 0
    dispatcher: Optional[threading.Thread] = field(default=None, repr=False)


class Scheduler:
    def __init__(self):
        self._jobs: List[Job] = []
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._workers: Set[threading.Thread] = set()
        self.state = SchedulerState.NOT_STARTED

    # ── Registration ─────────────────────────────────────────────────────
    def every(self, func: JobFunc, interval: timedelta, name: Optional[str] = None,
              run_immediately: bool = True) -> Job:
        return self.add(Job(name or func.__name__, func, IntervalTrigger(interval, run_immediately)))

    def weekly(self, func: JobFunc, weekday: int, at: dt_time, name: Optional[str] = None) -> Job:
        return self.add(Job(name or func.__name__, func, WeeklyTrigger(weekday, at)))

    def add(self, job: Job) -> Job:
        with self._lock:
            if self.state == SchedulerState.STOPPED:
                raise SchedulerError("cannot add a job to a stopped scheduler")
            self._jobs.append(job)
            running = self.state == SchedulerState.RUNNING
        logger.info(f"🗓  Job registered: {job.name} ({job.trigger.describe()})")
        if running:
            self._start_dispatcher(job)
        return job

    @property
    def jobs(self) -> List[Job]:
        return list(self._jobs)

    @property
    def stop_event(self) -> threading.Event:
        return self._stop

    # ── Lifecycle ────────────────────────────────────────────────────────
    def start(self):
        with self._lock:
            if self.state != SchedulerState.NOT_STARTED:
                raise SchedulerError(f"scheduler cannot start from state {self.state.value}")
            self.state = SchedulerState.RUNNING
            jobs = list(self._jobs)
        try:
            for job in jobs:
                self._start_dispatcher(job)
        except SchedulerError:
            self.stop()
            raise
        logger.info(f"🚀 Scheduler started with {len(jobs)} job(s)")

    def wait(self):
        """Block until the scheduler is stopped. Ctrl+C stops it."""
        try:
            while not self._stop.is_set():
                self._stop.wait(timeout=1)
        except KeyboardInterrupt:
            logger.info("Received Ctrl+C, shutting down")
            self.stop()

    def stop(self, timeout: float = 5.0):
        """Stop dispatching and join in-flight jobs. Does nothing unless running."""
        with self._lock:
            if self.state != SchedulerState.RUNNING:
                return
            self.state = SchedulerState.STOPPED
        self._stop.set()
        logger.info("🛑 Scheduler stopping...")

        current = threading.current_thread()
        deadline = time.monotonic() + timeout
        for job in self._jobs:
            if job.dispatcher is not None and job.dispatcher is not current:
                job.dispatcher.join(max(0.0, deadline - time.monotonic()))
        with self._lock:
            workers = [w for w in self._workers if w is not current]
        for worker in workers:
            worker.join(max(0.0, deadline - time.monotonic()))
        if any(w.is_alive() for w in workers):
            logger.warning("Some jobs were still running at shutdown")

    # ── Internals ────────────────────────────────────────────────────────
    def _start_dispatcher(self, job: Job):
        thread = threading.Thread(target=self._dispatch, args=(job,), name=f"dispatch-{job.name}", daemon=True)
        try:
            thread.start()
        except RuntimeError as e:
            raise SchedulerError(f"failed to start dispatcher for {job.name}: {e}") from e
        job.dispatcher = thread

    def _dispatch(self, job: Job):
        while not self._stop.is_set():
            deadline = job.trigger.next_deadline()
            # short waits so clock jumps and suspends are noticed before firing
            while True:
                remaining = deadline - job.trigger.now()
                if remaining <= 0:
                    break
                if self._stop.wait(timeout=min(remaining, MAX_WAIT_SECONDS)):
                    return
            self._fire(job)

    def _fire(self, job: Job):
        job.runs += 1
        worker = threading.Thread(target=self._run, args=(job,), name=f"{job.name}-{job.runs}", daemon=True)
        with self._lock:
            self._workers.add(worker)
        try:
            worker.start()
        except RuntimeError:
            with self._lock:
                self._workers.discard(worker)
            logger.error(f"❌ Could not start worker for {job.name}", exc_info=True)

    def _run(self, job: Job):
        try:
            job.func(self._stop)
        except Exception as e:
            logger.error(f"❌ Job {job.name} raised an unexpected error: {e}", exc_info=True)
        finally:
            with self._lock:
                self._workers.discard(threading.current_thread())
