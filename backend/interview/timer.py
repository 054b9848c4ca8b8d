"""
Per-question countdown timer.

The timer itself never sleeps: ticks are delivered by a scheduler, so the
API process uses a background thread while tests advance time by hand.
"""
import logging
import threading
from typing import Callable, List, Optional, Protocol

logger = logging.getLogger(__name__)


class ScheduledJob(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> ScheduledJob:
        ...


# ========================================
# Schedulers
# ========================================

class _ThreadJob:
    """Runs a callback every `interval` seconds on a daemon thread until cancelled."""

    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _run(self):
        while not self._stopped.wait(self.interval):
            try:
                self.callback()
            except Exception:
                logger.exception("Timer callback failed")

    def cancel(self) -> None:
        self._stopped.set()


class ThreadingScheduler:
    """Wall-clock scheduler backed by one thread per job."""

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> _ThreadJob:
        return _ThreadJob(interval, callback)


class _ManualJob:
    def __init__(self, callback: Callable[[], None]):
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """
    Deterministic scheduler: nothing happens until advance() is called.
    Every job fires once per advanced second, whatever its interval.
    """

    def __init__(self):
        self.jobs: List[_ManualJob] = []

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> _ManualJob:
        job = _ManualJob(callback)
        self.jobs.append(job)
        return job

    @property
    def active_jobs(self) -> List[_ManualJob]:
        return [job for job in self.jobs if not job.cancelled]

    def advance(self, seconds: int = 1) -> None:
        for _ in range(seconds):
            for job in self.active_jobs:
                # A callback may cancel jobs scheduled after it
                if not job.cancelled:
                    job.callback()


# ========================================
# Timer
# ========================================

class Timer:
    """
    Single countdown. Fires on_expire exactly once per start() when the
    remaining time reaches zero; stop() or a new start() cancels it.
    """

    def __init__(
        self,
        scheduler: Optional[Scheduler] = None,
        on_expire: Optional[Callable[[], None]] = None,
        on_tick: Optional[Callable[[int], None]] = None,
    ):
        self.scheduler = scheduler or ThreadingScheduler()
        self.on_expire = on_expire
        self.on_tick = on_tick

        self.initial_time = 0
        self.time_remaining = 0
        self.is_active = False

        self._job: Optional[ScheduledJob] = None
        self._expire_callback: Optional[Callable[[], None]] = None
        self._generation = 0
        self._lock = threading.RLock()

    @property
    def time_spent(self) -> int:
        return max(0, self.initial_time - self.time_remaining)

    def start(self, duration_seconds: int, on_expire: Optional[Callable[[], None]] = None) -> None:
        """
        Reset to duration_seconds and begin counting down.
        on_expire overrides the constructor callback for this countdown only.
        """
        if duration_seconds <= 0:
            raise ValueError(f"Timer duration must be positive, got {duration_seconds}")

        self.stop()
        with self._lock:
            self._generation += 1
            generation = self._generation
            self.initial_time = duration_seconds
            self.time_remaining = duration_seconds
            self.is_active = True
            self._expire_callback = on_expire or self.on_expire
            self._job = self.scheduler.schedule_repeating(1, lambda: self._tick(generation))
        logger.debug(f"Timer started: {duration_seconds}s")

    def stop(self) -> None:
        """Stop ticking. Safe to call repeatedly."""
        with self._lock:
            self.is_active = False
            if self._job is not None:
                self._job.cancel()
                self._job = None

    def tick(self) -> None:
        """Advance one second on the current countdown."""
        self._tick(self._generation)

    def _tick(self, generation: int) -> None:
        with self._lock:
            # Ticks from a cancelled countdown are ignored
            if generation != self._generation or not self.is_active:
                return

            self.time_remaining = max(0, self.time_remaining - 1)
            remaining = self.time_remaining
            expired = remaining == 0
            callback = self._expire_callback
            if expired:
                self.is_active = False
                if self._job is not None:
                    self._job.cancel()
                    self._job = None

        if self.on_tick:
            self.on_tick(remaining)

        if expired:
            logger.info(f"Timer expired after {self.initial_time}s")
            if callback:
                callback()
