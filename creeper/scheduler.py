# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Snapshot scheduler.

Runs the pipeline once immediately and then on a fixed cadence, never
allowing two runs at the same time.

State Machine:
    IDLE    - No run in progress; the next trigger starts one
    RUNNING - A run is in progress; triggers arriving now are skipped

Transitions:
    IDLE → RUNNING: trigger fired and the run guard was free
    RUNNING → IDLE: run finished, successfully or not

A trigger that finds the guard taken is dropped (not queued) and logged.
Exceptions raised inside a run are caught at the run boundary so the
schedule keeps firing.
"""

import logging
import threading
import time
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from creeper.composite.pipeline import SnapshotPipeline
from creeper.models.snapshot import RunResult, SchedulerState

logger = logging.getLogger(__name__)


class SnapshotScheduler:
    """Fixed-interval driver for the snapshot pipeline."""

    def __init__(
        self,
        pipeline: SnapshotPipeline,
        interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize scheduler.

        Args:
            pipeline: Pipeline to run each cycle
            interval_seconds: Time between trigger points
            clock: Monotonic clock used for the cadence
        """
        self.pipeline = pipeline
        self.interval_seconds = interval_seconds
        self._clock = clock

        self._run_guard = threading.Lock()
        self._state = SchedulerState.IDLE
        self._state_lock = threading.Lock()

        self._thread: Optional[threading.Thread] = None
        self._worker: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

        self._last_result: Optional[RunResult] = None
        self._runs_completed = 0
        self._runs_failed = 0
        self._triggers_skipped = 0
        self._start_time = datetime.now()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def last_result(self) -> Optional[RunResult]:
        return self._last_result

    @property
    def triggers_skipped(self) -> int:
        return self._triggers_skipped

    @property
    def runs_completed(self) -> int:
        return self._runs_completed

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _acquire(self) -> bool:
        """Take the run guard without blocking; count and log a skip otherwise."""
        if self._run_guard.acquire(blocking=False):
            with self._state_lock:
                self._state = SchedulerState.RUNNING
            return True

        with self._state_lock:
            self._triggers_skipped += 1
        logger.warning("Snapshot run still in progress, skipping trigger")
        return False

    def _run_guarded(self) -> RunResult:
        """Run the pipeline once; the caller must hold the run guard."""
        try:
            try:
                result = self.pipeline.run()
            except Exception as e:
                logger.exception(f"Snapshot run failed: {e}")
                result = RunResult(error=f"{type(e).__name__}: {e}")

            with self._state_lock:
                self._last_result = result
                self._runs_completed += 1
                if not result.published:
                    self._runs_failed += 1
            return result
        finally:
            with self._state_lock:
                self._state = SchedulerState.IDLE
            self._run_guard.release()

    def run_now(self) -> Optional[RunResult]:
        """Run synchronously on the calling thread.

        Returns:
            RunResult, or None if a run was already in progress
        """
        if not self._acquire():
            return None
        return self._run_guarded()

    def fire(self) -> bool:
        """Start a run on a worker thread.

        Returns:
            True if a run was started, False if one was already in progress
        """
        if not self._acquire():
            return False

        self._worker = threading.Thread(
            target=self._run_guarded,
            daemon=True,
            name="SnapshotRun",
        )
        self._worker.start()
        return True

    def wait_for_run(self, timeout: Optional[float] = None) -> bool:
        """Wait for a run started by fire() to finish.

        Returns:
            True if no run is active afterwards
        """
        worker = self._worker
        if worker is not None:
            worker.join(timeout=timeout)
            return not worker.is_alive()
        return True

    def start(self) -> None:
        """Start the background scheduler thread (first run fires immediately)."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._scheduler_loop,
            daemon=True,
            name="SnapshotScheduler",
        )
        self._thread.start()
        logger.info(f"Snapshot scheduler started (every {self.interval_seconds:g}s)")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the scheduler thread and wait briefly for an active run."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            self._thread = None
        self.wait_for_run(timeout)
        logger.info("Snapshot scheduler stopped")

    def _scheduler_loop(self) -> None:
        """Fire on a fixed cadence measured from start."""
        next_fire = self._clock()

        while not self._stop_event.is_set():
            self.fire()

            next_fire += self.interval_seconds
            now = self._clock()
            if next_fire <= now:
                missed = int((now - next_fire) // self.interval_seconds) + 1
                logger.warning(f"Scheduler fell behind, dropping {missed} trigger(s)")
                next_fire += missed * self.interval_seconds

            if self._stop_event.wait(next_fire - now):
                break

    def get_status(self) -> Dict[str, Any]:
        """Scheduler status for the status endpoint."""
        with self._state_lock:
            last = self._last_result
            return {
                "state": self._state.value,
                "interval_seconds": self.interval_seconds,
                "scheduler_running": self.is_running,
                "runs_completed": self._runs_completed,
                "runs_failed": self._runs_failed,
                "triggers_skipped": self._triggers_skipped,
                "uptime_seconds": (datetime.now() - self._start_time).total_seconds(),
                "last_run": last.to_dict() if last else None,
            }
