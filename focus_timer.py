"""Focus timer: a single-task stopwatch.

    IDLE --select--> READY --start--> RUNNING <--pause/start--> PAUSED
    RUNNING|PAUSED --complete--> COMPLETING --ok--> IDLE
                                            --error--> PAUSED
    RUNNING|PAUSED --cancel--> IDLE (nothing persisted)

Elapsed seconds only grow while RUNNING, driven by a background ticker the
timer owns. Nothing is persisted until ``complete`` hands the elapsed value
to the task store.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from task_store import TaskRecord

logger = logging.getLogger(__name__)


class TimerState(str, Enum):
    IDLE = "idle"
    READY = "ready"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETING = "completing"


class InvalidTransition(Exception):
    def __init__(self, action: str, state: TimerState) -> None:
        super().__init__(f"cannot {action} while {state.value}")
        self.action = action
        self.state = state


class TaskCompleter(Protocol):
    def complete_task(self, task_id: str, time_spent: int) -> Any: ...


def format_elapsed(seconds: int) -> str:
    hrs, rem = divmod(int(seconds), 3600)
    mins, secs = divmod(rem, 60)
    if hrs > 0:
        return f"{hrs:02d}:{mins:02d}:{secs:02d}"
    return f"{mins:02d}:{secs:02d}"


class _Ticker:
    """Calls ``on_tick`` every ``interval`` seconds on a daemon thread until stopped."""

    def __init__(self, interval: float, on_tick: Callable[["_Ticker"], None]) -> None:
        self.interval = interval
        self._on_tick = on_tick
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="focus-ticker", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: float) -> None:
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self._on_tick(self)


class FocusTimer:
    def __init__(
        self,
        completer: TaskCompleter,
        *,
        tick_seconds: float = 1.0,
        autotick: bool = True,
    ) -> None:
        self.completer = completer
        self.tick_seconds = tick_seconds
        # autotick=False leaves time to explicit tick() calls.
        self.autotick = autotick
        self._lock = threading.RLock()
        self._state = TimerState.IDLE
        self._task: Optional[TaskRecord] = None
        self._elapsed = 0
        self._ticker: Optional[_Ticker] = None

    # ---- read side ----

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def task(self) -> Optional[TaskRecord]:
        return self._task

    @property
    def elapsed(self) -> int:
        return self._elapsed

    @property
    def is_running(self) -> bool:
        return self._state is TimerState.RUNNING

    @property
    def status_label(self) -> str:
        if self._state is TimerState.RUNNING:
            return "Focusing..."
        if self._elapsed > 0:
            return "Paused"
        return "Ready to start"

    @property
    def display(self) -> str:
        return format_elapsed(self._elapsed)

    # ---- ticker ----

    def _start_ticker(self) -> None:
        if not self.autotick:
            return
        self._ticker = _Ticker(self.tick_seconds, self._on_tick)
        self._ticker.start()

    def _stop_ticker(self) -> Optional[_Ticker]:
        """Signal the ticker and detach it; the caller joins it once the lock is released."""
        ticker, self._ticker = self._ticker, None
        if ticker is not None:
            ticker.stop()
        return ticker

    def _join(self, ticker: Optional[_Ticker]) -> None:
        # Outside the lock: a ticker blocked in _on_tick needs it to exit.
        if ticker is not None:
            ticker.join(self.tick_seconds + 1.0)

    def _on_tick(self, ticker: _Ticker) -> None:
        with self._lock:
            # A ticker stopped while waiting on the lock must not count.
            if ticker is self._ticker:
                self.tick()

    def tick(self) -> int:
        """Advance one second if running."""
        with self._lock:
            if self._state is TimerState.RUNNING:
                self._elapsed += 1
            return self._elapsed

    # ---- transitions ----

    def _require(self, action: str, *allowed: TimerState) -> None:
        if self._state not in allowed:
            raise InvalidTransition(action, self._state)

    def select(self, task: Optional[TaskRecord]) -> None:
        """Focus on ``task``. Any session in progress is discarded, not persisted."""
        with self._lock:
            self._require("select", TimerState.IDLE, TimerState.READY, TimerState.RUNNING, TimerState.PAUSED)
            stopped = self._stop_ticker()
            if self._elapsed > 0:
                logger.info("Discarding %ss on task id=%s", self._elapsed, self._task.id if self._task else None)
            self._task = task
            self._elapsed = 0
            self._state = TimerState.READY if task is not None else TimerState.IDLE
        self._join(stopped)

    def start(self) -> None:
        with self._lock:
            self._require("start", TimerState.READY, TimerState.PAUSED)
            self._state = TimerState.RUNNING
            self._start_ticker()

    def pause(self) -> None:
        with self._lock:
            self._require("pause", TimerState.RUNNING)
            stopped = self._stop_ticker()
            self._state = TimerState.PAUSED
        self._join(stopped)

    def cancel(self) -> None:
        with self._lock:
            self._require("cancel", TimerState.RUNNING, TimerState.PAUSED)
            if self._elapsed <= 0:
                raise InvalidTransition("cancel", self._state)
            stopped = self._stop_ticker()
            self._task = None
            self._elapsed = 0
            self._state = TimerState.IDLE
        self._join(stopped)

    def complete(self) -> Any:
        """
        Persist the elapsed time through the task store.

        On success the timer returns to IDLE. On failure it falls back to
        PAUSED with the elapsed time intact and the error is re-raised so
        the caller can report it and retry.
        """
        with self._lock:
            self._require("complete", TimerState.RUNNING, TimerState.PAUSED)
            stopped = self._stop_ticker()
            self._state = TimerState.COMPLETING
            task_id = self._task.id
            time_spent = self._elapsed
        self._join(stopped)

        try:
            result = self.completer.complete_task(task_id, time_spent)
        except Exception:
            with self._lock:
                self._state = TimerState.PAUSED
            logger.warning("Completion failed for task id=%s; timer paused at %ss", task_id, time_spent)
            raise

        with self._lock:
            self._task = None
            self._elapsed = 0
            self._state = TimerState.IDLE
        logger.info("Completed task id=%s time_spent=%s", task_id, time_spent)
        return result
