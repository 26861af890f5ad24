# tests/test_focus_timer.py

from __future__ import annotations

import threading
import time

import pytest

from api_client import ApiError
from client_session import ClientSession, UserSummary
from focus_timer import FocusTimer, InvalidTransition, TimerState, format_elapsed
from task_store import TaskForm, TaskStore, normalize_task

from .fakes import FakeApi, FakeCompleter, RecordingNotifier

SESSION = ClientSession(token="tok", user=UserSummary(id="u1", email="ana@example.com"))
TASK = normalize_task({"id": "t1", "title": "Write report", "date": "2024-05-01"})
OTHER = normalize_task({"id": "t2", "title": "Read", "date": "2024-05-01"})


@pytest.fixture()
def completer() -> FakeCompleter:
    return FakeCompleter()


@pytest.fixture()
def timer(completer: FakeCompleter) -> FocusTimer:
    return FocusTimer(completer, autotick=False)


def run_for(timer: FocusTimer, seconds: int) -> None:
    for _ in range(seconds):
        timer.tick()


def test_starts_idle(timer: FocusTimer) -> None:
    assert timer.state is TimerState.IDLE
    assert timer.task is None
    assert timer.elapsed == 0
    with pytest.raises(InvalidTransition):
        timer.start()


def test_select_start_pause_resume(timer: FocusTimer) -> None:
    timer.select(TASK)
    assert timer.state is TimerState.READY
    assert timer.status_label == "Ready to start"

    timer.start()
    run_for(timer, 3)
    assert timer.elapsed == 3
    assert timer.is_running
    assert timer.display == "00:03"
    assert timer.status_label == "Focusing..."

    timer.pause()
    run_for(timer, 5)
    assert timer.elapsed == 3
    assert timer.status_label == "Paused"

    timer.start()
    run_for(timer, 2)
    assert timer.elapsed == 5


def test_ticks_only_count_while_running(timer: FocusTimer) -> None:
    run_for(timer, 2)
    timer.select(TASK)
    run_for(timer, 2)
    assert timer.elapsed == 0


def test_select_resets_and_discards(timer: FocusTimer, completer: FakeCompleter) -> None:
    timer.select(TASK)
    timer.start()
    run_for(timer, 10)

    timer.select(OTHER)

    assert timer.state is TimerState.READY
    assert timer.task.id == "t2"
    assert timer.elapsed == 0
    assert completer.attempts == 0


def test_invalid_transitions(timer: FocusTimer) -> None:
    timer.select(TASK)
    with pytest.raises(InvalidTransition):
        timer.pause()
    with pytest.raises(InvalidTransition):
        timer.complete()
    with pytest.raises(InvalidTransition):
        timer.cancel()

    timer.start()
    with pytest.raises(InvalidTransition):
        timer.start()
    # Nothing to discard yet.
    with pytest.raises(InvalidTransition):
        timer.cancel()


def test_cancel_discards_without_persisting(timer: FocusTimer, completer: FakeCompleter) -> None:
    timer.select(TASK)
    timer.start()
    run_for(timer, 42)
    timer.pause()

    timer.cancel()

    assert timer.state is TimerState.IDLE
    assert timer.task is None
    assert timer.elapsed == 0
    assert completer.attempts == 0


def test_complete_persists_elapsed_and_returns_to_idle(timer: FocusTimer, completer: FakeCompleter) -> None:
    timer.select(TASK)
    timer.start()
    run_for(timer, 125)

    timer.complete()

    assert completer.completed == [("t1", 125)]
    assert timer.state is TimerState.IDLE
    assert timer.task is None
    with pytest.raises(InvalidTransition):
        timer.cancel()
    assert completer.completed == [("t1", 125)]


def test_failed_completion_pauses_and_keeps_elapsed() -> None:
    completer = FakeCompleter(failures=1)
    timer = FocusTimer(completer, autotick=False)
    timer.select(TASK)
    timer.start()
    run_for(timer, 30)

    with pytest.raises(ApiError):
        timer.complete()

    assert timer.state is TimerState.PAUSED
    assert timer.elapsed == 30
    assert timer.task.id == "t1"

    timer.complete()
    assert completer.completed == [("t1", 30)]
    assert timer.state is TimerState.IDLE


def test_completion_saved_but_refetch_failed_still_ends_idle() -> None:
    api = FakeApi()
    store = TaskStore(api, SESSION, notifier=RecordingNotifier())
    store.create_task(TaskForm(title="Write report", date="2024-05-01"))
    timer = FocusTimer(store, autotick=False)
    timer.select(store.tasks[0])
    timer.start()
    run_for(timer, 5)
    api.fail_reads = ApiError("Failed to fetch tasks", status=500)

    timer.complete()

    assert api.records[0]["is_completed"] is True
    assert api.records[0]["time_spent"] == 5
    assert timer.state is TimerState.IDLE
    assert timer.elapsed == 0


def ticker_threads() -> list[threading.Thread]:
    return [t for t in threading.enumerate() if t.name == "focus-ticker"]


def test_stopped_tickers_do_not_outlive_transitions(completer: FakeCompleter) -> None:
    timer = FocusTimer(completer, tick_seconds=0.01)
    timer.select(TASK)
    timer.start()
    time.sleep(0.05)
    timer.pause()
    assert ticker_threads() == []

    timer.start()
    time.sleep(0.05)
    timer.cancel()
    assert ticker_threads() == []

    timer.select(TASK)
    timer.start()
    timer.select(OTHER)
    assert ticker_threads() == []


def test_background_ticker_advances_and_stops(completer: FakeCompleter) -> None:
    timer = FocusTimer(completer, tick_seconds=0.01)
    timer.select(TASK)
    timer.start()
    time.sleep(0.2)
    timer.pause()
    frozen = timer.elapsed
    assert frozen > 0
    time.sleep(0.1)
    assert timer.elapsed == frozen

    timer.cancel()
    assert timer.state is TimerState.IDLE


@pytest.mark.parametrize(
    "seconds,expected",
    [(0, "00:00"), (59, "00:59"), (125, "02:05"), (3600, "01:00:00"), (3725, "01:02:05")],
)
def test_format_elapsed(seconds: int, expected: str) -> None:
    assert format_elapsed(seconds) == expected
