# tests/fakes.py

from __future__ import annotations

from typing import Any

from api_client import ApiError


class FakeApi:
    """
    In-memory stand-in for ApiClient used by task store tests.

    - Records every call for assertions
    - Serves records in the server's alternate spellings (_id, user, createdAt)
      so normalization is exercised
    - ``fail_next`` makes the next call raise that error
    - ``fail_reads`` makes every GET raise that error
    """

    def __init__(self) -> None:
        self.records: list[dict[str, Any]] = []
        self.calls: list[tuple[str, str, dict[str, Any] | None]] = []
        self.fail_next: ApiError | None = None
        # Raised by every GET while set; writes still succeed.
        self.fail_reads: ApiError | None = None
        self._seq = 0

    def request(self, method: str, path: str, *, token=None, payload=None, fallback: str = "") -> Any:
        self.calls.append((method, path, payload))
        if self.fail_next is not None:
            err, self.fail_next = self.fail_next, None
            raise err

        if method == "GET":
            if self.fail_reads is not None:
                raise self.fail_reads
            return [dict(r) for r in self.records]
        if method == "POST":
            self._seq += 1
            rec = {"_id": f"t{self._seq}", "user": "u1", **payload, "createdAt": "2024-05-01T00:00:00Z"}
            self.records.append(rec)
            return dict(rec)

        task_id = path.rsplit("/", 1)[-1]
        rec = next((r for r in self.records if r["_id"] == task_id), None)
        if rec is None:
            raise ApiError("Task not found", status=404)
        if method == "PUT":
            rec.update(payload or {})
            return dict(rec)
        if method == "DELETE":
            self.records.remove(rec)
            return {"message": "Task deleted"}
        raise AssertionError(f"unexpected method {method}")

    def methods(self) -> list[str]:
        return [m for m, _, _ in self.calls]


class FakeCompleter:
    """Task completer for timer tests; optionally fails a number of times first."""

    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.completed: list[tuple[str, int]] = []
        self.attempts = 0

    def complete_task(self, task_id: str, time_spent: int) -> dict:
        self.attempts += 1
        if self.failures > 0:
            self.failures -= 1
            raise ApiError("Failed to update task", status=500)
        self.completed.append((task_id, time_spent))
        return {"id": task_id, "is_completed": True, "time_spent": time_spent}


class RecordingNotifier:
    def __init__(self) -> None:
        self.events: list[tuple[str, str, bool]] = []

    def __call__(self, title: str, description: str, is_error: bool = False) -> None:
        self.events.append((title, description, is_error))
