"""Client-side task store.

Keeps an in-memory copy of the signed-in user's full task list. Every
successful create/update/delete is followed by a full re-fetch, so the cache
only ever holds what the server returned; on failure it is left untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Union

from api_client import ApiClient, ApiError, NotAuthenticated
from client_session import ClientSession
from schemas import CATEGORIES, DEFAULT_CATEGORY, DEFAULT_PRIORITY, PRIORITIES

logger = logging.getLogger(__name__)

# (title, description, is_error)
Notifier = Callable[[str, str, bool], None]

DateLike = Union[str, date]


def log_notifier(title: str, description: str, is_error: bool = False) -> None:
    level = logging.WARNING if is_error else logging.INFO
    logger.log(level, "%s: %s", title, description)


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _first(raw: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        v = raw.get(k)
        if v is not None:
            return v
    return default


def _seconds(value: Any) -> int:
    try:
        seconds = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(seconds, 0)


def date_key(value: DateLike) -> str:
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class TaskRecord:
    id: str
    user_id: str
    title: str
    description: str
    category: str
    priority: str
    date: str
    time: str
    is_completed: bool
    time_spent: int
    created_at: str
    updated_at: str


@dataclass(frozen=True)
class TaskStats:
    total: int
    completed: int
    pending: int


@dataclass
class TaskForm:
    title: str
    date: DateLike
    description: str = ""
    category: str = DEFAULT_CATEGORY
    priority: str = DEFAULT_PRIORITY
    time: str = ""

    def payload(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "priority": self.priority,
            "date": date_key(self.date),
            "time": self.time,
        }


def normalize_task(raw: Dict[str, Any]) -> TaskRecord:
    """Reshape a server record into a TaskRecord, tolerating alternate spellings."""
    category = _first(raw, "category", default=DEFAULT_CATEGORY)
    priority = _first(raw, "priority", default=DEFAULT_PRIORITY)
    return TaskRecord(
        id=str(_first(raw, "id", "_id", default="")),
        user_id=str(_first(raw, "user_id", "user", default="")),
        title=_first(raw, "title", default=""),
        description=_first(raw, "description", default=""),
        category=category if category in CATEGORIES else DEFAULT_CATEGORY,
        priority=priority if priority in PRIORITIES else DEFAULT_PRIORITY,
        date=_first(raw, "date", default=""),
        time=_first(raw, "time", default=""),
        is_completed=bool(_first(raw, "is_completed", "completed", default=False)),
        time_spent=_seconds(_first(raw, "time_spent", default=0)),
        created_at=str(_first(raw, "created_at", "createdAt", default=None) or _iso_now()),
        updated_at=str(_first(raw, "updated_at", "updatedAt", default=None) or _iso_now()),
    )


def normalize_tasks(data: Any) -> List[TaskRecord]:
    if isinstance(data, dict):
        data = data.get("tasks") or []
    if not isinstance(data, list):
        return []
    return [normalize_task(t) for t in data if isinstance(t, dict)]


# ---- derived views (pure) ----

def tasks_for_date(tasks: Iterable[TaskRecord], day: DateLike) -> List[TaskRecord]:
    key = date_key(day)
    return [t for t in tasks if t.date == key]


def task_stats(tasks: Iterable[TaskRecord]) -> TaskStats:
    tasks = list(tasks)
    total = len(tasks)
    completed = sum(1 for t in tasks if t.is_completed)
    return TaskStats(total=total, completed=completed, pending=total - completed)


def task_dates(tasks: Iterable[TaskRecord]) -> Set[str]:
    return {t.date for t in tasks}


def format_time_spent(seconds: int) -> str:
    hours, rem = divmod(int(seconds), 3600)
    minutes = rem // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


class TaskStore:
    def __init__(
        self,
        api: ApiClient,
        session: Optional[ClientSession] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.api = api
        self.session = session
        self.notify: Notifier = notifier or log_notifier
        self.loading = False
        self._tasks: List[TaskRecord] = []

    def set_session(self, session: Optional[ClientSession]) -> None:
        """Swap the signed-in user; the cache is dropped until the next refresh."""
        self.session = session
        self._tasks = []

    @property
    def tasks(self) -> List[TaskRecord]:
        return list(self._tasks)

    def get(self, task_id: str) -> Optional[TaskRecord]:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def _token(self) -> str:
        if self.session is None:
            raise NotAuthenticated()
        return self.session.token

    def refresh(self) -> List[TaskRecord]:
        if self.session is None:
            self._tasks = []
            return []
        self.loading = True
        try:
            data = self.api.request("GET", "/api/tasks", token=self.session.token, fallback="Failed to fetch tasks")
        except ApiError as e:
            self.notify("Error fetching tasks", e.message, True)
            raise
        finally:
            self.loading = False
        self._tasks = normalize_tasks(data)
        logger.debug("Task cache refreshed count=%d", len(self._tasks))
        return self.tasks

    def _write(self, method: str, path: str, payload: Optional[Dict[str, Any]], fallback: str, error_title: str) -> Any:
        try:
            data = self.api.request(method, path, token=self._token(), payload=payload, fallback=fallback)
        except ApiError as e:
            self.notify(error_title, e.message, True)
            raise
        # The write already landed; a failed re-fetch is reported by refresh() and not raised.
        try:
            self.refresh()
        except ApiError:
            logger.warning("Re-fetch after %s %s failed; cache is stale", method, path)
        return data

    def create_task(self, form: TaskForm) -> TaskRecord:
        if not form.title.strip():
            err = ApiError("Title is required")
            self.notify("Error creating task", err.message, True)
            raise err
        data = self._write("POST", "/api/tasks", form.payload(), "Failed to create task", "Error creating task")
        self.notify("Task created", "Your task has been added successfully.", False)
        return normalize_task(data)

    def update_task(self, task_id: str, **changes: Any) -> TaskRecord:
        if "date" in changes:
            changes["date"] = date_key(changes["date"])
        data = self._write("PUT", f"/api/tasks/{task_id}", changes, "Failed to update task", "Error updating task")
        return normalize_task(data)

    def complete_task(self, task_id: str, time_spent: int) -> TaskRecord:
        return self.update_task(task_id, is_completed=True, time_spent=int(time_spent))

    def delete_task(self, task_id: str) -> None:
        self._write("DELETE", f"/api/tasks/{task_id}", None, "Failed to delete task", "Error deleting task")
        self.notify("Task deleted", "Your task has been removed.", False)

    # ---- views over the cache ----

    def tasks_for_date(self, day: DateLike) -> List[TaskRecord]:
        return tasks_for_date(self._tasks, day)

    def stats(self) -> TaskStats:
        return task_stats(self._tasks)

    def task_dates(self) -> Set[str]:
        return task_dates(self._tasks)
