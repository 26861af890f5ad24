"""
Application Database Schemas

Each Pydantic model below maps to a MongoDB collection whose name is the lowercase class name.
- User -> "user"
- Task -> "task"

The *Body models are used for validation at API boundaries. Additional computed fields
(like _id, timestamps) are injected by database helpers.
"""
import re
from datetime import date as Date, datetime
from typing import Annotated, Any, Dict, Literal, Optional, get_args

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

Category = Literal["Work", "Personal", "Study", "Health"]
Priority = Literal["Low", "Medium", "High"]

CATEGORIES = get_args(Category)
PRIORITIES = get_args(Priority)
DEFAULT_CATEGORY = "Personal"
DEFAULT_PRIORITY = "Medium"

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^\d{2}:\d{2}$")


def _check_date(v: str) -> str:
    if not _DATE_RE.match(v):
        raise ValueError("date must be YYYY-MM-DD")
    Date.fromisoformat(v)
    return v


def _check_time(v: Optional[str]) -> str:
    if not v:
        return ""
    if not _TIME_RE.match(v):
        raise ValueError("time must be HH:MM")
    hours, minutes = (int(p) for p in v.split(":"))
    if hours > 23 or minutes > 59:
        raise ValueError("time must be HH:MM")
    return v


def _check_title(v: str) -> str:
    if not v.strip():
        raise ValueError("title is required")
    return v


TaskTitle = Annotated[str, AfterValidator(_check_title)]
TaskDate = Annotated[str, AfterValidator(_check_date)]
TaskTime = Annotated[Optional[str], AfterValidator(_check_time)]


class User(BaseModel):
    email: str = Field(..., description="Email address, unique, stored as given")
    password_hash: str = Field(..., description="BCrypt hashed password")
    full_name: str = Field("", description="Full name")


class Task(BaseModel):
    user_id: str = Field(..., description="Owner user _id string")
    title: str
    description: str = ""
    category: Category = DEFAULT_CATEGORY
    priority: Priority = DEFAULT_PRIORITY
    date: str = Field(..., description="YYYY-MM-DD")
    time: str = Field("", description="HH:MM or empty")
    is_completed: bool = False
    time_spent: int = Field(0, ge=0, description="seconds")


class SignupBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    full_name: str = Field("", alias="fullName")


class LoginBody(BaseModel):
    email: str
    password: str


class PasswordBody(BaseModel):
    # Length is checked by the auth service so a short password reports WeakPassword.
    password: Optional[str] = None


class TaskBody(BaseModel):
    title: TaskTitle
    description: Optional[str] = ""
    category: Category = DEFAULT_CATEGORY
    priority: Priority = DEFAULT_PRIORITY
    date: TaskDate
    time: TaskTime = ""
    is_completed: bool = False
    time_spent: int = Field(0, ge=0)

    def document(self) -> Dict[str, Any]:
        data = self.model_dump()
        data["description"] = data["description"] or ""
        return data


class TaskUpdateBody(BaseModel):
    title: Optional[TaskTitle] = None
    description: Optional[str] = None
    category: Optional[Category] = None
    priority: Optional[Priority] = None
    date: Optional[TaskDate] = None
    time: Optional[TaskTime] = None
    is_completed: Optional[bool] = None
    time_spent: Optional[int] = Field(None, ge=0)

    def changes(self) -> Dict[str, Any]:
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


class TaskOut(BaseModel):
    id: str
    user_id: str
    title: str
    description: str
    category: Category
    priority: Priority
    date: str
    time: str
    is_completed: bool
    time_spent: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "TaskOut":
        return cls(
            id=doc["_id"],
            user_id=doc["user_id"],
            title=doc["title"],
            description=doc.get("description") or "",
            category=doc.get("category", DEFAULT_CATEGORY),
            priority=doc.get("priority", DEFAULT_PRIORITY),
            date=doc["date"],
            time=doc.get("time") or "",
            is_completed=doc.get("is_completed", False),
            time_spent=doc.get("time_spent", 0),
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )
