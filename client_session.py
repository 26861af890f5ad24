"""Client-side authentication: the session context object and its durable storage.

The session is an explicit object handed to whatever needs it (the task
store, the API calls); nothing reads credentials from global state.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from api_client import ApiClient, ApiError, NotAuthenticated
from config import get_settings

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"


class PasswordMismatch(ApiError):
    def __init__(self) -> None:
        super().__init__("New passwords don't match")


class WeakPassword(ApiError):
    def __init__(self, min_length: int) -> None:
        super().__init__(f"Password must be at least {min_length} characters")


@dataclass(frozen=True)
class UserSummary:
    id: str
    email: str
    fullName: str = ""

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "UserSummary":
        return UserSummary(
            id=str(data.get("id") or data.get("_id") or "unknown"),
            email=data.get("email") or "",
            fullName=data.get("fullName") or data.get("full_name") or "",
        )


@dataclass(frozen=True)
class ClientSession:
    token: str
    user: UserSummary


class SessionStorage:
    """
    Durable key/value storage for the session, kept as one JSON file.

    Only the fixed keys ``token`` and ``user`` are written; ``clear`` removes
    both.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else get_settings().session_path

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable session file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> Optional[ClientSession]:
        data = self._read()
        token = data.get(TOKEN_KEY)
        user = data.get(USER_KEY)
        if not token or not isinstance(user, dict):
            return None
        return ClientSession(token=token, user=UserSummary.from_dict(user))

    def save(self, session: ClientSession) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {TOKEN_KEY: session.token, USER_KEY: asdict(session.user)}
        self.path.write_text(json.dumps(payload), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class AuthClient:
    """Sign-up, sign-in, sign-out and password change against the auth API."""

    def __init__(self, api: ApiClient, storage: SessionStorage) -> None:
        self.api = api
        self.storage = storage
        self.session: Optional[ClientSession] = None

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    def restore(self) -> Optional[ClientSession]:
        """Reload a session persisted by an earlier run, if both keys are present."""
        self.session = self.storage.load()
        return self.session

    def _establish(self, data: Any, email: str, full_name: str = "", fallback: str = "") -> ClientSession:
        if not isinstance(data, dict) or not data.get("token"):
            raise ApiError(fallback)
        user = data.get("user") or {"id": "unknown", "email": email, "fullName": full_name}
        session = ClientSession(token=data["token"], user=UserSummary.from_dict(user))
        self.storage.save(session)
        self.session = session
        logger.info("Signed in as user id=%s", session.user.id)
        return session

    def sign_up(self, email: str, password: str, full_name: str = "") -> ClientSession:
        data = self.api.request(
            "POST",
            "/api/auth/signup",
            payload={"email": email, "password": password, "fullName": full_name},
            fallback="Signup failed",
        )
        return self._establish(data, email, full_name, fallback="Signup failed")

    def sign_in(self, email: str, password: str) -> ClientSession:
        data = self.api.request(
            "POST",
            "/api/auth/login",
            payload={"email": email, "password": password},
            fallback="Login failed",
        )
        return self._establish(data, email, fallback="Login failed")

    def sign_out(self) -> None:
        self.storage.clear()
        self.session = None

    def change_password(self, new_password: str, confirm: str) -> str:
        if new_password != confirm:
            raise PasswordMismatch()
        min_length = get_settings().password_min_length
        if len(new_password) < min_length:
            raise WeakPassword(min_length)
        if self.session is None:
            raise NotAuthenticated()
        data = self.api.request(
            "PUT",
            "/api/auth/password",
            token=self.session.token,
            payload={"password": new_password},
            fallback="Failed to update password",
        )
        return (data or {}).get("message", "Password updated")
