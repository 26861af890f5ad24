"""Settings loaded from environment variables.

One Settings object for the whole app. No secrets are required at import
time; the defaults are suitable for local development only.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import List


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


@dataclass(frozen=True)
class Settings:
    # ---- Auth ----
    jwt_secret: str
    jwt_alg: str
    access_token_expire_minutes: int
    password_min_length: int

    # ---- Database ----
    database_url: str
    database_name: str

    # ---- HTTP ----
    cors_origins: List[str]
    port: int
    log_level: str

    # ---- Client ----
    api_url: str
    session_path: Path

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            jwt_secret=_env("JWT_SECRET", "dev-secret-change-me"),
            jwt_alg=_env("JWT_ALG", "HS256"),
            access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7),
            password_min_length=_env_int("PASSWORD_MIN_LENGTH", 6),
            database_url=_env("DATABASE_URL", "mongodb://localhost:27017"),
            database_name=_env("DATABASE_NAME", "focus_tasks"),
            cors_origins=_env_list("CORS_ORIGINS", ["*"]),
            port=_env_int("PORT", 8000),
            log_level=_env("LOG_LEVEL", "INFO"),
            api_url=_env("TASKS_API_URL", "").rstrip("/"),
            session_path=Path(_env("TASKS_SESSION_PATH", "~/.focus_tasks/session.json")).expanduser(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
