from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import requests

from config import get_settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A failed API call; ``message`` is the server's text, shown verbatim to the user."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class NotAuthenticated(ApiError):
    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message, status=None)


def api_url(path: str, base_url: Optional[str] = None) -> str:
    base = (get_settings().api_url if base_url is None else base_url).rstrip("/")
    normalized = path if path.startswith("/") else f"/{path}"
    return f"{base}{normalized}"


class ApiClient:
    """
    Thin JSON-over-HTTP client for the task API.

    ``http`` is anything exposing ``request(method, url, json=, headers=)``;
    a ``requests.Session`` by default. No retries and no timeout: a failed
    call surfaces immediately as ApiError.
    """

    def __init__(self, base_url: Optional[str] = None, http: Any = None):
        self.base_url = get_settings().api_url if base_url is None else base_url.rstrip("/")
        self.http = http if http is not None else requests.Session()

    @staticmethod
    def _read_json(response: Any) -> Any:
        text = response.text
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError:
            return None

    def request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
        fallback: str = "Request failed",
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        if token is not None:
            headers["Authorization"] = f"Bearer {token}"
        url = api_url(path, self.base_url)
        try:
            r = self.http.request(method, url, json=payload, headers=headers)
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(str(e) or fallback) from e
        data = self._read_json(r)
        if r.status_code >= 400:
            message = data.get("message") if isinstance(data, dict) else None
            logger.debug("%s %s -> %s", method, path, r.status_code)
            raise ApiError(message or fallback, status=r.status_code)
        return data
