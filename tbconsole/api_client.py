from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import requests

from .config import dlog
from .errors import RequestError


def _is_json(content_type: str) -> bool:
    return "application/json" in (content_type or "").lower()


def _error_message(data: Any, status: int) -> str:
    if isinstance(data, dict):
        msg = data.get("error")
        if isinstance(msg, str) and msg.strip():
            return msg
    return f"Request failed: {status}"


class ApiClient:
    """Outbound calls to the ticketbot backend with uniform error translation.

    Credentials are ambient: the session's cookie jar carries the login
    cookie, and an optional API key is sent as a bearer token. The HTTP
    session may be any object with a requests-style ``request()`` method.
    """

    def __init__(
        self,
        *,
        base_url: str,
        session: Any = None,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        verify: bool = True,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._owns_session = session is None
        if session is None:
            session = requests.Session()
            session.verify = verify
        self._session = session

    @property
    def base_url(self) -> str:
        return self._base_url

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def call(self, method: str, path: str, body: Any = None) -> Any:
        """Send one request; returns decoded JSON, or None for non-JSON success."""
        return await asyncio.to_thread(self._call_sync, method.upper(), path, body)

    def _call_sync(self, method: str, path: str, body: Any) -> Any:
        url = f"{self._base_url}{path}"
        kwargs: Dict[str, Any] = {"headers": self._headers(), "timeout": self._timeout}
        if body is not None:
            kwargs["json"] = body

        dlog("api_request", {"method": method, "path": path, "body": body})
        try:
            resp = self._session.request(method, url, **kwargs)
        except Exception as e:
            dlog("api_error", {"method": method, "path": path, "error": str(e)})
            raise RequestError(0, f"Could not reach backend: {e}") from e

        status = resp.status_code
        ok = 200 <= status < 300
        if not _is_json(resp.headers.get("content-type", "")):
            dlog("api_response", {"method": method, "path": path, "status": status, "json": False})
            if not ok:
                raise RequestError(status, f"Request failed: {status}")
            return None

        try:
            data = resp.json()
        except Exception as e:
            dlog("api_error", {"method": method, "path": path, "status": status, "error": "invalid json"})
            if not ok:
                raise RequestError(status, f"Request failed: {status}") from e
            raise RequestError(status, "Invalid JSON in response") from e

        dlog("api_response", {"method": method, "path": path, "status": status, "data": data})
        if not ok:
            raise RequestError(status, _error_message(data, status))
        return data

    def close(self) -> None:
        if self._owns_session:
            self._session.close()
