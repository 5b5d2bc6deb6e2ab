from __future__ import annotations

import os
import json
import sys
from dataclasses import dataclass
from typing import Any, Optional


# Debug flag: default off. Enable via CLI arg "--console-debug" or env CONSOLE_DEBUG=1.
DEBUG = "--console-debug" in sys.argv or os.environ.get("CONSOLE_DEBUG") == "1"

# Keys whose values must never reach the debug output.
SECRET_KEYS = frozenset(
    {
        "password",
        "current_password",
        "new_password",
        "code",
        "secret",
        "qr_png",
        "pending_token",
        "recovery_codes",
        "key",
        "api_key",
        "token",
    }
)


def redact(data: Any) -> Any:
    """Return a copy of data with secret-bearing fields masked."""
    if isinstance(data, dict):
        return {
            k: ("***" if k in SECRET_KEYS and v not in (None, "") else redact(v))
            for k, v in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [redact(v) for v in data]
    return data


def dlog(label: str, data):
    if not DEBUG:
        return
    try:
        printable = data if isinstance(data, str) else json.dumps(redact(data), indent=2, ensure_ascii=False)
    except Exception:
        printable = str(data)
    print(f"[console-debug] {label}: {printable}")


def _truthy(val: Optional[str], default: bool = False) -> bool:
    if val is None or not val.strip():
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


def _number(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        dlog("config_invalid_number", f"{name}={raw!r}; using {default}")
        return default
    if value <= 0:
        dlog("config_invalid_number", f"{name}={raw!r}; using {default}")
        return default
    return value


DEFAULT_BASE_URL = "http://localhost:8080"


@dataclass(frozen=True)
class ConsoleConfig:
    base_url: str = DEFAULT_BASE_URL
    api_key: Optional[str] = None
    request_timeout: float = 30.0
    verify_tls: bool = True
    poll_interval: float = 3.0
    toast_seconds: float = 3.5
    location_file: Optional[str] = None
    max_concurrent_syncs: int = 5

    def public(self) -> dict:
        """Snapshot safe for logging; the API key is reported as present/absent only."""
        return {
            "base_url": self.base_url,
            "has_api_key": bool(self.api_key),
            "request_timeout": self.request_timeout,
            "verify_tls": self.verify_tls,
            "poll_interval": self.poll_interval,
            "toast_seconds": self.toast_seconds,
            "location_file": self.location_file,
            "max_concurrent_syncs": self.max_concurrent_syncs,
        }


def load_console_config() -> ConsoleConfig:
    """Read console settings from env."""
    base_url = (os.environ.get("TICKETBOT_URL") or DEFAULT_BASE_URL).strip().rstrip("/") or DEFAULT_BASE_URL
    api_key = (os.environ.get("TICKETBOT_API_KEY") or "").strip() or None

    cfg = ConsoleConfig(
        base_url=base_url,
        api_key=api_key,
        request_timeout=_number("CONSOLE_REQUEST_TIMEOUT", 30.0),
        verify_tls=_truthy(os.environ.get("CONSOLE_VERIFY_TLS"), default=True),
        poll_interval=_number("CONSOLE_POLL_INTERVAL", 3.0),
        toast_seconds=_number("CONSOLE_TOAST_SECONDS", 3.5),
        location_file=(os.environ.get("CONSOLE_LOCATION_FILE") or "").strip() or None,
        max_concurrent_syncs=int(_number("CONSOLE_MAX_CONCURRENT_SYNCS", 5)),
    )
    dlog("config_loaded", cfg.public())
    return cfg
