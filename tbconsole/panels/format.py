from __future__ import annotations

from datetime import datetime
from typing import Optional


def _parse(value: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None


def fmt_datetime(value: Optional[str]) -> str:
    if not value:
        return "-"
    parsed = _parse(value)
    if parsed is None:
        return str(value)
    return parsed.strftime("%Y-%m-%d %H:%M")


def fmt_date_range(start: Optional[str], end: Optional[str]) -> str:
    if not start and not end:
        return "-"

    def fmt(value: Optional[str]) -> str:
        if not value:
            return "inf"
        parsed = _parse(value)
        return parsed.strftime("%m/%d") if parsed else str(value)

    return f"{fmt(start)} - {fmt(end)}"


def badge(value) -> str:
    return "Yes" if value else "No"


def key_hint(hint: Optional[str]) -> str:
    return f"****{hint}" if hint else "-"
