from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Optional

from .config import dlog


INFO = "info"
SUCCESS = "success"
ERROR = "error"


@dataclass(frozen=True)
class Toast:
    message: str
    level: str = INFO
    shown_at: float = field(default_factory=time.time)


class ToastNotifier:
    """Single-slot transient feedback; a new toast replaces the current one."""

    def __init__(self, view, duration: float = 3.5) -> None:
        self._view = view
        self.duration = duration
        self.current: Optional[Toast] = None
        self._timer: Optional[asyncio.TimerHandle] = None

    def show(self, message: str, level: str = INFO) -> Toast:
        toast = Toast(message=message, level=level)
        self.current = toast
        self._view.show_toast(toast)
        dlog("toast", {"level": level, "message": message})
        self._restart_timer(toast)
        return toast

    def info(self, message: str) -> Toast:
        return self.show(message, INFO)

    def success(self, message: str) -> Toast:
        return self.show(message, SUCCESS)

    def error(self, message: str) -> Toast:
        return self.show(message, ERROR)

    def hide(self) -> None:
        self._cancel_timer()
        if self.current is None:
            return
        self.current = None
        self._view.hide_toast()

    def _expire(self, toast: Toast) -> None:
        self._timer = None
        if self.current is toast:
            self.current = None
            self._view.hide_toast()

    def _restart_timer(self, toast: Toast) -> None:
        self._cancel_timer()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: the toast stays until replaced or hidden.
            return
        self._timer = loop.call_later(self.duration, self._expire, toast)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
