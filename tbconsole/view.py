"""Rendering surface used by the console engine.

The engine never draws anything itself; it tells a view which surface is
visible and what it holds. ``TerminalView`` draws to stdout, tests use a
recording subclass.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple


# Surfaces that carry an inline error line and a busy submit button.
LOGIN = "login"
SECOND_FACTOR = "second_factor"
PASSWORD_RESET = "password_reset"

LOADING = "Loading..."


PanelAction = Callable[..., Awaitable[None]]


@dataclass
class PanelContent:
    title: str
    columns: Tuple[str, ...] = ()
    rows: List[Tuple[Any, ...]] = field(default_factory=list)
    row_ids: List[Any] = field(default_factory=list)
    actions: Dict[str, PanelAction] = field(default_factory=dict)
    notes: Tuple[str, ...] = ()
    empty_message: str = "No items found"
    message: Optional[str] = None

    @classmethod
    def failure(cls, title: str, message: str) -> "PanelContent":
        return cls(title=title, message=message)


class ConsoleView:
    """No-op base; subclasses override what they draw."""

    # ---------- auth surfaces ----------
    def show_login(self) -> None:
        pass

    def show_second_factor(self) -> None:
        pass

    def show_password_reset(self) -> None:
        pass

    def show_app(self) -> None:
        pass

    def show_field_error(self, surface: str, message: str) -> None:
        pass

    def clear_field_error(self, surface: str) -> None:
        pass

    def set_busy(self, surface: str, busy: bool) -> None:
        pass

    def show_password_checklist(self, surface: str, checklist: Sequence[Tuple[str, bool]]) -> None:
        pass

    # ---------- app chrome ----------
    def set_account(self, email: Optional[str], totp_label: str) -> None:
        pass

    def set_tabs(self, tabs: Sequence[Tuple[str, str]], active: Optional[str]) -> None:
        pass

    def set_content(self, content: Any) -> None:
        pass

    # ---------- modal ----------
    def render_modal(self, session) -> None:
        pass

    def hide_modal(self) -> None:
        pass

    def set_submit_enabled(self, enabled: bool) -> None:
        pass

    # ---------- toast ----------
    def show_toast(self, toast) -> None:
        pass

    def hide_toast(self) -> None:
        pass

    async def confirm(self, message: str) -> bool:
        return False
