from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from .config import dlog


SubmitHandler = Callable[[Dict[str, Any]], Awaitable[None]]

FIELD_KINDS = ("text", "password", "select", "multiselect", "checkbox", "date", "number")


@dataclass(frozen=True)
class FormField:
    name: str
    label: str
    kind: str = "text"
    options: Tuple[Tuple[Any, str], ...] = ()
    default: Any = None
    placeholder: Optional[str] = None
    hint: Optional[str] = None
    password_checklist: bool = False

    def __post_init__(self) -> None:
        if self.kind not in FIELD_KINDS:
            raise ValueError(f"Unknown field kind: {self.kind}")


@dataclass(frozen=True)
class ModalBody:
    lines: Tuple[str, ...] = ()
    fields: Tuple[FormField, ...] = ()

    def field(self, name: str) -> Optional[FormField]:
        for f in self.fields:
            if f.name == name:
                return f
        return None


@dataclass(eq=False)
class ModalSession:
    title: str
    body: ModalBody
    on_submit: Optional[SubmitHandler]
    submit_label: str = "Create"
    submitting: bool = False
    actions: Tuple[str, ...] = ("Cancel",)
    on_done: Optional[Callable[[], Awaitable[None]]] = field(default=None, repr=False)

    @property
    def submittable(self) -> bool:
        return self.on_submit is not None and not self.submitting


class ModalEngine:
    """Owns the single live dialog and its pending submit action."""

    def __init__(self, view) -> None:
        self._view = view
        self.session: Optional[ModalSession] = None

    @property
    def is_open(self) -> bool:
        return self.session is not None

    def is_current(self, session: Optional[ModalSession]) -> bool:
        return session is not None and session is self.session

    def open(
        self,
        title: str,
        body: ModalBody,
        on_submit: Optional[SubmitHandler],
        submit_label: str = "Create",
    ) -> ModalSession:
        # No stacking: a new dialog replaces the content and callback of the old one.
        session = ModalSession(title=title, body=body, on_submit=on_submit, submit_label=submit_label)
        self.session = session
        dlog("modal_open", {"title": title, "fields": [f.name for f in body.fields]})
        self._view.render_modal(session)
        self._view.set_submit_enabled(True)
        return session

    async def submit(self, values: Optional[Dict[str, Any]] = None) -> bool:
        """Run the live session's submit handler once; False when nothing ran."""
        session = self.session
        if session is None or not session.submittable:
            return False
        handler = session.on_submit
        session.submitting = True
        self._view.set_submit_enabled(False)
        dlog("modal_submit", {"title": session.title})
        try:
            await handler(dict(values or {}))
        finally:
            session.submitting = False
            if self.is_current(session) and session.on_submit is not None:
                self._view.set_submit_enabled(True)
        return True

    def reveal(
        self,
        title: str,
        body: ModalBody,
        actions: Tuple[str, ...] = ("Done",),
        on_done: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> None:
        """Swap the live dialog's content in place and drop its submit handler."""
        session = self.session
        if session is None:
            return
        session.title = title
        session.body = body
        session.on_submit = None
        session.actions = actions
        session.on_done = on_done
        self._view.render_modal(session)
        self._view.set_submit_enabled(False)

    def close(self, reason: str = "close") -> None:
        session = self.session
        if session is None:
            return
        self.session = None
        # Revealed secrets live only in the body; drop them with the dialog.
        session.on_submit = None
        session.body = ModalBody()
        dlog("modal_close", {"title": session.title, "reason": reason})
        self._view.hide_modal()

    def cancel(self) -> None:
        self.close("cancel")

    def escape(self) -> None:
        self.close("escape")

    def click_overlay(self, on_surface: bool = False) -> None:
        if on_surface:
            return
        self.close("overlay")

    async def done(self) -> None:
        """Close a revealed dialog, then run its completion hook if one was set."""
        session = self.session
        if session is None:
            return
        hook = session.on_done
        self.close("done")
        if hook is not None:
            await hook()
