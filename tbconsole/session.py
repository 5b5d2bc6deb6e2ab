from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from .config import dlog
from .errors import RequestError
from .modal import FormField, ModalBody
from .passwords import password_checklist, password_valid
from .twofactor import menu_label_for
from .view import LOGIN, PASSWORD_RESET, SECOND_FACTOR


# ---------- session states ----------
@dataclass(frozen=True)
class Anonymous:
    pass


@dataclass(frozen=True)
class AwaitingSecondFactor:
    pending_token: str = field(repr=False)


@dataclass(frozen=True)
class AwaitingPasswordReset:
    pass


@dataclass(frozen=True)
class AuthenticatedUser:
    id: int
    email_address: str

    @classmethod
    def from_json(cls, data: Any) -> "AuthenticatedUser":
        if not isinstance(data, dict):
            raise RequestError(200, "Invalid user profile response")
        return cls(id=data.get("id"), email_address=data.get("email_address") or "")


@dataclass(frozen=True)
class Authenticated:
    user: Optional[AuthenticatedUser] = None


SessionState = Union[Anonymous, AwaitingSecondFactor, AwaitingPasswordReset, Authenticated]


# ---------- login/verify outcomes, decoded once at the boundary ----------
@dataclass(frozen=True)
class SecondFactorRequired:
    pending_token: str = field(repr=False)


@dataclass(frozen=True)
class ResetRequired:
    pass


@dataclass(frozen=True)
class LoginSuccess:
    pass


LoginOutcome = Union[SecondFactorRequired, ResetRequired, LoginSuccess]


def decode_login_outcome(data: Any) -> LoginOutcome:
    """Map the /auth/login response onto one explicit case."""
    if not isinstance(data, dict):
        return LoginSuccess()
    if data.get("totp_required"):
        token = data.get("pending_token")
        if not isinstance(token, str) or not token:
            raise RequestError(200, "Second factor required but no pending token was issued")
        return SecondFactorRequired(pending_token=token)
    if data.get("reset_required"):
        return ResetRequired()
    return LoginSuccess()


def decode_verify_outcome(data: Any) -> LoginOutcome:
    if isinstance(data, dict) and data.get("reset_required"):
        return ResetRequired()
    return LoginSuccess()


class SessionController:
    """Owns the authentication state machine and the authenticated bootstrap.

    Panels never write session fields; they read ``state``, ``user`` and
    ``totp_enabled`` and go through the operations below.
    """

    def __init__(self, api, view, toasts, modals, router) -> None:
        self._api = api
        self._view = view
        self._toasts = toasts
        self._modals = modals
        self._router = router
        self.state: SessionState = Anonymous()
        self.totp_enabled = False
        self._busy: set[str] = set()

    # ---------- read-only views ----------
    @property
    def user(self) -> Optional[AuthenticatedUser]:
        if isinstance(self.state, Authenticated):
            return self.state.user
        return None

    @property
    def pending_token(self) -> Optional[str]:
        if isinstance(self.state, AwaitingSecondFactor):
            return self.state.pending_token
        return None

    @property
    def authenticated(self) -> bool:
        return isinstance(self.state, Authenticated)

    @property
    def menu_label(self) -> str:
        return menu_label_for(self.totp_enabled)

    def _set_state(self, state: SessionState) -> None:
        dlog(
            "session_transition",
            {"from": type(self.state).__name__, "to": type(state).__name__},
        )
        self.state = state

    def set_totp_enabled(self, enabled: bool) -> None:
        """Record a confirmed 2FA change and refresh the menu label right away."""
        self.totp_enabled = bool(enabled)
        self.refresh_account()

    def refresh_account(self) -> None:
        user = self.user
        self._view.set_account(user.email_address if user else None, self.menu_label)

    # ---------- page load ----------
    async def bootstrap(self) -> None:
        """Silently probe for an existing session; failure is the normal anonymous path."""
        try:
            await self._api.call("GET", "/authtest")
        except RequestError as e:
            dlog("session_bootstrap", {"existing_session": False, "status": e.status})
            self._view.show_login()
            return
        dlog("session_bootstrap", {"existing_session": True})
        await self._enter_app()

    # ---------- login ----------
    async def login(self, email: str, password: str) -> bool:
        if not isinstance(self.state, Anonymous) or LOGIN in self._busy:
            return False
        email = (email or "").strip()
        self._view.clear_field_error(LOGIN)
        if not email or not password:
            self._view.show_field_error(LOGIN, "Email and password are required")
            return False

        self._busy.add(LOGIN)
        self._view.set_busy(LOGIN, True)
        try:
            data = await self._api.call("POST", "/auth/login", {"email": email, "password": password})
            outcome = decode_login_outcome(data)
        except RequestError as e:
            dlog("login_failed", {"status": e.status})
            self._view.show_field_error(LOGIN, "Invalid email or password")
            return False
        finally:
            self._busy.discard(LOGIN)
            self._view.set_busy(LOGIN, False)

        if not isinstance(self.state, Anonymous):
            return False
        if isinstance(outcome, SecondFactorRequired):
            self._set_state(AwaitingSecondFactor(pending_token=outcome.pending_token))
            self._view.show_second_factor()
        elif isinstance(outcome, ResetRequired):
            self._set_state(AwaitingPasswordReset())
            self._view.show_password_reset()
        else:
            await self._enter_app()
        return True

    async def verify_second_factor(self, code: str) -> bool:
        state = self.state
        if not isinstance(state, AwaitingSecondFactor) or SECOND_FACTOR in self._busy:
            return False
        code = (code or "").strip()
        self._view.clear_field_error(SECOND_FACTOR)
        if not code:
            self._view.show_field_error(SECOND_FACTOR, "Code is required")
            return False

        self._busy.add(SECOND_FACTOR)
        self._view.set_busy(SECOND_FACTOR, True)
        try:
            data = await self._api.call(
                "POST",
                "/auth/totp/verify",
                {"pending_token": state.pending_token, "code": code},
            )
        except RequestError as e:
            # Rejected code: same state, same pending token, inline error only.
            dlog("second_factor_failed", {"status": e.status})
            self._view.show_field_error(SECOND_FACTOR, "Invalid or expired code")
            return False
        finally:
            self._busy.discard(SECOND_FACTOR)
            self._view.set_busy(SECOND_FACTOR, False)

        if self.state is not state:
            return False
        outcome = decode_verify_outcome(data)
        if isinstance(outcome, ResetRequired):
            self._set_state(AwaitingPasswordReset())
            self._view.show_password_reset()
        else:
            await self._enter_app()
        return True

    async def submit_password_reset(self, current: str, new: str, confirm: str) -> bool:
        state = self.state
        if not isinstance(state, AwaitingPasswordReset) or PASSWORD_RESET in self._busy:
            return False
        self._view.clear_field_error(PASSWORD_RESET)
        if not current or not new or not confirm:
            self._view.show_field_error(PASSWORD_RESET, "All fields are required")
            return False
        if not password_valid(new):
            self._view.show_field_error(PASSWORD_RESET, "Password does not meet requirements")
            return False
        if new != confirm:
            self._view.show_field_error(PASSWORD_RESET, "New passwords do not match")
            return False

        self._busy.add(PASSWORD_RESET)
        self._view.set_busy(PASSWORD_RESET, True)
        try:
            await self._api.call("PUT", "/auth/password", {"current_password": current, "new_password": new})
        except RequestError as e:
            self._view.show_field_error(PASSWORD_RESET, e.message or "Failed to change password")
            return False
        finally:
            self._busy.discard(PASSWORD_RESET)
            self._view.set_busy(PASSWORD_RESET, False)

        if self.state is not state:
            return False
        await self._enter_app()
        return True

    def password_checklist(self, surface: str, candidate: str):
        checklist = password_checklist(candidate)
        self._view.show_password_checklist(surface, checklist)
        return checklist

    # ---------- authenticated bootstrap ----------
    async def _enter_app(self) -> None:
        entered = Authenticated()
        self._set_state(entered)
        self._view.show_app()

        me, totp = await asyncio.gather(
            self._api.call("GET", "/users/me"),
            self._api.call("GET", "/auth/totp"),
            return_exceptions=True,
        )
        for result in (me, totp):
            if isinstance(result, BaseException) and not isinstance(result, RequestError):
                raise result

        if self.state is not entered:
            # Logged out while the profile was loading.
            return

        if isinstance(me, RequestError):
            dlog("session_bootstrap", {"profile": "unavailable", "error": me.message})
        else:
            try:
                self._set_state(Authenticated(user=AuthenticatedUser.from_json(me)))
            except RequestError as e:
                dlog("session_bootstrap", {"profile": "unavailable", "error": e.message})
        if isinstance(totp, RequestError):
            dlog("session_bootstrap", {"totp": "unavailable", "error": totp.message})
        elif isinstance(totp, dict):
            self.totp_enabled = bool(totp.get("enabled"))
        self.refresh_account()

        await self._router.open_initial()

    # ---------- logout ----------
    async def logout(self) -> None:
        self._router.stop_poll()
        self._modals.close("logout")
        try:
            await self._api.call("POST", "/auth/logout")
        except RequestError as e:
            dlog("logout_failed", {"status": e.status, "error": e.message})

        self._router.reset()
        self._modals.close("logout")
        self._set_state(Anonymous())
        self.totp_enabled = False
        self._busy.clear()
        self._view.set_account(None, self.menu_label)
        self._view.show_login()

    async def handle_request_error(self, error: RequestError) -> None:
        """Route a failed panel call: an expired session logs out, anything else toasts."""
        if error.unauthorized and self.authenticated:
            self._toasts.error("Session expired")
            await self.logout()
            return
        self._toasts.error(error.message)

    # ---------- account menu ----------
    def open_change_password(self) -> None:
        if not self.authenticated:
            return
        body = ModalBody(
            fields=(
                FormField("current_password", "Current Password", kind="password"),
                FormField("new_password", "New Password", kind="password", password_checklist=True),
                FormField("confirm_password", "Confirm New Password", kind="password"),
            )
        )
        session = None

        async def submit(values):
            current = values.get("current_password") or ""
            new = values.get("new_password") or ""
            confirm = values.get("confirm_password") or ""
            if not password_valid(new):
                self._toasts.error("Password does not meet requirements")
                return
            if new != confirm:
                self._toasts.error("New passwords do not match")
                return
            try:
                await self._api.call("PUT", "/auth/password", {"current_password": current, "new_password": new})
            except RequestError as e:
                # 401 here means a wrong current password, not an expired session.
                self._toasts.error(e.message)
                return
            if self._modals.is_current(session):
                self._modals.close("submitted")
            self._toasts.success("Password changed")

        session = self._modals.open("Change Password", body, submit, "Change Password")
