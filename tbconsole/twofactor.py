from __future__ import annotations

from typing import Any, Dict

from .errors import RequestError
from .modal import FormField, ModalBody


RECOVERY_WARNING = (
    "Save these recovery codes somewhere safe. "
    "Each can only be used once and they will not be shown again."
)


def menu_label_for(enabled: bool) -> str:
    return "Disable 2FA" if enabled else "Set Up 2FA"


class TwoFactorManager:
    """Setup and disable flows for TOTP, driven from the account menu."""

    def __init__(self, session, api, modals, toasts) -> None:
        self._session = session
        self._api = api
        self._modals = modals
        self._toasts = toasts

    @property
    def enabled(self) -> bool:
        return self._session.totp_enabled

    @property
    def menu_label(self) -> str:
        return menu_label_for(self.enabled)

    def refresh_menu(self) -> None:
        self._session.refresh_account()

    async def open_menu_item(self) -> None:
        if not self._session.authenticated:
            return
        if self.enabled:
            self.open_disable()
        else:
            await self.open_setup()

    async def open_setup(self) -> None:
        # Phase 1: provisioning data only; nothing local changes yet.
        try:
            setup = await self._api.call("POST", "/auth/totp/setup")
        except RequestError as e:
            self._toasts.error(e.message)
            return
        if not isinstance(setup, dict) or not setup.get("secret"):
            self._toasts.error("Failed to start 2FA setup")
            return
        secret = setup["secret"]
        qr_png = setup.get("qr_png") or ""

        body = ModalBody(
            lines=(
                "Scan this QR code with your authenticator app (Google Authenticator, Authy, etc.).",
                f"QR code: data:image/png;base64,{qr_png}",
                "Or enter this secret manually:",
                secret,
            ),
            fields=(
                FormField("password", "Current Password", kind="password"),
                FormField(
                    "code",
                    "Confirmation Code",
                    placeholder="000000",
                    hint="from your authenticator app",
                ),
            ),
        )
        session = None

        async def submit(values: Dict[str, Any]) -> None:
            password = values.get("password") or ""
            code = (values.get("code") or "").strip()
            if not password:
                self._toasts.error("Password is required")
                return
            if not code:
                self._toasts.error("Confirmation code is required")
                return
            started = self._session.state
            try:
                res = await self._api.call(
                    "PUT",
                    "/auth/totp/setup",
                    {"password": password, "code": code, "secret": secret},
                )
            except RequestError as e:
                self._toasts.error(e.message or "Failed to enable 2FA")
                return
            if self._session.state is not started:
                # Signed out while the confirm was in flight.
                return
            self._session.set_totp_enabled(True)
            codes = tuple(str(c) for c in ((res or {}).get("recovery_codes") or []))
            if self._modals.is_current(session):
                # Shown once, in place; the dialog no longer has a submit action.
                self._modals.reveal("2FA Enabled", ModalBody(lines=(RECOVERY_WARNING,) + codes))

        session = self._modals.open("Set Up Two-Factor Auth", body, submit, "Enable 2FA")

    def open_disable(self) -> None:
        body = ModalBody(
            lines=(
                "Enter your current password to disable 2FA. "
                "Your recovery codes will also be removed.",
            ),
            fields=(FormField("password", "Current Password", kind="password"),),
        )
        session = None

        async def submit(values: Dict[str, Any]) -> None:
            password = values.get("password") or ""
            if not password:
                self._toasts.error("Password is required")
                return
            started = self._session.state
            try:
                await self._api.call("DELETE", "/auth/totp", {"password": password})
            except RequestError as e:
                self._toasts.error(e.message or "Failed to disable 2FA")
                return
            if self._session.state is not started:
                return
            self._session.set_totp_enabled(False)
            if self._modals.is_current(session):
                self._modals.close("submitted")
            self._toasts.success("Two-factor authentication disabled")

        session = self._modals.open("Disable Two-Factor Auth", body, submit, "Disable 2FA")
