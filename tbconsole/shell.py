from __future__ import annotations

from typing import Any, Optional

from tbconsole.api_client import ApiClient
from tbconsole.config import ConsoleConfig, dlog
from tbconsole.modal import ModalEngine
from tbconsole.panels.base import PanelContext
from tbconsole.panels.registry import register_panels
from tbconsole.session import SessionController
from tbconsole.tabs import Location, LocationStore, TabRouter
from tbconsole.toast import ToastNotifier
from tbconsole.twofactor import TwoFactorManager


class ConsoleShell:
    """Long-lived owner of every piece of mutable console state.

    One shell per console run: the session state machine, the single modal,
    the single poll handle and the toast slot all hang off it, so tests get
    a fresh console by building a fresh shell.
    """

    def __init__(
        self,
        config: ConsoleConfig,
        view,
        http_session: Any = None,
        location: Optional[Location] = None,
    ) -> None:
        self.config = config
        self.view = view
        self.api = ApiClient(
            base_url=config.base_url,
            session=http_session,
            api_key=config.api_key,
            timeout=config.request_timeout,
            verify=config.verify_tls,
        )
        self.toasts = ToastNotifier(view, config.toast_seconds)
        self.modals = ModalEngine(view)
        self.location = location or Location(LocationStore(config.location_file))
        self.router = TabRouter(view, self.location, config.poll_interval)
        self.session = SessionController(self.api, view, self.toasts, self.modals, self.router)
        self.two_factor = TwoFactorManager(self.session, self.api, self.modals, self.toasts)
        self.panel_context = PanelContext(
            api=self.api,
            view=view,
            toasts=self.toasts,
            modals=self.modals,
            router=self.router,
            session=self.session,
            max_concurrent_syncs=config.max_concurrent_syncs,
        )
        self.panels = register_panels(self.router, self.panel_context)

    async def start(self) -> None:
        dlog("console_start", self.config.public())
        await self.session.bootstrap()

    def close(self) -> None:
        self.router.stop_poll()
        self.toasts.hide()
        self.api.close()
