from __future__ import annotations

from typing import Any, Dict

from tbconsole.errors import RequestError
from tbconsole.modal import FormField, ModalBody
from tbconsole.view import PanelContent

from .base import PanelContext, load_panel
from .format import badge


DEFAULT_MAX_MESSAGE_LENGTH = 300
DEFAULT_MAX_CONCURRENT_SYNCS = 5


def _positive_int(raw: Any, default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def config_payload(values: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": 1,
        "attempt_notify": bool(values.get("attempt_notify")),
        "skip_launch_syncs": bool(values.get("skip_launch_syncs")),
        "max_message_length": _positive_int(values.get("max_message_length"), DEFAULT_MAX_MESSAGE_LENGTH),
        "max_concurrent_syncs": _positive_int(values.get("max_concurrent_syncs"), DEFAULT_MAX_CONCURRENT_SYNCS),
    }


class ConfigPanel:
    tab_id = "config"
    label = "Config"
    title = "Configuration"

    def __init__(self, ctx: PanelContext) -> None:
        self.ctx = ctx

    async def load(self) -> None:
        await load_panel(self.ctx, self.title, lambda: self.ctx.api.call("GET", "/config"), self.build)

    def build(self, cfg) -> PanelContent:
        cfg = cfg or {}
        return PanelContent(
            title=self.title,
            columns=("Setting", "Value", "Description"),
            rows=[
                ("Attempt Notify", badge(cfg.get("attempt_notify")), "Master switch for sending ticket notifications"),
                ("Skip Launch Syncs", badge(cfg.get("skip_launch_syncs")), "Skip syncing boards and recipients on server startup"),
                ("Max Message Length", cfg.get("max_message_length"), "Truncation limit for ticket note content"),
                ("Max Concurrent Syncs", cfg.get("max_concurrent_syncs"), "Limits parallel requests to Connectwise"),
            ],
            actions={"edit": lambda: self.edit(cfg)},
        )

    async def edit(self, current: Dict[str, Any]) -> None:
        ctx = self.ctx
        body = ModalBody(
            fields=(
                FormField("attempt_notify", "Attempt Notify", kind="checkbox", default=bool(current.get("attempt_notify"))),
                FormField("skip_launch_syncs", "Skip Launch Syncs", kind="checkbox", default=bool(current.get("skip_launch_syncs"))),
                FormField("max_message_length", "Max Message Length", kind="number", default=current.get("max_message_length")),
                FormField("max_concurrent_syncs", "Max Concurrent Syncs", kind="number", default=current.get("max_concurrent_syncs")),
            )
        )
        session = None

        async def submit(values) -> None:
            payload = config_payload(values)
            try:
                saved = await ctx.api.call("PUT", "/config", payload)
            except RequestError as e:
                await ctx.fail(e)
                return
            if ctx.modals.is_current(session):
                ctx.modals.close("submitted")
            ctx.toasts.success("Config saved")
            if ctx.router.current_tab == self.tab_id:
                ctx.render(self.build(saved if isinstance(saved, dict) else payload))

        session = ctx.modals.open("Edit Configuration", body, submit, "Save Changes")
