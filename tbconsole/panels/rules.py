from __future__ import annotations

import asyncio

from tbconsole.errors import RequestError
from tbconsole.modal import FormField, ModalBody
from tbconsole.view import PanelContent

from .base import PanelContext, delete_item, load_panel, parse_id
from .format import badge


class RulesPanel:
    tab_id = "rules"
    label = "Rules"
    title = "Notifier Rules"

    def __init__(self, ctx: PanelContext) -> None:
        self.ctx = ctx

    async def load(self) -> None:
        await load_panel(self.ctx, self.title, lambda: self.ctx.api.call("GET", "/notifiers/rules"), self.build)

    def build(self, rules) -> PanelContent:
        rules = rules or []
        return PanelContent(
            title=self.title,
            columns=("Enabled", "Board", "Recipient"),
            rows=[
                (
                    badge(r.get("enabled")),
                    r.get("board_name") or "",
                    f"{r.get('recipient_name') or ''} ({r.get('recipient_type') or ''})",
                )
                for r in rules
            ],
            row_ids=[r.get("id") for r in rules],
            actions={"new": self.new, "delete": self.delete},
        )

    async def new(self) -> None:
        ctx = self.ctx
        try:
            boards, recipients = await asyncio.gather(
                ctx.api.call("GET", "/cw/boards"),
                ctx.api.call("GET", "/webex/rooms"),
            )
        except RequestError as e:
            await ctx.fail(e)
            return
        if not boards:
            ctx.toasts.error("No boards found - run a sync first")
            return
        if not recipients:
            ctx.toasts.error("No recipients found - run a sync first")
            return

        body = ModalBody(
            fields=(
                FormField(
                    "board_id",
                    "Connectwise Board",
                    kind="select",
                    options=tuple((b.get("id"), b.get("name") or "") for b in boards),
                    default=boards[0].get("id"),
                ),
                FormField(
                    "recipient_id",
                    "Webex Recipient",
                    kind="select",
                    options=tuple((r.get("id"), f"{r.get('name') or ''} ({r.get('type') or ''})") for r in recipients),
                    default=recipients[0].get("id"),
                ),
            )
        )
        session = None

        async def submit(values) -> None:
            board_id = parse_id(values.get("board_id"))
            recipient_id = parse_id(values.get("recipient_id"))
            if board_id is None or recipient_id is None:
                ctx.toasts.error("Board and recipient are required")
                return
            try:
                await ctx.api.call(
                    "POST",
                    "/notifiers/rules",
                    {"cw_board_id": board_id, "webex_room_id": recipient_id, "notify_enabled": True},
                )
            except RequestError as e:
                await ctx.fail(e)
                return
            if ctx.modals.is_current(session):
                ctx.modals.close("submitted")
            ctx.toasts.success("Rule created")
            await ctx.reload(self.tab_id, self.load)

        session = ctx.modals.open("New Notifier Rule", body, submit)

    async def delete(self, rule_id=None) -> None:
        rule_id = parse_id(rule_id)
        if rule_id is None:
            self.ctx.toasts.error("Rule id must be a number")
            return
        await delete_item(
            self.ctx,
            "Delete this rule?",
            f"/notifiers/rules/{rule_id}",
            "Rule deleted",
            lambda: self.ctx.reload(self.tab_id, self.load),
        )
