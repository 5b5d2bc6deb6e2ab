from __future__ import annotations

from tbconsole.errors import RequestError
from tbconsole.modal import FormField, ModalBody
from tbconsole.view import PanelContent

from .base import PanelContext, load_panel, parse_id


SYNC_NOTE = (
    "Sync pulls the latest boards and Webex recipients from Connectwise and Webex. "
    "Run this after adding new boards or updating room memberships."
)


def sync_running(status) -> bool:
    return isinstance(status, dict) and status.get("status") is True


class SyncPanel:
    tab_id = "sync"
    label = "Sync"
    title = "Sync"

    def __init__(self, ctx: PanelContext) -> None:
        self.ctx = ctx

    def _fetch_status(self):
        return self.ctx.api.call("GET", "/sync/status")

    async def load(self) -> None:
        generation = self.ctx.router.generation
        status = await load_panel(self.ctx, self.title, self._fetch_status, self.build)
        if sync_running(status) and self.ctx.router.is_live(generation):
            self.start_poll()

    def build(self, status) -> PanelContent:
        running = sync_running(status)
        return PanelContent(
            title=self.title,
            message="Sync running..." if running else "Idle",
            notes=(SYNC_NOTE,),
            # No "run" while a sync is in progress.
            actions={} if running else {"run": self.run},
        )

    def start_poll(self):
        return self.ctx.router.start_poll(
            self._fetch_status,
            lambda status: self.ctx.render(self.build(status)),
            sync_running,
        )

    async def run(self) -> None:
        ctx = self.ctx
        try:
            boards = await ctx.api.call("GET", "/cw/boards") or []
        except RequestError:
            # The dialog still works without a board filter.
            boards = []

        fields = [
            FormField("cw_boards", "Sync Boards", kind="checkbox", default=True),
            FormField("webex_recipients", "Sync Webex Recipients", kind="checkbox", default=True),
            FormField("cw_tickets", "Sync Tickets", kind="checkbox", default=False),
        ]
        if boards:
            fields.append(
                FormField(
                    "board_ids",
                    "Board filter",
                    kind="multiselect",
                    options=tuple((b.get("id"), b.get("name") or "") for b in boards),
                    default=(),
                    hint="empty = all boards",
                )
            )
        body = ModalBody(lines=("What to sync",), fields=tuple(fields))
        session = None

        async def submit(values) -> None:
            board_ids = [i for i in (parse_id(v) for v in (values.get("board_ids") or ())) if i is not None]
            payload = {
                "cw_boards": bool(values.get("cw_boards", True)),
                "webex_recipients": bool(values.get("webex_recipients", True)),
                "cw_tickets": bool(values.get("cw_tickets", False)),
                "board_ids": board_ids,
                "max_concurrent_syncs": ctx.max_concurrent_syncs,
            }
            try:
                await ctx.api.call("POST", "/sync", payload)
            except RequestError as e:
                await ctx.fail(e)
                return
            if ctx.modals.is_current(session):
                ctx.modals.close("submitted")
            ctx.toasts.success("Sync started")
            if ctx.router.current_tab != self.tab_id:
                return
            await self.load()
            if ctx.router.current_tab == self.tab_id and not ctx.router.poll_active:
                self.start_poll()

        session = ctx.modals.open("Run Sync", body, submit, "Start")
