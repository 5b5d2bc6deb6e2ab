from __future__ import annotations

import asyncio

from tbconsole.errors import RequestError
from tbconsole.modal import FormField, ModalBody
from tbconsole.view import PanelContent

from .base import PanelContext, delete_item, load_panel, parse_id
from .format import fmt_datetime, key_hint


KEY_WARNING = "Copy this key now - it will not be shown again."


class KeysPanel:
    tab_id = "keys"
    label = "API Keys"
    title = "API Keys"

    def __init__(self, ctx: PanelContext) -> None:
        self.ctx = ctx

    async def _fetch(self):
        return await asyncio.gather(
            self.ctx.api.call("GET", "/users/keys"),
            self.ctx.api.call("GET", "/users"),
        )

    async def load(self) -> None:
        await load_panel(self.ctx, self.title, self._fetch, self.build)

    def build(self, data) -> PanelContent:
        keys, users = data
        keys = keys or []
        emails = {u.get("id"): u.get("email_address") for u in (users or [])}
        return PanelContent(
            title=self.title,
            columns=("ID", "User", "Hint", "Created"),
            rows=[
                (
                    k.get("id"),
                    emails.get(k.get("user_id")) or f"User #{k.get('user_id')}",
                    key_hint(k.get("key_hint")),
                    fmt_datetime(k.get("created_on")),
                )
                for k in keys
            ],
            row_ids=[k.get("id") for k in keys],
            actions={"new": self.new, "delete": self.delete},
        )

    async def new(self) -> None:
        ctx = self.ctx
        try:
            users = await ctx.api.call("GET", "/users")
        except RequestError as e:
            await ctx.fail(e)
            return
        if not users:
            ctx.toasts.error("No users found - create a user first")
            return

        emails = tuple(u.get("email_address") or "" for u in users)
        body = ModalBody(
            fields=(
                FormField(
                    "email",
                    "User",
                    kind="select",
                    options=tuple((e, e) for e in emails),
                    default=emails[0],
                ),
            )
        )
        session = None

        async def submit(values) -> None:
            email = values.get("email") or ""
            if not email:
                ctx.toasts.error("User is required")
                return
            try:
                res = await ctx.api.call("POST", "/users/keys", {"email": email})
            except RequestError as e:
                await ctx.fail(e)
                return
            if ctx.modals.is_current(session):
                # The plaintext key exists only in this dialog body.
                ctx.modals.reveal(
                    "New API Key",
                    ModalBody(lines=(KEY_WARNING, (res or {}).get("key") or "")),
                    on_done=lambda: ctx.reload(self.tab_id, self.load),
                )

        session = ctx.modals.open("New API Key", body, submit)

    async def delete(self, key_id=None) -> None:
        key_id = parse_id(key_id)
        if key_id is None:
            self.ctx.toasts.error("Key id must be a number")
            return
        await delete_item(
            self.ctx,
            "Delete this API key?",
            f"/users/keys/{key_id}",
            "Key deleted",
            lambda: self.ctx.reload(self.tab_id, self.load),
        )
