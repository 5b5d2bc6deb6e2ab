from __future__ import annotations

from tbconsole.errors import RequestError
from tbconsole.modal import FormField, ModalBody
from tbconsole.view import PanelContent

from .base import PanelContext, delete_item, load_panel, parse_id
from .format import fmt_datetime


class UsersPanel:
    tab_id = "users"
    label = "Users"
    title = "Users"

    def __init__(self, ctx: PanelContext) -> None:
        self.ctx = ctx

    async def load(self) -> None:
        await load_panel(self.ctx, self.title, lambda: self.ctx.api.call("GET", "/users"), self.build)

    def build(self, users) -> PanelContent:
        users = users or []
        return PanelContent(
            title=self.title,
            columns=("ID", "Email", "Created"),
            rows=[(u.get("id"), u.get("email_address") or "", fmt_datetime(u.get("created_on"))) for u in users],
            row_ids=[u.get("id") for u in users],
            actions={"new": self.new, "delete": self.delete},
        )

    async def new(self) -> None:
        ctx = self.ctx
        body = ModalBody(
            fields=(
                FormField("email", "Email Address", placeholder="user@example.com"),
                FormField(
                    "password",
                    "Temporary Password",
                    kind="password",
                    placeholder="User must change on first login",
                ),
            )
        )
        session = None

        async def submit(values) -> None:
            email = (values.get("email") or "").strip()
            password = values.get("password") or ""
            if not email:
                ctx.toasts.error("Email is required")
                return
            if not password:
                ctx.toasts.error("Temporary password is required")
                return
            try:
                await ctx.api.call("POST", "/users", {"email_address": email, "password": password})
            except RequestError as e:
                await ctx.fail(e)
                return
            if ctx.modals.is_current(session):
                ctx.modals.close("submitted")
            ctx.toasts.success("User created - they must change their password on first login")
            await ctx.reload(self.tab_id, self.load)

        session = ctx.modals.open("New User", body, submit)

    async def delete(self, user_id=None) -> None:
        user_id = parse_id(user_id)
        if user_id is None:
            self.ctx.toasts.error("User id must be a number")
            return
        await delete_item(
            self.ctx,
            "Delete this user? Their API keys will also be removed.",
            f"/users/{user_id}",
            "User deleted",
            lambda: self.ctx.reload(self.tab_id, self.load),
        )
