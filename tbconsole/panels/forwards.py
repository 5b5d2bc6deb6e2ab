from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from tbconsole.errors import RequestError, ValidationError
from tbconsole.modal import FormField, ModalBody
from tbconsole.view import PanelContent

from .base import PanelContext, delete_item, load_panel, parse_id
from .format import badge, fmt_date_range


def _parse_date(raw: Any, label: str) -> Optional[date]:
    if raw in (None, ""):
        return None
    if isinstance(raw, date):
        return raw
    try:
        return date.fromisoformat(str(raw).strip())
    except ValueError:
        raise ValidationError(f"{label} must be a date (YYYY-MM-DD)")


def _truthy(raw: Any) -> bool:
    if isinstance(raw, str):
        return raw.strip().lower() in {"1", "true", "yes", "y", "on"}
    return bool(raw)


def forward_payload(values: Dict[str, Any]) -> Dict[str, Any]:
    """Validate the new-forward form; raises ValidationError before any call is made."""
    source_id = parse_id(values.get("source_id"))
    dest_id = parse_id(values.get("dest_id"))
    if source_id is None or dest_id is None:
        raise ValidationError("Source and destination are required")
    if source_id == dest_id:
        raise ValidationError("Source and destination must be different")
    start = _parse_date(values.get("start_date"), "Start date")
    end = _parse_date(values.get("end_date"), "End date")
    if start and end and end < start:
        raise ValidationError("End date cannot be before start date")

    payload: Dict[str, Any] = {
        "user_email": source_id,
        "dest_email": dest_id,
        "enabled": True,
        "user_keeps_copy": _truthy(values.get("keep_copy", True)),
    }
    if start:
        payload["start_date"] = f"{start.isoformat()}T00:00:00Z"
    if end:
        payload["end_date"] = f"{end.isoformat()}T00:00:00Z"
    return payload


class ForwardsPanel:
    tab_id = "forwards"
    label = "Forwards"
    title = "Notification Forwards"

    def __init__(self, ctx: PanelContext) -> None:
        self.ctx = ctx

    async def load(self) -> None:
        await load_panel(
            self.ctx,
            self.title,
            lambda: self.ctx.api.call("GET", "/notifiers/forwards?filter=not-expired"),
            self.build,
        )

    def build(self, fwds) -> PanelContent:
        fwds = fwds or []
        return PanelContent(
            title=self.title,
            columns=("Enabled", "Keep Copy", "Dates", "Source", "Destination"),
            rows=[
                (
                    badge(f.get("enabled")),
                    badge(f.get("user_keeps_copy")),
                    fmt_date_range(f.get("start_date"), f.get("end_date")),
                    f"{f.get('source_name') or ''} ({f.get('source_type') or ''})",
                    f"{f.get('destination_name') or ''} ({f.get('destination_type') or ''})",
                )
                for f in fwds
            ],
            row_ids=[f.get("id") for f in fwds],
            actions={"new": self.new, "delete": self.delete},
        )

    async def new(self) -> None:
        ctx = self.ctx
        try:
            recipients = await ctx.api.call("GET", "/webex/rooms")
        except RequestError as e:
            await ctx.fail(e)
            return
        if not recipients:
            ctx.toasts.error("No recipients found - run a sync first")
            return

        options = tuple((r.get("id"), f"{r.get('name') or ''} ({r.get('type') or ''})") for r in recipients)
        body = ModalBody(
            fields=(
                FormField("source_id", "Source", kind="select", options=options, default=options[0][0]),
                FormField("dest_id", "Destination", kind="select", options=options, default=options[0][0]),
                FormField("start_date", "Start Date", kind="date", hint="optional"),
                FormField("end_date", "End Date", kind="date", hint="optional"),
                FormField("keep_copy", "Source Keeps Copy?", kind="checkbox", default=True),
            )
        )
        session = None

        async def submit(values) -> None:
            try:
                payload = forward_payload(values)
            except ValidationError as e:
                ctx.toasts.error(e.message)
                return
            try:
                await ctx.api.call("POST", "/notifiers/forwards", payload)
            except RequestError as e:
                await ctx.fail(e)
                return
            if ctx.modals.is_current(session):
                ctx.modals.close("submitted")
            ctx.toasts.success("Forward created")
            await ctx.reload(self.tab_id, self.load)

        session = ctx.modals.open("New Forward", body, submit)

    async def delete(self, forward_id=None) -> None:
        forward_id = parse_id(forward_id)
        if forward_id is None:
            self.ctx.toasts.error("Forward id must be a number")
            return
        await delete_item(
            self.ctx,
            "Delete this forward?",
            f"/notifiers/forwards/{forward_id}",
            "Forward deleted",
            lambda: self.ctx.reload(self.tab_id, self.load),
        )
