from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from tbconsole.errors import RequestError
from tbconsole.view import PanelContent


@dataclass
class PanelContext:
    """What every panel needs from the shell; panels hold no state of their own."""

    api: Any
    view: Any
    toasts: Any
    modals: Any
    router: Any
    session: Any
    max_concurrent_syncs: int = 5

    def render(self, content: PanelContent, generation: Optional[int] = None) -> None:
        # A load that resolves after the operator switched tabs must not paint over the new tab.
        if generation is not None and not self.router.is_live(generation):
            return
        self.view.set_content(content)

    async def reload(self, tab_id: str, loader: Callable[[], Awaitable[Any]]) -> None:
        if self.router.current_tab == tab_id:
            await loader()

    async def fail(self, error: RequestError) -> None:
        await self.session.handle_request_error(error)

    async def confirm(self, message: str) -> bool:
        return await self.view.confirm(message)


async def load_panel(
    ctx: PanelContext,
    title: str,
    fetch: Callable[[], Awaitable[Any]],
    build: Callable[[Any], PanelContent],
) -> Optional[Any]:
    """Fetch, then render; a failed load shows the error as the panel body."""
    generation = ctx.router.generation
    try:
        data = await fetch()
    except RequestError as e:
        if e.unauthorized:
            await ctx.fail(e)
            return None
        ctx.render(PanelContent.failure(title, e.message), generation)
        return None
    ctx.render(build(data), generation)
    return data


async def delete_item(
    ctx: PanelContext,
    prompt: str,
    path: str,
    done_message: str,
    reload: Callable[[], Awaitable[None]],
) -> bool:
    if not await ctx.confirm(prompt):
        return False
    try:
        await ctx.api.call("DELETE", path)
    except RequestError as e:
        await ctx.fail(e)
        return False
    ctx.toasts.success(done_message)
    await reload()
    return True


def parse_id(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
