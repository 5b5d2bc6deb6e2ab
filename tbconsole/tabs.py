from __future__ import annotations

import asyncio
import json
import os
import tempfile
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from .config import dlog
from .errors import RequestError
from .view import LOADING


TabLoader = Callable[[], Awaitable[None]]

LOCATION_SCHEMA_VERSION = 1


@dataclass
class LocationStore:
    """Keeps the active tab across runs, the way a URL fragment survives a reload."""

    path: Optional[str] = None

    def load(self) -> Optional[str]:
        if not self.path or not os.path.exists(self.path):
            return None
        try:
            with open(self.path, "r") as f:
                raw = json.load(f)
        except Exception as e:
            dlog("location_load_error", f"Could not read location: {e}")
            return None
        if not isinstance(raw, dict) or raw.get("version") != LOCATION_SCHEMA_VERSION:
            dlog("location_load_error", "Incompatible location file")
            return None
        fragment = raw.get("fragment")
        return fragment if isinstance(fragment, str) else None

    def save(self, fragment: Optional[str]) -> None:
        if not self.path:
            return
        payload = {"version": LOCATION_SCHEMA_VERSION, "fragment": fragment}
        try:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            with tempfile.NamedTemporaryFile("w", delete=False, dir=os.path.dirname(self.path) or ".") as tmp:
                json.dump(payload, tmp)
                tmp.flush()
                os.fsync(tmp.fileno())
                temp_name = tmp.name
            os.replace(temp_name, self.path)
        except Exception as e:
            dlog("location_save_error", str(e))


class Location:
    """Navigable-location fragment (``#<tab>``)."""

    def __init__(self, store: Optional[LocationStore] = None, fragment: Optional[str] = None) -> None:
        self._store = store or LocationStore()
        loaded = self._store.load()
        self._fragment = fragment if fragment is not None else (loaded or "")

    @property
    def fragment(self) -> str:
        return self._fragment

    @fragment.setter
    def fragment(self, value: str) -> None:
        value = (value or "").lstrip("#")
        if value == self._fragment:
            return
        self._fragment = value
        self._store.save(value)


@dataclass(eq=False)
class PollHandle:
    tab: Optional[str]
    generation: int
    task: Optional[asyncio.Task] = field(default=None, repr=False)
    ticks: int = 0


class TabRouter:
    """Selects the active panel and owns the single background status poll."""

    def __init__(self, view, location: Location, poll_interval: float = 3.0) -> None:
        self._view = view
        self.location = location
        self.poll_interval = poll_interval
        self._loaders: Dict[str, TabLoader] = {}
        self._labels: Dict[str, str] = {}
        self.current_tab: Optional[str] = None
        # Bumped on every switch/reset; a poll tick from an older generation is a no-op.
        self.generation = 0
        self._poll: Optional[PollHandle] = None

    def register(self, tab_id: str, loader: TabLoader, label: Optional[str] = None) -> None:
        self._loaders[tab_id] = loader
        self._labels[tab_id] = label or tab_id.capitalize()

    @property
    def tabs(self) -> List[Tuple[str, str]]:
        return [(tab_id, self._labels[tab_id]) for tab_id in self._loaders]

    def has_tab(self, tab_id: str) -> bool:
        return tab_id in self._loaders

    @property
    def default_tab(self) -> Optional[str]:
        return next(iter(self._loaders), None)

    async def switch(self, tab_id: str) -> None:
        if tab_id not in self._loaders:
            raise KeyError(tab_id)
        self.stop_poll()
        self.generation += 1
        self.current_tab = tab_id
        dlog("tab_switch", {"tab": tab_id, "generation": self.generation})
        self._view.set_tabs(self.tabs, tab_id)
        self.location.fragment = tab_id
        self._view.set_content(LOADING)
        await self._loaders[tab_id]()

    async def open_initial(self) -> None:
        fragment = self.location.fragment
        tab_id = fragment if fragment in self._loaders else self.default_tab
        if tab_id is None:
            return
        await self.switch(tab_id)

    async def refresh(self) -> None:
        if self.current_tab is None:
            return
        await self._loaders[self.current_tab]()

    def is_live(self, generation: int) -> bool:
        return generation == self.generation

    # ---------- poller ----------
    @property
    def poll_active(self) -> bool:
        return self._poll is not None

    def start_poll(
        self,
        fetch: Callable[[], Awaitable[Any]],
        render: Callable[[Any], None],
        running: Callable[[Any], bool],
    ) -> PollHandle:
        self.stop_poll()
        handle = PollHandle(tab=self.current_tab, generation=self.generation)
        self._poll = handle
        handle.task = asyncio.create_task(self._run_poll(handle, fetch, render, running))
        dlog("poll_start", {"tab": handle.tab, "generation": handle.generation})
        return handle

    async def _run_poll(self, handle: PollHandle, fetch, render, running) -> None:
        try:
            while True:
                await asyncio.sleep(self.poll_interval)
                if not self._owns(handle):
                    return
                try:
                    status = await fetch()
                except RequestError as e:
                    dlog("poll_stop", {"tab": handle.tab, "reason": "error", "error": e.message})
                    return
                handle.ticks += 1
                if not self._owns(handle):
                    return
                dlog("poll_tick", {"tab": handle.tab, "tick": handle.ticks})
                try:
                    render(status)
                    still_running = running(status)
                except Exception as e:
                    dlog("poll_stop", {"tab": handle.tab, "reason": "render_error", "error": repr(e)})
                    return
                if not still_running:
                    dlog("poll_stop", {"tab": handle.tab, "reason": "idle"})
                    return
        finally:
            if self._poll is handle:
                self._poll = None

    def _owns(self, handle: PollHandle) -> bool:
        return self._poll is handle and self.is_live(handle.generation)

    def stop_poll(self) -> None:
        handle = self._poll
        if handle is None:
            return
        self._poll = None
        if handle.task is not None and not handle.task.done():
            handle.task.cancel()
        dlog("poll_stop", {"tab": handle.tab, "reason": "stopped"})

    def reset(self) -> None:
        self.stop_poll()
        self.generation += 1
        self.current_tab = None
