import asyncio
import json

import pytest

from console_support import RecordingView, wait_until
from tbconsole.errors import RequestError
from tbconsole.tabs import Location, LocationStore, TabRouter
from tbconsole.view import LOADING


def _router(fragment=None, interval=0.01):
    view = RecordingView()
    router = TabRouter(view, Location(fragment=fragment), poll_interval=interval)
    loaded = []

    def loader(tab):
        async def load():
            loaded.append(tab)
            view.set_content(f"{tab} body")

        return load

    for tab in ("rules", "users", "sync"):
        router.register(tab, loader(tab))
    return router, view, loaded


class StatusFeed:
    """Counts status fetches; reports running until ``idle_after`` reads."""

    def __init__(self, idle_after=None, fail_on=None):
        self.calls = 0
        self.idle_after = idle_after
        self.fail_on = fail_on

    async def fetch(self):
        self.calls += 1
        if self.fail_on is not None and self.calls >= self.fail_on:
            raise RequestError(500, "status unavailable")
        running = self.idle_after is None or self.calls < self.idle_after
        return {"status": running}


def _running(status):
    return status["status"] is True


# ---------- location ----------
def test_location_store_round_trip(tmp_path):
    path = tmp_path / "state" / "location.json"
    store = LocationStore(str(path))
    assert store.load() is None
    store.save("users")
    assert json.loads(path.read_text()) == {"version": 1, "fragment": "users"}
    assert Location(LocationStore(str(path))).fragment == "users"


def test_location_store_ignores_bad_files(tmp_path):
    path = tmp_path / "location.json"
    path.write_text("{not json")
    assert LocationStore(str(path)).load() is None
    path.write_text(json.dumps({"version": 99, "fragment": "users"}))
    assert LocationStore(str(path)).load() is None


def test_location_fragment_strips_hash(tmp_path):
    path = tmp_path / "location.json"
    location = Location(LocationStore(str(path)))
    location.fragment = "#keys"
    assert location.fragment == "keys"
    assert LocationStore(str(path)).load() == "keys"


# ---------- switching ----------
@pytest.mark.asyncio
async def test_switch_sets_location_and_loading_placeholder():
    router, view, loaded = _router()
    gen = router.generation
    await router.switch("users")
    assert router.current_tab == "users"
    assert router.generation == gen + 1
    assert router.location.fragment == "users"
    assert view.active_tab == "users"
    assert view.contents == [LOADING, "users body"]
    assert loaded == ["users"]
    with pytest.raises(KeyError):
        await router.switch("nope")


@pytest.mark.asyncio
async def test_open_initial_honours_fragment():
    router, _, loaded = _router(fragment="sync")
    await router.open_initial()
    assert loaded == ["sync"]

    router, _, loaded = _router(fragment="gone")
    await router.open_initial()
    assert loaded == ["rules"]


@pytest.mark.asyncio
async def test_refresh_reloads_current_tab_only():
    router, _, loaded = _router()
    await router.refresh()
    assert loaded == []
    await router.switch("rules")
    await router.refresh()
    assert loaded == ["rules", "rules"]
    assert router.tabs[0] == ("rules", "Rules")


# ---------- poller ----------
@pytest.mark.asyncio
async def test_poll_renders_until_idle():
    router, _, _ = _router()
    await router.switch("sync")
    feed = StatusFeed(idle_after=3)
    rendered = []
    handle = router.start_poll(feed.fetch, rendered.append, _running)
    assert router.poll_active
    await handle.task
    assert feed.calls == 3
    assert handle.ticks == 3
    assert rendered[-1] == {"status": False}
    assert not router.poll_active


@pytest.mark.asyncio
async def test_switching_tabs_stops_the_poll():
    router, _, _ = _router()
    await router.switch("sync")
    feed = StatusFeed()
    handle = router.start_poll(feed.fetch, lambda status: None, _running)
    await wait_until(lambda: feed.calls >= 2)

    await router.switch("rules")
    assert not router.poll_active
    await asyncio.sleep(0.01)
    seen = feed.calls
    await asyncio.sleep(0.05)
    assert feed.calls == seen
    assert handle.task.done()


@pytest.mark.asyncio
async def test_only_one_poll_at_a_time():
    router, _, _ = _router()
    await router.switch("sync")
    first = StatusFeed()
    second = StatusFeed()
    old = router.start_poll(first.fetch, lambda status: None, _running)
    new = router.start_poll(second.fetch, lambda status: None, _running)
    await wait_until(lambda: second.calls >= 2)
    await asyncio.sleep(0)
    assert old.task.done()
    assert first.calls == 0
    router.stop_poll()
    await asyncio.sleep(0.01)
    assert new.task.done()


@pytest.mark.asyncio
async def test_poll_stops_silently_on_error():
    router, view, _ = _router()
    await router.switch("sync")
    feed = StatusFeed(fail_on=2)
    rendered = []
    handle = router.start_poll(feed.fetch, rendered.append, _running)
    await handle.task
    assert len(rendered) == 1
    assert not router.poll_active
    assert view.toasts == []


@pytest.mark.asyncio
async def test_stale_result_is_not_rendered():
    router, _, _ = _router()
    await router.switch("sync")
    rendered = []

    async def fetch():
        # Operator navigates away while the status request is in flight.
        router.generation += 1
        return {"status": True}

    handle = router.start_poll(fetch, rendered.append, _running)
    await handle.task
    assert rendered == []
    assert handle.ticks == 1
    assert not router.poll_active


@pytest.mark.asyncio
async def test_reset_clears_tab_and_poll():
    router, _, _ = _router()
    await router.switch("sync")
    router.start_poll(StatusFeed().fetch, lambda status: None, _running)
    router.reset()
    assert router.current_tab is None
    assert not router.poll_active


@pytest.mark.asyncio
async def test_render_failure_stops_poll_cleanly():
    router, _, _ = _router()
    await router.switch("sync")
    feed = StatusFeed()

    def render(status):
        raise ValueError("bad status payload")

    handle = router.start_poll(feed.fetch, render, _running)
    await handle.task
    assert handle.task.exception() is None
    assert feed.calls == 1
    assert not router.poll_active
