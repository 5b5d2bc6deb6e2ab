import asyncio

import pytest

from console_support import RecordingView
from tbconsole.modal import FormField, ModalBody, ModalEngine


def _engine():
    view = RecordingView()
    return ModalEngine(view), view


def test_form_field_rejects_unknown_kind():
    with pytest.raises(ValueError):
        FormField("x", "X", kind="slider")


def test_open_renders_and_enables_submit():
    modals, view = _engine()
    body = ModalBody(lines=("hello",), fields=(FormField("name", "Name"),))
    session = modals.open("New Thing", body, None)
    assert modals.is_open
    assert modals.is_current(session)
    assert view.modal_renders == [("New Thing", ("hello",))]
    assert view.submit_enabled is True
    assert body.field("name").label == "Name"
    assert body.field("missing") is None


@pytest.mark.asyncio
async def test_submit_is_single_flight():
    modals, view = _engine()
    release = asyncio.Event()
    calls = []

    async def handler(values):
        calls.append(values)
        await release.wait()

    modals.open("New Rule", ModalBody(), handler)
    first = asyncio.create_task(modals.submit({"a": 1}))
    await asyncio.sleep(0)
    assert view.submit_enabled is False
    assert await modals.submit({"a": 2}) is False

    release.set()
    assert await first is True
    assert calls == [{"a": 1}]
    assert view.submit_enabled is True
    assert not modals.session.submitting


@pytest.mark.asyncio
async def test_failed_handler_leaves_dialog_open_and_propagates():
    modals, view = _engine()

    async def handler(values):
        raise RuntimeError("boom")

    session = modals.open("New Rule", ModalBody(), handler)
    with pytest.raises(RuntimeError):
        await modals.submit()
    assert modals.is_current(session)
    assert session.submittable
    assert view.submit_enabled is True


@pytest.mark.asyncio
async def test_replaced_dialog_is_not_touched_by_old_handler():
    modals, view = _engine()
    release = asyncio.Event()
    old = None

    async def slow(values):
        await release.wait()
        if modals.is_current(old):
            modals.close("submitted")

    old = modals.open("Old", ModalBody(), slow)
    pending = asyncio.create_task(modals.submit())
    await asyncio.sleep(0)

    async def fresh_handler(values):
        pass

    fresh = modals.open("Fresh", ModalBody(), fresh_handler)
    enabled_events = len([e for e in view.events if e == ("submit_enabled", True)])
    release.set()
    await pending

    assert modals.session is fresh
    assert fresh.submittable
    assert len([e for e in view.events if e == ("submit_enabled", True)]) == enabled_events


@pytest.mark.asyncio
async def test_reveal_drops_submit_handler():
    modals, view = _engine()
    calls = []

    async def handler(values):
        calls.append(values)
        modals.reveal("New API Key", ModalBody(lines=("secret-value",)))

    modals.open("New API Key", ModalBody(fields=(FormField("email", "User"),)), handler)
    assert await modals.submit({"email": "a@example.com"})
    session = modals.session
    assert session.on_submit is None
    assert session.actions == ("Done",)
    assert view.submit_enabled is False
    assert view.modal_renders[-1] == ("New API Key", ("secret-value",))
    assert await modals.submit({"email": "b@example.com"}) is False
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_done_closes_then_runs_hook():
    modals, view = _engine()
    seen = []

    async def on_done():
        seen.append(modals.is_open)

    session = modals.open("New API Key", ModalBody(), None)
    modals.reveal("New API Key", ModalBody(lines=("secret-value",)), on_done=on_done)
    await modals.done()
    assert seen == [False]
    assert session.body == ModalBody()
    assert not view.modal_visible
    await modals.done()


def test_close_paths():
    modals, view = _engine()
    modals.open("A", ModalBody(lines=("x",)), None)
    modals.click_overlay(on_surface=True)
    assert modals.is_open
    modals.click_overlay()
    assert not modals.is_open

    modals.open("B", ModalBody(), None)
    modals.escape()
    assert not modals.is_open

    session = modals.open("C", ModalBody(lines=("secret",)), None)
    modals.cancel()
    assert not modals.is_open
    assert session.body.lines == ()
    assert not view.modal_visible
    modals.close()
