import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from console_support import ADMIN_EMAIL, ADMIN_PASSWORD, RecordingView, make_config
from fake_backend import FakeTicketbot, create_app
from tbconsole.shell import ConsoleShell
from tbconsole.tabs import Location


@pytest.fixture
def backend():
    state = FakeTicketbot()
    state.add_user(ADMIN_EMAIL, ADMIN_PASSWORD)
    return state


@pytest.fixture
def http(backend):
    return TestClient(create_app(backend))


@pytest.fixture
def view():
    return RecordingView()


@pytest_asyncio.fixture
async def new_shell(http):
    """Factory for extra consoles sharing the same cookie jar, like a page reload."""
    made = []

    def factory(view=None, fragment=None, **overrides):
        shell = ConsoleShell(
            make_config(**overrides),
            view or RecordingView(),
            http_session=http,
            location=Location(fragment=fragment),
        )
        made.append(shell)
        return shell

    yield factory
    for shell in made:
        shell.close()


@pytest_asyncio.fixture
async def shell(http, view):
    console = ConsoleShell(make_config(), view, http_session=http, location=Location())
    yield console
    console.close()


@pytest_asyncio.fixture
async def signed_in(shell):
    await shell.start()
    assert await shell.session.login(ADMIN_EMAIL, ADMIN_PASSWORD)
    return shell
