"""Recording view and small async helpers shared by the console tests."""
import asyncio

from tbconsole.config import ConsoleConfig
from tbconsole.view import ConsoleView


ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "Admin1234"


class RecordingView(ConsoleView):
    """Keeps what the engine asked to draw so tests can assert on it."""

    def __init__(self):
        self.events = []
        self.surface = None
        self.field_errors = {}
        self.busy = {}
        self.checklists = {}
        self.account = (None, None)
        self.tabs = []
        self.active_tab = None
        self.contents = []
        self.modal_renders = []
        self.modal_visible = False
        self.submit_enabled = None
        self.toasts = []
        self.toast_visible = False
        self.confirm_answer = True
        self.confirm_prompts = []

    @property
    def content(self):
        return self.contents[-1] if self.contents else None

    def toast_messages(self, level=None):
        return [t.message for t in self.toasts if level is None or t.level == level]

    def show_login(self):
        self.events.append("show_login")
        self.surface = "login"

    def show_second_factor(self):
        self.events.append("show_second_factor")
        self.surface = "second_factor"

    def show_password_reset(self):
        self.events.append("show_password_reset")
        self.surface = "password_reset"

    def show_app(self):
        self.events.append("show_app")
        self.surface = "app"

    def show_field_error(self, surface, message):
        self.field_errors[surface] = message

    def clear_field_error(self, surface):
        self.field_errors.pop(surface, None)

    def set_busy(self, surface, busy):
        self.busy[surface] = busy

    def show_password_checklist(self, surface, checklist):
        self.checklists[surface] = list(checklist)

    def set_account(self, email, totp_label):
        self.account = (email, totp_label)

    def set_tabs(self, tabs, active):
        self.tabs = list(tabs)
        self.active_tab = active

    def set_content(self, content):
        self.contents.append(content)

    def render_modal(self, session):
        self.modal_visible = True
        self.modal_renders.append((session.title, tuple(session.body.lines)))

    def hide_modal(self):
        self.modal_visible = False

    def set_submit_enabled(self, enabled):
        self.events.append(("submit_enabled", enabled))
        self.submit_enabled = enabled

    def show_toast(self, toast):
        self.toasts.append(toast)
        self.toast_visible = True

    def hide_toast(self):
        self.toast_visible = False

    async def confirm(self, message):
        self.confirm_prompts.append(message)
        return self.confirm_answer


async def wait_until(predicate, timeout=2.0, step=0.01):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(step)


def make_config(**overrides):
    values = {
        "base_url": "http://testserver",
        "poll_interval": 0.02,
        "toast_seconds": 0.05,
    }
    values.update(overrides)
    return ConsoleConfig(**values)


