"""Line-oriented terminal front end for the console engine."""
from __future__ import annotations

import asyncio
import getpass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from tbconsole.config import dlog
from tbconsole.modal import FormField, ModalSession
from tbconsole.session import Anonymous, AwaitingPasswordReset, AwaitingSecondFactor
from tbconsole.view import LOGIN, PASSWORD_RESET, SECOND_FACTOR, ConsoleView, PanelContent


HELP = """Commands:
  tabs                 list tabs
  tab <name> | <name>  switch tab
  refresh              reload the current tab
  new                  create an item on the current tab
  delete <id>          delete an item on the current tab
  run                  start a sync (sync tab)
  edit                 edit settings (config tab)
  password             change your password
  2fa                  set up or disable two-factor auth
  logout               sign out
  quit                 exit"""

MODAL_SURFACE = "modal"


def format_table(columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> List[str]:
    cells = [[str(c) for c in columns]] + [["" if v is None else str(v) for v in row] for row in rows]
    widths = [max(len(row[i]) for row in cells) for i in range(len(columns))]
    lines = []
    for n, row in enumerate(cells):
        lines.append("  ".join(value.ljust(widths[i]) for i, value in enumerate(row)).rstrip())
        if n == 0:
            lines.append("  ".join("-" * w for w in widths))
    return lines


def format_content(content: Any) -> List[str]:
    if not isinstance(content, PanelContent):
        return [str(content)]
    lines = [f"== {content.title} =="]
    if content.message:
        lines.append(content.message)
    if content.columns:
        if content.rows:
            columns = ("#",) + tuple(content.columns) if content.row_ids else tuple(content.columns)
            rows = [
                ((rid,) + tuple(row)) if content.row_ids else tuple(row)
                for rid, row in zip(content.row_ids or [None] * len(content.rows), content.rows)
            ]
            lines.extend(format_table(columns, rows))
        elif not content.message:
            lines.append(content.empty_message)
    lines.extend(content.notes)
    if content.actions:
        lines.append("actions: " + ", ".join(sorted(content.actions)))
    return lines


class TerminalView(ConsoleView):
    def __init__(self, out=print) -> None:
        self._out = out
        self.content: Any = None
        self.active_tab: Optional[str] = None
        self.submit_enabled = True

    def write(self, line: str) -> None:
        self._out(line)

    # ---------- auth surfaces ----------
    def show_login(self) -> None:
        self.content = None
        self._out("== Sign in ==")

    def show_second_factor(self) -> None:
        self._out("== Two-factor verification == (type 'back' to return to sign in)")

    def show_password_reset(self) -> None:
        self._out("== Password change required == (type 'back' to return to sign in)")

    def show_app(self) -> None:
        self._out("Signed in.")

    def show_field_error(self, surface: str, message: str) -> None:
        self._out(f"! {message}")

    def set_busy(self, surface: str, busy: bool) -> None:
        if busy:
            labels = {LOGIN: "Signing in...", SECOND_FACTOR: "Verifying...", PASSWORD_RESET: "Saving..."}
            self._out(labels.get(surface, "Working..."))

    def show_password_checklist(self, surface: str, checklist: Sequence[Tuple[str, bool]]) -> None:
        self._out("  " + "  ".join(f"{'[x]' if ok else '[ ]'} {label}" for label, ok in checklist))

    # ---------- app chrome ----------
    def set_account(self, email: Optional[str], totp_label: str) -> None:
        if email:
            self._out(f"Account: {email}  (2fa: {totp_label})")

    def set_tabs(self, tabs: Sequence[Tuple[str, str]], active: Optional[str]) -> None:
        self.active_tab = active
        self._out(" | ".join(f"[{label}]" if tab_id == active else label for tab_id, label in tabs))

    def set_content(self, content: Any) -> None:
        self.content = content
        for line in format_content(content):
            self._out(line)

    # ---------- modal ----------
    def render_modal(self, session: ModalSession) -> None:
        self._out(f"-- {session.title} --")
        for line in session.body.lines:
            self._out(f"  {line}")

    def hide_modal(self) -> None:
        self._out("-- dialog closed --")

    def set_submit_enabled(self, enabled: bool) -> None:
        self.submit_enabled = enabled

    # ---------- toast ----------
    def show_toast(self, toast) -> None:
        self._out(f"[{toast.level}] {toast.message}")

    async def confirm(self, message: str) -> bool:
        answer = await prompt(f"{message} [y/N] ")
        return answer.strip().lower() in {"y", "yes"}


async def prompt(label: str) -> str:
    return await asyncio.to_thread(input, label)


async def prompt_secret(label: str) -> str:
    return await asyncio.to_thread(getpass.getpass, label)


async def read_field(shell, view: TerminalView, f: FormField) -> Any:
    hint = f" ({f.hint})" if f.hint else ""
    if f.kind == "password":
        value = await prompt_secret(f"{f.label}{hint}: ")
        if f.password_checklist:
            shell.session.password_checklist(MODAL_SURFACE, value)
        return value
    if f.kind == "checkbox":
        default = "Y/n" if f.default else "y/N"
        raw = (await prompt(f"{f.label} [{default}]: ")).strip().lower()
        return bool(f.default) if not raw else raw in {"y", "yes"}
    if f.kind in ("select", "multiselect"):
        for n, (_, label) in enumerate(f.options, 1):
            view.write(f"  {n}) {label}")
        if f.kind == "select":
            raw = (await prompt(f"{f.label}{hint} [1]: ")).strip()
            picks = [raw or "1"]
        else:
            raw = (await prompt(f"{f.label}{hint} (comma separated): ")).strip()
            picks = [p for p in raw.split(",") if p.strip()]
        chosen = []
        for p in picks:
            try:
                chosen.append(f.options[int(p) - 1][0])
            except (ValueError, IndexError):
                view.write(f"! ignoring choice {p!r}")
        if f.kind == "select":
            return chosen[0] if chosen else None
        return chosen
    default = "" if f.default in (None, "") else f" [{f.default}]"
    placeholder = f" ({f.placeholder})" if f.placeholder and not default else ""
    raw = await prompt(f"{f.label}{hint}{placeholder}{default}: ")
    return raw if raw.strip() else f.default


async def drive_modal(shell, view: TerminalView) -> None:
    session = shell.modals.session
    if session.on_submit is None:
        await prompt("Press Enter when done ")
        await shell.modals.done()
        return
    values: Dict[str, Any] = {}
    for f in session.body.fields:
        values[f.name] = await read_field(shell, view, f)
        if not shell.modals.is_current(session):
            return
    choice = (await prompt(f"{session.submit_label} / cancel / esc [{session.submit_label}]: ")).strip().lower()
    if choice == "cancel":
        shell.modals.cancel()
    elif choice == "esc":
        shell.modals.escape()
    else:
        await shell.modals.submit(values)


async def drive_auth(shell, view: TerminalView) -> bool:
    """Prompt for the visible auth surface; False when the operator quits."""
    state = shell.session.state
    if isinstance(state, Anonymous):
        email = await prompt("Email: ")
        if email.strip() == "quit":
            return False
        password = await prompt_secret("Password: ")
        await shell.session.login(email, password)
    elif isinstance(state, AwaitingSecondFactor):
        code = await prompt("Code: ")
        if code.strip() == "back":
            await shell.session.logout()
        else:
            await shell.session.verify_second_factor(code)
    elif isinstance(state, AwaitingPasswordReset):
        current = await prompt_secret("Current password (or 'back'): ")
        if current.strip() == "back":
            await shell.session.logout()
            return True
        new = await prompt_secret("New password: ")
        shell.session.password_checklist(PASSWORD_RESET, new)
        confirm = await prompt_secret("Confirm new password: ")
        await shell.session.submit_password_reset(current, new, confirm)
    return True


async def dispatch(shell, view: TerminalView, line: str) -> bool:
    """Run one app command; False when the operator quits."""
    parts = line.strip().split()
    if not parts:
        return True
    cmd, args = parts[0].lower(), parts[1:]
    if cmd in ("quit", "exit"):
        return False
    if cmd == "help":
        view.write(HELP)
    elif cmd == "tabs":
        view.set_tabs(shell.router.tabs, shell.router.current_tab)
    elif cmd == "tab" and args:
        await switch_tab(shell, view, args[0])
    elif shell.router.has_tab(cmd):
        await switch_tab(shell, view, cmd)
    elif cmd == "refresh":
        await shell.router.refresh()
    elif cmd == "password":
        shell.session.open_change_password()
    elif cmd == "2fa":
        await shell.two_factor.open_menu_item()
    elif cmd == "logout":
        await shell.session.logout()
    else:
        content = view.content
        action = content.actions.get(cmd) if isinstance(content, PanelContent) else None
        if action is None:
            view.write(f"! unknown command {cmd!r} (try 'help')")
        else:
            await action(*args)
    return True


async def switch_tab(shell, view: TerminalView, tab_id: str) -> None:
    if not shell.router.has_tab(tab_id):
        view.write(f"! unknown tab {tab_id!r}")
        return
    await shell.router.switch(tab_id)


async def run_console(shell, view: TerminalView) -> None:
    await shell.start()
    try:
        while True:
            try:
                if shell.modals.is_open:
                    await drive_modal(shell, view)
                elif not shell.session.authenticated:
                    if not await drive_auth(shell, view):
                        break
                elif not await dispatch(shell, view, await prompt("> ")):
                    break
            except (EOFError, KeyboardInterrupt):
                break
            except Exception as e:
                # Keep the console interactive after any single failure.
                dlog("console_action_error", repr(e))
                shell.toasts.error(str(e) or type(e).__name__)
    finally:
        shell.close()
