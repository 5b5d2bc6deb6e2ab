import asyncio

from dotenv import load_dotenv

from tbconsole.config import load_console_config, dlog
from tbconsole.shell import ConsoleShell
from tbconsole.terminal import TerminalView, run_console


def main() -> None:
    load_dotenv()
    config = load_console_config()
    view = TerminalView()
    shell = ConsoleShell(config, view)
    dlog("console_target", config.base_url)
    try:
        asyncio.run(run_console(shell, view))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    # Local runs: python ticketbot_console.py --console-debug
    main()
