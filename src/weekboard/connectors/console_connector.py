# src/weekboard/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..cli.commands import render_week
from ..core.state import AppState
from ..errors import WeekboardError

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("/exit", "/quit", "/q")


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%H:%M:%S")


class ConsoleNotifier:
    """ReminderNotifier that prints into the interactive console."""

    async def notify(self, text: str) -> None:
        print(f"\n[{_ts_local()}] {text}", flush=True)


async def handle_line(state: AppState, line: str) -> str | None:
    """
    Run one console line. Returns the text to print (None for nothing).

    Plain text (no leading slash) is shorthand for /add.
    """
    line = line.strip()
    if not line:
        return None

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    if not line.startswith("/"):
        line = f"/add {line}"

    try:
        return await command_registry.handle(state, line, emit=emit)
    except (WeekboardError, ValueError) as e:
        logger.info("Command failed: %s (%s)", line, e)
        return f"Error: {e}"
    except Exception:
        logger.exception("Command handler crashed.")
        return "Internal error while handling a command."


async def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    print("Type /help for commands, /exit to quit. Plain text adds a task.\n")
    print(render_week(state))

    while True:
        try:
            user_input = await asyncio.to_thread(input, "\n>>> ")
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if user_input.strip().lower() in EXIT_COMMANDS:
            logger.info("Console exit command received.")
            break

        reply = await handle_line(state, user_input)
        if reply is not None:
            print(reply)

    logger.info("Console connector finished.")
