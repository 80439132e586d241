# src/weekboard/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (loading both collections), then runs:
- the console REPL (optional),
- the reminder loop as a background asyncio task (optional).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from ..cli.bootstrap import open_state
from ..config import get_settings
from ..connectors.console_connector import ConsoleNotifier, run_console_loop
from ..logging_setup import setup_logging
from ..tracker.reminders import run_reminder_loop

logger = logging.getLogger(__name__)


async def run_app(settings) -> None:
    state = await open_state(settings=settings)

    reminders: asyncio.Task[None] | None = None
    if settings.reminders_enabled:
        reminders = asyncio.create_task(
            run_reminder_loop(
                state.session,
                ConsoleNotifier(),
                interval_seconds=settings.reminder_interval_seconds,
                lead_minutes=settings.reminder_lead_minutes,
            )
        )

    try:
        if settings.console_enabled:
            await run_console_loop(state)
        elif reminders is not None:
            logger.info("Console disabled. Running reminders only. Press Ctrl+C to stop.")
            await reminders
        else:
            logger.warning("Console and reminders are both disabled; nothing to do.")
    finally:
        if reminders is not None:
            reminders.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reminders


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_file = setup_logging(log_dir=settings.data_dir, console_level=console_level)
    logger.info("Starting %s... (log file %s)", settings.app_name, log_file)

    try:
        asyncio.run(run_app(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    logger.info("Bye.")


if __name__ == "__main__":
    main()
