# src/taskboard/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the TaskBoard, then runs on one event loop:
- the realtime simulator in the background (optional),
- the console REPL.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_board, create_simulator
from ..cli.commands import CommandContext
from ..cli.console import run_console_loop
from ..config import get_settings
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _run(settings) -> None:
    board = create_board(settings=settings)
    simulator = create_simulator(board, settings=settings) if settings.sync_enabled else None
    ctx = CommandContext(board=board, simulator=simulator)

    if simulator is not None:
        simulator.start()
    try:
        await run_console_loop(ctx)
    finally:
        if simulator is not None:
            await simulator.stop()


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    log_file = setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s... (log file: %s)", settings.app_name, log_file)
    try:
        asyncio.run(_run(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    logger.info("Bye.")


if __name__ == "__main__":
    main()
