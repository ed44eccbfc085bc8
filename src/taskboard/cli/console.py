# src/taskboard/cli/console.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..services.notifications import NotificationCenter
from .commands import CommandContext
from .commands import registry as command_registry

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def _flush_notifications(ctx: CommandContext) -> None:
    notifier = ctx.board.notifier
    if not isinstance(notifier, NotificationCenter):
        return
    for item in notifier.drain():
        _print_ts(f"[{item.severity.upper()}] {item.message}")


async def run_console_loop(ctx: CommandContext) -> None:
    """
    Interactive loop. input() runs in a worker thread so that the event loop
    keeps delivering confirmations and simulated external edits meanwhile.
    """
    logger.info("Console started.")
    _print_ts("[CONSOLE] Use /help for commands, /list to show the board, /exit to quit.\n")

    while True:
        _flush_notifications(ctx)
        try:
            line = (await asyncio.to_thread(input, ">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not line:
            continue

        if line.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = await command_registry.handle(ctx, line)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is None:
            reply = "Commands start with '/'. Use /help to list them."
        _print_ts(reply)

    if ctx.background:
        _print_ts(f"Waiting for {len(ctx.background)} pending confirmation(s)...")
        await asyncio.gather(*ctx.background, return_exceptions=True)
        _flush_notifications(ctx)

    logger.info("Console finished.")
