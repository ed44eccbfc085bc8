# src/taskboard/cli/commands.py

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any

from ..core.board import TaskBoard
from ..sync.realtime import RealtimeSimulator
from ..tasks.ordering import DropPosition
from ..tasks.task_models import Task, TaskStatus

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CommandContext:
    """What command handlers get to work with."""

    board: TaskBoard
    simulator: RealtimeSimulator | None = None
    background: set[asyncio.Task[Any]] = field(default_factory=set)

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        """Run a coroutine without blocking the prompt (confirmations take a while)."""
        task = asyncio.create_task(coro)
        self.background.add(task)
        task.add_done_callback(self.background.discard)
        return task


CommandHandler = Callable[[CommandContext, list[str]], str | Awaitable[str]]


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /list, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, ctx: CommandContext, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        Handlers may be plain functions or coroutines.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        result = handler(ctx, args)
        if inspect.isawaitable(result):
            result = await result
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def resolve_task_id(board: TaskBoard, token: str) -> str | None:
    """Exact id, or a unique id suffix (ids are long; the tail is what people type)."""
    if board.get_task(token) is not None:
        return token
    matches = [t.id for t in board.tasks if t.id.endswith(token)]
    return matches[0] if len(matches) == 1 else None


def _parse_status(raw: str) -> TaskStatus | None:
    try:
        return TaskStatus(raw.strip().lower().replace("-", "_"))
    except ValueError:
        return None


def _format_task(task: Task, loading: bool) -> str:
    who = f" @{task.assignee}" if task.assignee else ""
    tags = f" #{' #'.join(sorted(task.tags))}" if task.tags else ""
    busy = " (saving...)" if loading else ""
    return f"    [{task.id[-6:]}] {task.title} ({task.priority}{who}){tags} order={task.order:g}{busy}"


def cmd_help(ctx: CommandContext, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(ctx: CommandContext, args: list[str]) -> str:
    board = ctx.board
    lines: list[str] = []
    for status, tasks in board.tasks_by_status().items():
        lines.append(f"{status.upper()} ({len(tasks)})")
        for task in tasks:
            lines.append(_format_task(task, board.is_task_loading(task.id)))
    return "\n".join(lines)


def cmd_add(ctx: CommandContext, args: list[str]) -> str:
    """/add <status> <title...>"""
    if len(args) < 2 or _parse_status(args[0]) is None:
        return "Usage: /add <todo|in_progress|done> <title>"
    task = ctx.board.add_task(" ".join(args[1:]), status=_parse_status(args[0]) or TaskStatus.TODO)
    return f"Created [{task.id[-6:]}] {task.title}"


def cmd_edit(ctx: CommandContext, args: list[str]) -> str:
    """/edit <id> field=value [field=value ...]"""
    if len(args) < 2:
        return "Usage: /edit <id> field=value ... (title, description, priority, assignee, tags=a,b, due=ISO)"
    task_id = resolve_task_id(ctx.board, args[0])
    if task_id is None:
        return f"No task matches {args[0]!r}."

    aliases = {"due": "due_date", "desc": "description"}
    changes: dict[str, Any] = {}
    for pair in args[1:]:
        if "=" not in pair:
            return f"Expected field=value, got {pair!r}."
        name, value = pair.split("=", 1)
        name = aliases.get(name, name)
        if name == "tags":
            changes[name] = [t for t in value.split(",") if t]
        elif name in ("assignee", "due_date"):
            changes[name] = value or None
        else:
            changes[name] = value

    updated = ctx.board.update_task(task_id, **changes)
    return f"Updated [{task_id[-6:]}] {updated.title}" if updated else "Nothing to update."


def cmd_move(ctx: CommandContext, args: list[str]) -> str:
    if len(args) != 2 or _parse_status(args[1]) is None:
        return "Usage: /move <id> <todo|in_progress|done>"
    task_id = resolve_task_id(ctx.board, args[0])
    if task_id is None:
        return f"No task matches {args[0]!r}."
    ctx.board.move_task(task_id, _parse_status(args[1]) or TaskStatus.TODO)
    return f"Moved [{task_id[-6:]}] to {args[1]}"


def cmd_drop(ctx: CommandContext, args: list[str]) -> str:
    """/drop <id> <status> [before|after <target_id>]"""
    if len(args) not in (2, 4) or _parse_status(args[1]) is None:
        return "Usage: /drop <id> <status> [before|after <target_id>]"
    task_id = resolve_task_id(ctx.board, args[0])
    if task_id is None:
        return f"No task matches {args[0]!r}."

    target_id: str | None = None
    position = DropPosition.AFTER
    if len(args) == 4:
        try:
            position = DropPosition(args[2].lower())
        except ValueError:
            return "Position must be 'before' or 'after'."
        target_id = resolve_task_id(ctx.board, args[3])
        if target_id is None:
            return f"No task matches {args[3]!r}."

    ctx.spawn(ctx.board.drop_task(task_id, _parse_status(args[1]) or TaskStatus.TODO, target_id, position))
    return f"Moving [{task_id[-6:]}]... waiting for confirmation."


def cmd_delete(ctx: CommandContext, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /delete <id>"
    task_id = resolve_task_id(ctx.board, args[0])
    removed = ctx.board.delete_task(task_id) if task_id else None
    return f"Deleted [{removed.id[-6:]}] {removed.title}" if removed else f"No task matches {args[0]!r}."


def cmd_undo(ctx: CommandContext, args: list[str]) -> str:
    action = ctx.board.undo()
    return f"Undone: {action.description}" if action else "Nothing to undo."


def cmd_redo(ctx: CommandContext, args: list[str]) -> str:
    action = ctx.board.redo()
    return f"Redone: {action.description}" if action else "Nothing to redo."


def cmd_status(ctx: CommandContext, args: list[str]) -> str:
    board = ctx.board
    sim = "ON" if ctx.simulator is not None and ctx.simulator.is_active else "OFF"
    return (
        "Status:\n"
        f"  Tasks: {len(board.tasks)}\n"
        f"  Awaiting confirmation: {len(board.loading_tasks)}\n"
        f"  Undo: {board.undo_description() or '-'}\n"
        f"  Redo: {board.redo_description() or '-'}\n"
        f"  Realtime simulator: {sim}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show the board lane by lane.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Create a task: /add <status> <title>.")
registry.register("edit", cmd_edit, help_text="Edit fields: /edit <id> field=value ...")
registry.register("move", cmd_move, help_text="Change status: /move <id> <status>.")
registry.register(
    "drop", cmd_drop, help_text="Reorder (confirmed): /drop <id> <status> [before|after <target>]."
)
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["rm"])
registry.register("undo", cmd_undo, help_text="Undo the last change.", aliases=["z"])
registry.register("redo", cmd_redo, help_text="Redo the last undone change.", aliases=["y"])
registry.register("status", cmd_status, help_text="Show history/confirmation/simulator state.")
