# src/taskboard/history/replay.py

from __future__ import annotations

"""
Applying history actions to a TaskStore in either direction.

Each action carries all the state it needs, so nothing here reads the store
to decide what to write. Both dispatchers match exhaustively over the closed
HistoryAction union; assert_never makes a new action kind a type error at
every dispatch site until it is handled.
"""

import logging
from typing import assert_never

from ..tasks.task_store import TaskStore
from .history_models import CreateTask, DeleteTask, HistoryAction, ReorderTask, UpdateTask

logger = logging.getLogger(__name__)


def apply_undo(store: TaskStore, action: HistoryAction) -> None:
    match action:
        case CreateTask(task=task):
            store.remove_task(task.id)
        case UpdateTask(task_id=task_id, previous_state=previous):
            store.patch_task(task_id, dict(previous))
        case DeleteTask(task=task):
            store.insert_task(task)
        case ReorderTask(task_id=task_id, previous_status=status, previous_order=order):
            store.patch_task(task_id, {"status": status, "order": order}, touch=False)
        case _:
            assert_never(action)
    logger.info("Undid %s id=%s", action.type, action.id)


def apply_redo(store: TaskStore, action: HistoryAction) -> None:
    match action:
        case CreateTask(task=task):
            store.insert_task(task)
        case UpdateTask(task_id=task_id, new_state=new_state):
            store.patch_task(task_id, dict(new_state))
        case DeleteTask(task=task):
            store.remove_task(task.id)
        case ReorderTask(task_id=task_id, new_status=status, new_order=order):
            store.patch_task(task_id, {"status": status, "order": order}, touch=False)
        case _:
            assert_never(action)
    logger.info("Redid %s id=%s", action.type, action.id)
