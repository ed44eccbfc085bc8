# src/taskboard/history/history_manager.py

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from ..tasks.task_models import Task, TaskStatus
from .history_models import CreateTask, DeleteTask, HistoryAction, ReorderTask, UpdateTask

logger = logging.getLogger(__name__)

MAX_HISTORY_SIZE = 50


class HistoryManager:
    """
    Bounded undo/redo stacks.

    past   -> oldest first; the last item is the next undo.
    future -> the first item is the next redo; only undo() fills it.

    The manager never touches tasks itself. undo()/redo() hand the action back
    and the caller applies it inside `with history.replaying():`, which turns
    record() into a no-op so that the replayed mutation is not recorded as a
    new forward action.
    """

    def __init__(self, max_size: int = MAX_HISTORY_SIZE) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self._max_size = int(max_size)
        self._past: deque[HistoryAction] = deque()
        self._future: deque[HistoryAction] = deque()
        self._replaying = False

    # ---- state ----

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def past(self) -> tuple[HistoryAction, ...]:
        return tuple(self._past)

    @property
    def future(self) -> tuple[HistoryAction, ...]:
        return tuple(self._future)

    @property
    def can_undo(self) -> bool:
        return bool(self._past)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)

    @property
    def size(self) -> int:
        return len(self._past)

    @property
    def is_replaying(self) -> bool:
        return self._replaying

    @contextmanager
    def replaying(self) -> Iterator[None]:
        previous = self._replaying
        self._replaying = True
        try:
            yield
        finally:
            self._replaying = previous

    # ---- stack operations ----

    def record(self, action: HistoryAction) -> bool:
        """Push a forward action. Returns False when suppressed by replay."""
        if self._replaying:
            logger.debug("History record suppressed during replay: %s", action.type)
            return False

        self._past.append(action)
        while len(self._past) > self._max_size:
            evicted = self._past.popleft()
            logger.debug("History full, evicted %s (%s)", evicted.id, evicted.type)
        self._future.clear()
        logger.debug("History recorded %s: %s", action.type, action.description)
        return True

    def undo(self) -> HistoryAction | None:
        if not self._past:
            return None
        action = self._past.pop()
        self._future.appendleft(action)
        return action

    def redo(self) -> HistoryAction | None:
        if not self._future:
            return None
        action = self._future.popleft()
        self._past.append(action)
        return action

    def clear(self) -> None:
        self._past.clear()
        self._future.clear()

    def undo_description(self) -> str | None:
        return self._past[-1].description if self._past else None

    def redo_description(self) -> str | None:
        return self._future[0].description if self._future else None

    # ---- recording helpers ----

    def record_create(self, task: Task) -> bool:
        return self.record(CreateTask(task=task, description=f"Created task: {task.title}"))

    def record_update(
        self,
        task_id: str,
        previous_state: Mapping[str, Any],
        new_state: Mapping[str, Any],
        title: str | None = None,
    ) -> bool:
        changed = ", ".join(new_state)
        return self.record(
            UpdateTask(
                task_id=task_id,
                previous_state=previous_state,
                new_state=new_state,
                description=f"Updated {title or 'task'}: {changed}",
            )
        )

    def record_delete(self, task: Task) -> bool:
        return self.record(DeleteTask(task=task, description=f"Deleted task: {task.title}"))

    def record_reorder(
        self,
        task_id: str,
        previous_status: TaskStatus,
        previous_order: float,
        new_status: TaskStatus,
        new_order: float,
        title: str | None = None,
    ) -> bool:
        return self.record(
            ReorderTask(
                task_id=task_id,
                previous_status=previous_status,
                previous_order=previous_order,
                new_status=new_status,
                new_order=new_order,
                description=f"Moved {title or 'task'} from {previous_status} to {new_status}",
            )
        )
