# src/taskboard/core/board.py

from __future__ import annotations

"""
TaskBoard: the named mutation entry points.

Every caller (console, simulator, tests) mutates tasks through this class.
It owns no task data itself; the TaskStore injected at construction is the
only copy. Each local mutation records one invertible history action, except
while undo/redo replays an action. Reorders additionally run through the
optimistic coordinator and are recorded only once confirmed.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from ..history.history_manager import HistoryManager
from ..history.history_models import HistoryAction
from ..history.replay import apply_redo, apply_undo
from ..services.notifications import NotificationCenter
from ..sync.conflicts import ConflictCallback, ConflictResolver, ExternalUpdate, ResolutionOutcome
from ..sync.optimistic import OptimisticCoordinator, RollbackStrategy
from ..tasks.ordering import (
    DropPosition,
    compute_insertion_order,
    group_by_status,
    lane_neighbours,
    next_order,
    normalize_orders,
    rank_between,
    should_normalize,
)
from ..tasks.task_filters import TaskFilter, filter_tasks
from ..tasks.task_models import (
    UPDATABLE_FIELDS,
    Task,
    TaskPriority,
    TaskStatus,
    coerce_changes,
    generate_task_id,
    parse_timestamp,
    utc_now,
)
from ..tasks.task_store import TaskStore
from .ports import ConfirmationApi, Notifier

logger = logging.getLogger(__name__)


class TaskBoard:
    def __init__(
        self,
        store: TaskStore,
        api: ConfirmationApi,
        notifier: Notifier,
        *,
        history: HistoryManager | None = None,
        rollback: RollbackStrategy | str = RollbackStrategy.SCOPED,
        on_conflict: ConflictCallback | None = None,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.history = history or HistoryManager()
        self._api = api
        self.coordinator = OptimisticCoordinator(store, notifier, rollback=rollback)
        self.resolver = ConflictResolver(store, notifier, on_conflict=on_conflict)

    @classmethod
    def in_memory(
        cls,
        api: ConfirmationApi,
        *,
        tasks: Iterable[Task] = (),
        notifier: Notifier | None = None,
        history_max_size: int = 50,
        rollback: RollbackStrategy | str = RollbackStrategy.SCOPED,
    ) -> TaskBoard:
        return cls(
            TaskStore(tasks=tasks),
            api,
            notifier or NotificationCenter(),
            history=HistoryManager(history_max_size),
            rollback=rollback,
        )

    # ---- queries ----

    @property
    def tasks(self) -> list[Task]:
        return self.store.tasks

    def get_task(self, task_id: str) -> Task | None:
        return self.store.get_task(task_id)

    def tasks_by_status(self) -> dict[TaskStatus, list[Task]]:
        return group_by_status(self.store.tasks)

    def filter_tasks(self, criteria: TaskFilter) -> list[Task]:
        return filter_tasks(self.store.tasks, criteria)

    # ---- create / update / delete ----

    def add_task(
        self,
        title: str,
        *,
        description: str = "",
        status: TaskStatus | str = TaskStatus.TODO,
        priority: TaskPriority | str = TaskPriority.MEDIUM,
        assignee: str | None = None,
        due_date: datetime | str | None = None,
        tags: Iterable[str] = (),
    ) -> Task:
        if not title or not title.strip():
            raise ValueError("title is required")

        lane = TaskStatus.parse(status)
        now = utc_now()
        task = Task(
            id=generate_task_id(),
            title=title.strip(),
            description=description,
            status=lane,
            priority=TaskPriority.parse(priority),
            assignee=assignee or None,
            created_at=now,
            updated_at=now,
            due_date=parse_timestamp(due_date),
            tags=frozenset(tags),
            order=next_order(self.store.tasks, lane),
        )
        self.store.insert_task(task)
        self.history.record_create(task)
        logger.debug("Task created id=%s status=%s order=%s", task.id, task.status, task.order)
        return task

    def update_task(self, task_id: str, **changes: Any) -> Task | None:
        """Partial update; unknown ids and empty/unknown fields are no-ops."""
        task = self.store.get_task(task_id)
        if task is None:
            logger.debug("update_task: unknown id=%s", task_id)
            return None

        new_state = coerce_changes(changes)
        new_state.pop("updated_at", None)
        if not new_state:
            return task

        previous_state = task.pick(new_state)
        updated = self.store.patch_task(task_id, new_state)
        self.history.record_update(task_id, previous_state, new_state, task.title)
        return updated

    def delete_task(self, task_id: str) -> Task | None:
        removed = self.store.remove_task(task_id)
        if removed is not None:
            self.history.record_delete(removed)
        return removed

    def move_task(self, task_id: str, status: TaskStatus | str) -> Task | None:
        return self.update_task(task_id, status=TaskStatus.parse(status))

    # ---- reorder (confirmed) ----

    async def reorder_task(self, task_id: str, status: TaskStatus | str, order: float) -> bool:
        """
        Move a task to `status` at rank `order`, optimistically.

        The move is visible immediately and undone if the confirmation API
        rejects it. Lane normalization is checked here and only here.
        """
        task = self.store.get_task(task_id)
        if task is None:
            logger.debug("reorder_task: unknown id=%s", task_id)
            return False

        lane = TaskStatus.parse(status)
        previous_status = task.status
        effective: dict[str, Any] = {"status": lane, "order": float(order), "previous_order": task.order}

        def apply() -> None:
            before_id, after_id = lane_neighbours(self.store.tasks_in_status(previous_status), task_id)
            self.store.patch_task(task_id, {"status": lane, "order": float(order)})
            if should_normalize(self.store.tasks):
                logger.info("Normalizing task orders")
                self.store.replace_all(normalize_orders(self.store.tasks))
                # Undo must land between the same neighbours in the new numbering.
                effective["previous_order"] = rank_between(
                    self._order_of(before_id),
                    self._order_of(after_id),
                    default=effective["previous_order"],
                )
            moved = self.store.get_task(task_id)
            if moved is not None:
                effective.update(status=moved.status, order=moved.order)

        def commit() -> None:
            self.history.record_reorder(
                task_id,
                previous_status,
                effective["previous_order"],
                effective["status"],
                effective["order"],
                task.title,
            )

        return await self.coordinator.run(
            task_id,
            apply,
            lambda: self._api.reorder(task_id, str(lane), float(order)),
            commit,
            label="reorder",
        )

    def _order_of(self, task_id: str | None) -> float | None:
        task = self.store.get_task(task_id) if task_id is not None else None
        return None if task is None else task.order

    async def drop_task(
        self,
        task_id: str,
        status: TaskStatus | str,
        target_id: str | None = None,
        position: DropPosition | str = DropPosition.AFTER,
    ) -> bool:
        """Drop a task next to `target_id` in lane `status` (append without target)."""
        if target_id is not None and target_id == task_id:
            return False
        lane = TaskStatus.parse(status)
        column = [t for t in self.store.tasks_in_status(lane) if t.id != task_id]
        order = compute_insertion_order(column, target_id, DropPosition(position))
        return await self.reorder_task(task_id, lane, order)

    # ---- undo / redo ----

    def undo(self) -> HistoryAction | None:
        action = self.history.undo()
        if action is None:
            return None
        with self.history.replaying():
            apply_undo(self.store, action)
        return action

    def redo(self) -> HistoryAction | None:
        action = self.history.redo()
        if action is None:
            return None
        with self.history.replaying():
            apply_redo(self.store, action)
        return action

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def undo_description(self) -> str | None:
        return self.history.undo_description()

    def redo_description(self) -> str | None:
        return self.history.redo_description()

    # ---- optimistic state ----

    def is_task_loading(self, task_id: str) -> bool:
        return self.coordinator.is_pending(task_id)

    @property
    def loading_tasks(self) -> frozenset[str]:
        return self.coordinator.pending

    # ---- external edits ----

    @property
    def editing_task_id(self) -> str | None:
        return self.resolver.editing_task_id

    def start_editing(self, task_id: str, changes: Mapping[str, Any]) -> None:
        self.resolver.start_editing(task_id, changes)

    def stop_editing(self) -> None:
        self.resolver.stop_editing()

    def handle_external_update(self, update: ExternalUpdate) -> ResolutionOutcome:
        """
        Apply (or merge) an edit made by another user and record it like a local update.

        The recorded UpdateTask covers exactly the fields whose values changed,
        so undo restores what the board showed before the edit arrived.
        """
        before = self.store.get_task(update.task_id)
        outcome = self.resolver.handle_external_update(update)
        after = self.store.get_task(update.task_id)
        if outcome is ResolutionOutcome.SKIPPED or before is None or after is None:
            return outcome

        changed = [
            name
            for name in sorted(UPDATABLE_FIELDS)
            if name != "updated_at" and getattr(before, name) != getattr(after, name)
        ]
        if changed:
            self.history.record_update(update.task_id, before.pick(changed), after.pick(changed), before.title)
        return outcome
