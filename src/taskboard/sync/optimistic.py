# src/taskboard/sync/optimistic.py

from __future__ import annotations

"""
Optimistic updates with rollback.

A confirmable mutation goes through four steps:
- snapshot the collection under a key unique to the operation,
- apply the mutation to the live store right away,
- await the external confirmation (the only suspension point of the core),
- commit (drop the snapshot, record history) or roll back.

Rollback strategies:

  collection  restore the whole snapshot. A rollback of A then also
              discards anything committed between A's snapshot and A's
              failure, e.g. a concurrent reorder of B.
  scoped      compare-and-swap per task: only the tasks A changed are
              restored, and only if they still hold the values A wrote.
              Changes made by anyone else in the meantime survive.
"""

import itertools
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from ..core.ports import Notifier
from ..tasks.task_models import UPDATABLE_FIELDS, Task
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


class RollbackStrategy(StrEnum):
    SCOPED = "scoped"
    COLLECTION = "collection"


@dataclass(slots=True)
class _Operation:
    key: str
    task_id: str
    snapshot: list[Task]
    # task id -> (before, after); None means absent on that side.
    touched: dict[str, tuple[Task | None, Task | None]] = field(default_factory=dict)


def _diff(before: list[Task], after: list[Task]) -> dict[str, tuple[Task | None, Task | None]]:
    old = {t.id: t for t in before}
    new = {t.id: t for t in after}
    out: dict[str, tuple[Task | None, Task | None]] = {}
    for task_id in old.keys() | new.keys():
        a, b = old.get(task_id), new.get(task_id)
        if a != b:
            out[task_id] = (a, b)
    return out


class OptimisticCoordinator:
    """
    Runs confirmable mutations against a TaskStore.

    Tracks the ids awaiting confirmation (observability only, nothing is
    gated on it) and the snapshots of in-flight operations.
    """

    def __init__(
        self,
        store: TaskStore,
        notifier: Notifier,
        *,
        rollback: RollbackStrategy | str = RollbackStrategy.SCOPED,
        error_duration_ms: int | None = None,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self.rollback_strategy = RollbackStrategy(rollback)
        self._error_duration_ms = error_duration_ms
        self._pending: dict[str, int] = {}
        self._operations: dict[str, _Operation] = {}
        self._seq = itertools.count(1)

    # ---- observability ----

    @property
    def pending(self) -> frozenset[str]:
        return frozenset(self._pending)

    def is_pending(self, task_id: str) -> bool:
        return task_id in self._pending

    @property
    def snapshot_keys(self) -> list[str]:
        return list(self._operations)

    # ---- pending bookkeeping ----

    def _start_pending(self, task_id: str) -> None:
        self._pending[task_id] = self._pending.get(task_id, 0) + 1

    def _stop_pending(self, task_id: str) -> None:
        left = self._pending.get(task_id, 0) - 1
        if left > 0:
            self._pending[task_id] = left
        else:
            self._pending.pop(task_id, None)

    # ---- main entry point ----

    async def run(
        self,
        task_id: str,
        apply: Callable[[], Any],
        confirm: Callable[[], Awaitable[Any]],
        on_commit: Callable[[], Any] | None = None,
        *,
        label: str = "update",
    ) -> bool:
        """
        Apply optimistically, await confirmation, then commit or roll back.

        Returns True if the operation was confirmed. Confirmation failures are
        handled here (rollback + one error notification) and never re-raised.
        """
        key = f"{label}-{task_id}-{time.monotonic_ns()}-{next(self._seq)}"
        op = _Operation(key=key, task_id=task_id, snapshot=self._store.snapshot())
        self._operations[key] = op

        try:
            apply()
            op.touched = _diff(op.snapshot, self._store.snapshot())
            self._start_pending(task_id)
        except Exception:
            self._operations.pop(key, None)
            raise

        logger.debug("Optimistic %s applied key=%s touched=%s", label, key, sorted(op.touched))

        try:
            try:
                await confirm()
            except Exception as exc:
                logger.warning("Confirmation failed for %s key=%s: %r", label, key, exc)
                self._rollback(op)
                message = str(exc) or f"Failed to {label} task"
                self._notifier.notify("error", message, self._error_duration_ms)
                return False

            if task_id not in self._store:
                # Deleted while in flight: nothing to commit.
                logger.info("Task %s vanished before %s confirmation; ignoring.", task_id, label)
                return True

            logger.info("Confirmed %s task=%s", label, task_id)
            if on_commit is not None:
                on_commit()
            return True
        finally:
            self._stop_pending(task_id)
            self._operations.pop(key, None)

    # ---- rollback ----

    def _rollback(self, op: _Operation) -> None:
        if op.task_id not in self._store:
            logger.info("Task %s was deleted meanwhile; rollback skipped.", op.task_id)
            return

        if self.rollback_strategy is RollbackStrategy.COLLECTION:
            self._store.replace_all(op.snapshot)
            logger.info("Rolled back whole collection key=%s", op.key)
            return

        restored = 0
        for task_id, (before, after) in op.touched.items():
            current = self._store.get_task(task_id)
            if before is None or after is None or current is None:
                continue
            changed = [name for name in UPDATABLE_FIELDS if getattr(before, name) != getattr(after, name)]
            guarded = [name for name in changed if name != "updated_at"]
            if any(getattr(current, name) != getattr(after, name) for name in guarded):
                logger.info("Rollback of task %s skipped: changed again since key=%s", task_id, op.key)
                continue
            self._store.patch_task(task_id, before.pick(changed), touch=False)
            restored += 1
        logger.info("Rolled back %d task(s) key=%s", restored, op.key)
