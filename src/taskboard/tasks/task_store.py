# src/taskboard/tasks/task_store.py

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from ..core.ports import KeyValueStore
from .ordering import ensure_orders, group_by_status
from .task_models import Task, TaskStatus, coerce_changes, utc_now

logger = logging.getLogger(__name__)

DEFAULT_KEY = "tasks"


class TaskStore:
    """
    The single mutable collection of tasks.

    Every other component reads from it or writes through its methods; none
    keeps its own copy of the collection. Tasks are immutable values here:
    writes swap the stored object for a new one.

    Persistence is optional: with a KeyValueStore backend the collection is
    loaded once on construction and written back after every mutation as a
    JSON list under `key`.

    Unknown ids never raise: lookups return None and writes are no-ops.
    """

    def __init__(
        self,
        backend: KeyValueStore | None = None,
        *,
        tasks: Iterable[Task] | None = None,
        key: str = DEFAULT_KEY,
    ) -> None:
        self._backend = backend
        self._key = key
        self._tasks: list[Task] = []

        if tasks is not None:
            self._tasks = list(tasks)
            self._save()
        elif backend is not None:
            self._tasks = self._load()

        logger.info("TaskStore ready key=%s total=%s persistent=%s", key, len(self._tasks), backend is not None)

    # ---- persistence helpers ----

    def _load(self) -> list[Task]:
        assert self._backend is not None
        try:
            raw = self._backend.get(self._key)
        except Exception:
            logger.exception("Failed to read tasks from backend key=%s; starting empty.", self._key)
            return []
        if not isinstance(raw, list):
            return []

        out: list[Task] = []
        seen: set[str] = set()
        for item in ensure_orders([r for r in raw if isinstance(r, dict)]):
            try:
                task = Task.from_dict(item)
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed persisted task: %r", item)
                continue
            if task.id in seen:
                continue
            seen.add(task.id)
            out.append(task)
        logger.debug("Loaded %d tasks from key=%s", len(out), self._key)
        return out

    def _save(self) -> None:
        if self._backend is None:
            return
        try:
            self._backend.set(self._key, [t.to_dict() for t in self._tasks])
        except Exception:
            logger.exception("Failed to persist tasks key=%s", self._key)

    def _index(self, task_id: str) -> int | None:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return None

    # ---- queries ----

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    def count_tasks(self) -> int:
        return len(self._tasks)

    def get_task(self, task_id: str) -> Task | None:
        i = self._index(task_id)
        return None if i is None else self._tasks[i]

    def __contains__(self, task_id: object) -> bool:
        return isinstance(task_id, str) and self._index(task_id) is not None

    def tasks_in_status(self, status: TaskStatus) -> list[Task]:
        """Tasks of one lane in visible order."""
        return group_by_status(self._tasks)[TaskStatus.parse(status)]

    def snapshot(self) -> list[Task]:
        """Copy of the collection; cheap because tasks are values."""
        return list(self._tasks)

    # ---- mutations ----

    def insert_task(self, task: Task) -> None:
        """Append a task, or replace the stored task with the same id."""
        i = self._index(task.id)
        if i is None:
            self._tasks.append(task)
        else:
            self._tasks[i] = task
        self._save()
        logger.debug("Task stored id=%s status=%s order=%s", task.id, task.status, task.order)

    def put_task(self, task: Task) -> bool:
        """Replace an existing task. Returns False (no-op) if the id is unknown."""
        i = self._index(task.id)
        if i is None:
            logger.debug("put_task: unknown id=%s", task.id)
            return False
        self._tasks[i] = task
        self._save()
        return True

    def patch_task(self, task_id: str, changes: dict[str, Any], *, touch: bool = True) -> Task | None:
        """
        Apply a partial update to one task.

        Returns the new task, or None when the id is unknown. With touch=True
        updated_at is refreshed unless the changes carry their own value.
        """
        i = self._index(task_id)
        if i is None:
            logger.debug("patch_task: unknown id=%s", task_id)
            return None
        clean = coerce_changes(changes)
        if touch and "updated_at" not in clean:
            clean["updated_at"] = utc_now()
        updated = self._tasks[i].with_changes(**clean)
        self._tasks[i] = updated
        self._save()
        return updated

    def remove_task(self, task_id: str) -> Task | None:
        i = self._index(task_id)
        if i is None:
            logger.debug("remove_task: unknown id=%s", task_id)
            return None
        removed = self._tasks.pop(i)
        self._save()
        logger.debug("Task removed id=%s", task_id)
        return removed

    def replace_all(self, tasks: Iterable[Task]) -> None:
        """Swap the whole collection (snapshot restore, normalization)."""
        self._tasks = list(tasks)
        self._save()
