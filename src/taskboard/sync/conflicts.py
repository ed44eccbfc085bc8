# src/taskboard/sync/conflicts.py

from __future__ import annotations

"""
External edits and conflict resolution.

An external update conflicts with the local user when it targets the task
being edited locally AND touches at least one of the fields the local edit
touches. Conflicts are merged last-write-wins: external values win on
overlapping fields, local values survive on the rest.
"""

import logging
import random
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from types import MappingProxyType
from typing import Any, assert_never

from ..core.ports import Notifier
from ..tasks.task_models import (
    UPDATABLE_FIELDS,
    Task,
    TaskPriority,
    TaskStatus,
    coerce_changes,
    utc_now,
)
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)

EXTERNAL_USERS: tuple[str, ...] = (
    "Nikhil Nagar",
    "Sangamesh Sangalad",
    "Shirsha Chaudhuri",
    "Bob Johnson",
    "David Brown",
)

# Bookkeeping fields never count towards a conflict.
_IGNORED_FIELDS = frozenset({"updated_at"})


class UpdateType(StrEnum):
    """
    Kinds of simulated external edits.

    Each one replaces a value; none appends or grows a field, so running the
    simulator for hours cannot bloat the data.
    """

    STATUS_CHANGE = "status_change"
    PRIORITY_CHANGE = "priority_change"
    ASSIGNEE_CHANGE = "assignee_change"


class ResolutionOutcome(StrEnum):
    APPLIED = "applied"
    MERGED = "merged"
    SKIPPED = "skipped"


@dataclass(slots=True, frozen=True)
class ExternalUpdate:
    task_id: str
    changes: Mapping[str, Any]
    update_type: UpdateType
    external_user: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "changes", MappingProxyType(coerce_changes(dict(self.changes))))


def generate_random_update(tasks: Sequence[Task], rng: random.Random | None = None) -> ExternalUpdate | None:
    """Pick a random task and a random kind of edit; the new value always differs from the current one."""
    if not tasks:
        return None
    r = rng or random.Random()

    task = r.choice(list(tasks))
    update_type = r.choice(list(UpdateType))
    users = [u for u in EXTERNAL_USERS if u != task.assignee] or list(EXTERNAL_USERS)
    external_user = r.choice(users)

    changes: dict[str, Any]
    match update_type:
        case UpdateType.STATUS_CHANGE:
            changes = {"status": r.choice([s for s in TaskStatus if s != task.status])}
        case UpdateType.PRIORITY_CHANGE:
            changes = {"priority": r.choice([p for p in TaskPriority if p != task.priority])}
        case UpdateType.ASSIGNEE_CHANGE:
            changes = {"assignee": external_user}
        case _:
            assert_never(update_type)

    return ExternalUpdate(task_id=task.id, changes=changes, update_type=update_type, external_user=external_user)


def describe_update(update: ExternalUpdate) -> str:
    user = update.external_user
    match update.update_type:
        case UpdateType.STATUS_CHANGE:
            return f"{user} moved a task to {update.changes.get('status')}"
        case UpdateType.PRIORITY_CHANGE:
            return f"{user} changed task priority to {update.changes.get('priority')}"
        case UpdateType.ASSIGNEE_CHANGE:
            return f"{user} reassigned a task to {update.changes.get('assignee')}"
        case _:
            assert_never(update.update_type)


def changed_fields(changes: Mapping[str, Any]) -> frozenset[str]:
    return frozenset(k for k in changes if k in UPDATABLE_FIELDS) - _IGNORED_FIELDS


def detect_conflict(
    task_id: str,
    external_changes: Mapping[str, Any],
    editing_task_id: str | None,
    local_changes: Mapping[str, Any] | None,
) -> bool:
    if editing_task_id is None or task_id != editing_task_id or not local_changes:
        return False
    return bool(changed_fields(external_changes) & changed_fields(local_changes))


def merge_changes(
    original: Task,
    local_changes: Mapping[str, Any],
    external_changes: Mapping[str, Any],
    now: datetime | None = None,
) -> Task:
    """original <- local <- external, stamped with the resolution time."""
    merged = {**coerce_changes(dict(local_changes)), **coerce_changes(dict(external_changes))}
    merged["updated_at"] = now or utc_now()
    return original.with_changes(**merged)


ConflictCallback = Callable[[str, Mapping[str, Any], Mapping[str, Any]], None]


class ConflictResolver:
    """
    Applies external updates to the store, merging with the local edit in progress.

    The local edit is announced with start_editing(task_id, changes) and
    withdrawn with stop_editing(). Recording the resulting change in the undo
    history is left to the caller (TaskBoard.handle_external_update).
    """

    def __init__(
        self,
        store: TaskStore,
        notifier: Notifier,
        *,
        clock: Callable[[], datetime] = utc_now,
        on_conflict: ConflictCallback | None = None,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._clock = clock
        self._on_conflict = on_conflict
        self._editing_task_id: str | None = None
        self._local_changes: dict[str, Any] | None = None

    @property
    def editing_task_id(self) -> str | None:
        return self._editing_task_id

    @property
    def local_changes(self) -> dict[str, Any] | None:
        return dict(self._local_changes) if self._local_changes is not None else None

    def start_editing(self, task_id: str, changes: Mapping[str, Any]) -> None:
        self._editing_task_id = task_id
        self._local_changes = coerce_changes(dict(changes))
        logger.debug("Local edit started task=%s fields=%s", task_id, sorted(self._local_changes))

    def stop_editing(self) -> None:
        self._editing_task_id = None
        self._local_changes = None

    def handle_external_update(self, update: ExternalUpdate) -> ResolutionOutcome:
        task = self._store.get_task(update.task_id)
        if task is None:
            logger.warning("External update for unknown task %s ignored", update.task_id)
            return ResolutionOutcome.SKIPPED

        if detect_conflict(update.task_id, update.changes, self._editing_task_id, self._local_changes):
            local = self._local_changes or {}
            logger.warning(
                "Conflict on task %s: external=%s local=%s",
                update.task_id,
                sorted(changed_fields(update.changes)),
                sorted(changed_fields(local)),
            )
            merged = merge_changes(task, local, update.changes, self._clock())
            self._store.put_task(merged)
            self._notifier.notify(
                "warning",
                f"Conflict: {update.external_user} also edited this task. External changes applied.",
            )
            if self._on_conflict is not None:
                self._on_conflict(update.task_id, dict(update.changes), dict(local))
            self.stop_editing()
            return ResolutionOutcome.MERGED

        changes = dict(update.changes)
        changes.setdefault("updated_at", self._clock())
        self._store.patch_task(update.task_id, changes)
        logger.info("Applied external %s on task %s by %s", update.update_type, update.task_id, update.external_user)
        self._notifier.notify("info", describe_update(update))
        return ResolutionOutcome.APPLIED
