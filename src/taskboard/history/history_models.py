# src/taskboard/history/history_models.py

from __future__ import annotations

import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from types import MappingProxyType
from typing import Any, Mapping

from ..tasks.task_models import Task, TaskStatus, utc_now


class HistoryActionType(StrEnum):
    CREATE_TASK = "CREATE_TASK"
    UPDATE_TASK = "UPDATE_TASK"
    DELETE_TASK = "DELETE_TASK"
    REORDER_TASK = "REORDER_TASK"


def generate_action_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"history_{int(time.time() * 1000)}_{suffix}"


def _frozen_mapping(values: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(values))


@dataclass(slots=True, frozen=True)
class CreateTask:
    """Creation of `task`; the full entity is kept so redo reinserts it verbatim."""

    task: Task
    description: str = ""
    id: str = field(default_factory=generate_action_id)
    timestamp: datetime = field(default_factory=utc_now)
    type: HistoryActionType = field(default=HistoryActionType.CREATE_TASK, init=False)


@dataclass(slots=True, frozen=True)
class UpdateTask:
    """
    Field-level update.

    previous_state and new_state cover the same keys: only those fields are
    touched by undo/redo.
    """

    task_id: str
    previous_state: Mapping[str, Any]
    new_state: Mapping[str, Any]
    description: str = ""
    id: str = field(default_factory=generate_action_id)
    timestamp: datetime = field(default_factory=utc_now)
    type: HistoryActionType = field(default=HistoryActionType.UPDATE_TASK, init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "previous_state", _frozen_mapping(self.previous_state))
        object.__setattr__(self, "new_state", _frozen_mapping(self.new_state))

    @property
    def fields(self) -> list[str]:
        return list(self.new_state)


@dataclass(slots=True, frozen=True)
class DeleteTask:
    task: Task
    description: str = ""
    id: str = field(default_factory=generate_action_id)
    timestamp: datetime = field(default_factory=utc_now)
    type: HistoryActionType = field(default=HistoryActionType.DELETE_TASK, init=False)


@dataclass(slots=True, frozen=True)
class ReorderTask:
    task_id: str
    previous_status: TaskStatus
    previous_order: float
    new_status: TaskStatus
    new_order: float
    description: str = ""
    id: str = field(default_factory=generate_action_id)
    timestamp: datetime = field(default_factory=utc_now)
    type: HistoryActionType = field(default=HistoryActionType.REORDER_TASK, init=False)


HistoryAction = CreateTask | UpdateTask | DeleteTask | ReorderTask
