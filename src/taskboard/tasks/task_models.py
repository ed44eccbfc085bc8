# src/taskboard/tasks/task_models.py

from __future__ import annotations

import random
import string
import time
from dataclasses import dataclass, field, fields, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class TaskStatus(StrEnum):
    """Status lane a task lives in."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"

    @classmethod
    def parse(cls, raw: Any) -> TaskStatus:
        if isinstance(raw, cls):
            return raw
        if not raw:
            return cls.TODO
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.TODO


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, raw: Any) -> TaskPriority:
        if isinstance(raw, cls):
            return raw
        if not raw:
            return cls.MEDIUM
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.MEDIUM


def utc_now() -> datetime:
    return datetime.now(UTC)


def parse_timestamp(value: Any) -> datetime | None:
    """
    Normalize a timestamp to an aware UTC datetime.

    Accepts datetime objects, ISO-8601 strings (including a trailing "Z", as
    produced by JSON round-trips) and epoch seconds. Naive values are taken
    as UTC. Returns None for empty or unparseable input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        dt = datetime.fromtimestamp(float(value), UTC)
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_task_id(rng: random.Random | None = None) -> str:
    """Opaque id: epoch milliseconds plus a short random suffix."""
    r = rng or random
    suffix = "".join(r.choice(_ID_ALPHABET) for _ in range(9))
    return f"{int(time.time() * 1000)}-{suffix}"


@dataclass(slots=True)
class Task:
    """
    A single task record.

    Tasks are handled as values: components never mutate a Task in place,
    they build a modified copy with with_changes() and hand it to the store.
    """

    id: str
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    due_date: datetime | None = None
    tags: frozenset[str] = frozenset()
    order: float = 0.0

    def with_changes(self, **changes: Any) -> Task:
        return replace(self, **coerce_changes(changes))

    def pick(self, names: Any) -> dict[str, Any]:
        """Current values of the given fields (unknown names are ignored)."""
        return {name: getattr(self, name) for name in names if name in TASK_FIELDS}

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "assignee": self.assignee,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
            "dueDate": format_timestamp(self.due_date),
            "tags": sorted(self.tags),
            "order": self.order,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any], *, default_order: float = 0.0) -> Task:
        """
        Build a Task from a JSON-shaped dict.

        Both camelCase (persisted) and snake_case keys are accepted.
        """

        def pick(*keys: str) -> Any:
            for k in keys:
                if k in raw:
                    return raw[k]
            return None

        created = parse_timestamp(pick("createdAt", "created_at")) or utc_now()
        updated = parse_timestamp(pick("updatedAt", "updated_at")) or created
        order_raw = pick("order")
        return cls(
            id=str(raw["id"]),
            title=str(raw.get("title") or ""),
            description=str(raw.get("description") or ""),
            status=TaskStatus.parse(raw.get("status")),
            priority=TaskPriority.parse(raw.get("priority")),
            assignee=raw.get("assignee") or None,
            created_at=created,
            updated_at=updated,
            due_date=parse_timestamp(pick("dueDate", "due_date")),
            tags=frozenset(str(t) for t in (raw.get("tags") or [])),
            order=float(order_raw) if order_raw is not None else float(default_order),
        )


TASK_FIELDS: frozenset[str] = frozenset(f.name for f in fields(Task))

# Fields an update, undo/redo step or merge is allowed to touch.
UPDATABLE_FIELDS: frozenset[str] = TASK_FIELDS - {"id", "created_at"}


def coerce_changes(changes: dict[str, Any]) -> dict[str, Any]:
    """
    Normalize the values of a partial update.

    Unknown or immutable fields (id, created_at) are dropped.
    """
    out: dict[str, Any] = {}
    for name, value in changes.items():
        if name not in UPDATABLE_FIELDS:
            continue
        if name == "status":
            value = TaskStatus.parse(value)
        elif name == "priority":
            value = TaskPriority.parse(value)
        elif name in ("updated_at", "due_date"):
            value = parse_timestamp(value)
            if name == "updated_at" and value is None:
                value = utc_now()
        elif name == "tags":
            value = frozenset(value or ())
        elif name == "order":
            value = float(value)
        out[name] = value
    return out
