# src/taskboard/tasks/ordering.py

from __future__ import annotations

"""
Ordering engine.

Tasks inside a status lane are sequenced by a real-valued `order`. Inserting
between two neighbours takes the midpoint of their orders, so a drop never has
to renumber siblings. Repeated midpoints lose precision, and dropping above the
first task goes negative; normalize_orders() reassigns dense integer ranks when
should_normalize() says so. The check only runs on the reorder path.
"""

from collections.abc import Iterable, Mapping, Sequence
from enum import StrEnum
from typing import Any

from .task_models import Task, TaskStatus

# Orders in (0, NORMALIZE_EPSILON) mean midpoints have been halved too often.
NORMALIZE_EPSILON = 1e-3


class DropPosition(StrEnum):
    BEFORE = "before"
    AFTER = "after"


def _sorted_by_order(tasks: Iterable[Task]) -> list[Task]:
    return sorted(tasks, key=lambda t: t.order)


def next_order(tasks: Iterable[Task], status: TaskStatus) -> float:
    """Rank for a task appended to the end of `status`: max + 1, or 0 for an empty lane."""
    orders = [t.order for t in tasks if t.status == status]
    return max(orders) + 1 if orders else 0.0


def compute_insertion_order(
    column_tasks: Sequence[Task],
    target_id: str | None,
    position: DropPosition = DropPosition.AFTER,
) -> float:
    """
    Rank for a task dropped next to `target_id`.

    `column_tasks` are the tasks of the destination lane WITHOUT the task
    being moved. Dropping a task onto itself has to be filtered out by the
    caller. An unknown target id appends to the lane.
    """
    if not column_tasks:
        return 0.0

    ordered = _sorted_by_order(column_tasks)
    orders = [t.order for t in ordered]

    index = next((i for i, t in enumerate(ordered) if t.id == target_id), None) if target_id else None
    if index is None:
        return max(orders) + 1

    target = ordered[index]
    if DropPosition(position) is DropPosition.BEFORE:
        if index > 0:
            return (ordered[index - 1].order + target.order) / 2
        return min(orders) - 1

    if index + 1 < len(ordered):
        return (target.order + ordered[index + 1].order) / 2
    return target.order + 1


def should_normalize(tasks: Iterable[Task]) -> bool:
    return any(t.order < 0 or 0 < t.order < NORMALIZE_EPSILON for t in tasks)


def normalize_orders(tasks: Sequence[Task]) -> list[Task]:
    """
    Reassign dense integer ranks 0..n-1 inside every status lane.

    The relative order inside a lane is preserved (ties keep their input
    position) and so is the order of the returned sequence. Tasks whose rank
    does not change are returned as the same objects, which makes the
    function idempotent.
    """
    ranks: dict[str, float] = {}
    for lane in group_by_status(tasks).values():
        for rank, task in enumerate(lane):
            ranks[task.id] = float(rank)

    out: list[Task] = []
    for task in tasks:
        rank = ranks[task.id]
        out.append(task if task.order == rank else task.with_changes(order=rank))
    return out


def lane_neighbours(lane: Sequence[Task], task_id: str) -> tuple[str | None, str | None]:
    """Ids of the tasks right before and right after `task_id` in its lane."""
    ordered = _sorted_by_order(lane)
    index = next((i for i, t in enumerate(ordered) if t.id == task_id), None)
    if index is None:
        return None, None
    before = ordered[index - 1].id if index > 0 else None
    after = ordered[index + 1].id if index + 1 < len(ordered) else None
    return before, after


def rank_between(lower: float | None, upper: float | None, default: float = 0.0) -> float:
    """A rank strictly between two neighbour ranks; either side may be missing."""
    if lower is not None and upper is not None:
        return (lower + upper) / 2
    if lower is not None:
        return lower + 1
    if upper is not None:
        return upper - 1
    return default


def group_by_status(tasks: Iterable[Task]) -> dict[TaskStatus, list[Task]]:
    """Every status mapped to its tasks, sorted by order (stable)."""
    grouped: dict[TaskStatus, list[Task]] = {status: [] for status in TaskStatus}
    for task in tasks:
        grouped[task.status].append(task)
    return {status: _sorted_by_order(lane) for status, lane in grouped.items()}


def ensure_orders(raw_tasks: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """
    Backfill a missing `order` with the task's index inside its status lane.

    Used when loading data persisted before tasks carried an order.
    """
    seen: dict[str, int] = {}
    out: list[dict[str, Any]] = []
    for raw in raw_tasks:
        item = dict(raw)
        status = str(TaskStatus.parse(item.get("status")))
        index = seen.get(status, 0)
        seen[status] = index + 1
        if item.get("order") is None:
            item["order"] = index
        out.append(item)
    return out
