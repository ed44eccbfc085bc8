# src/taskboard/tasks/task_filters.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from .task_models import Task, TaskPriority, TaskStatus


@dataclass(slots=True, frozen=True)
class TaskFilter:
    """
    Read-only query over the task collection.

    Empty criteria match everything. Tags match when the task carries any of
    the requested tags; the search query is a case-insensitive substring of
    title or description.
    """

    statuses: frozenset[TaskStatus] = field(default_factory=frozenset)
    priorities: frozenset[TaskPriority] = field(default_factory=frozenset)
    assignees: frozenset[str] = field(default_factory=frozenset)
    tags: frozenset[str] = field(default_factory=frozenset)
    search: str = ""

    def matches(self, task: Task) -> bool:
        if self.statuses and task.status not in self.statuses:
            return False
        if self.priorities and task.priority not in self.priorities:
            return False
        if self.assignees and (task.assignee is None or task.assignee not in self.assignees):
            return False
        if self.tags and not (task.tags & self.tags):
            return False
        query = self.search.strip().lower()
        if query and query not in task.title.lower() and query not in task.description.lower():
            return False
        return True


def filter_tasks(tasks: Iterable[Task], criteria: TaskFilter) -> list[Task]:
    return [t for t in tasks if criteria.matches(t)]
