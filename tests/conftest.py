# tests/conftest.py

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from taskboard.core.board import TaskBoard
from taskboard.history.history_manager import HistoryManager
from taskboard.services.notifications import NotificationCenter
from taskboard.tasks.task_models import Task, TaskPriority, TaskStatus
from taskboard.tasks.task_store import TaskStore

from .fakes import GatedConfirmationApi, InstantConfirmationApi

FIXED_TS = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap helpers.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskboard-test",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        db_path=tmp_path / "data" / "taskboard.sqlite3",
        history_max_size=50,
        confirm_latency_seconds=0.0,
        confirm_failure_rate=0.0,
        rollback_strategy="scoped",
        sync_enabled=False,
        sync_min_interval_seconds=0.01,
        sync_max_interval_seconds=0.02,
        notification_limit=20,
    )


@pytest.fixture()
def make_task() -> Callable[..., Task]:
    def _make(task_id: str, order: float = 0.0, status: TaskStatus = TaskStatus.TODO, **kw: Any) -> Task:
        return Task(
            id=task_id,
            title=kw.pop("title", f"Task {task_id}"),
            status=status,
            priority=kw.pop("priority", TaskPriority.MEDIUM),
            created_at=kw.pop("created_at", FIXED_TS),
            updated_at=kw.pop("updated_at", FIXED_TS),
            order=order,
            **kw,
        )

    return _make


@pytest.fixture()
def notifier() -> NotificationCenter:
    return NotificationCenter(limit=50)


@pytest.fixture()
def gated_api() -> GatedConfirmationApi:
    return GatedConfirmationApi()


@pytest.fixture()
def instant_api() -> InstantConfirmationApi:
    return InstantConfirmationApi()


@pytest.fixture()
def abc_tasks(make_task) -> list[Task]:
    """Lane TODO: A(0), B(1), C(2)."""
    return [make_task("A", 0), make_task("B", 1), make_task("C", 2)]


@pytest.fixture()
def board(abc_tasks, instant_api, notifier) -> TaskBoard:
    return TaskBoard(TaskStore(tasks=abc_tasks), instant_api, notifier, history=HistoryManager())


@pytest.fixture()
def gated_board(abc_tasks, gated_api, notifier) -> TaskBoard:
    return TaskBoard(TaskStore(tasks=abc_tasks), gated_api, notifier, history=HistoryManager())
