# src/taskboard/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into a TaskBoard (SQLite persistence, mock
  confirmation API, notification center),
- seeds a small demo board on first run,
- builds the realtime simulator pointed at the board.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from ..config import get_settings
from ..core.board import TaskBoard
from ..history.history_manager import HistoryManager
from ..services.notifications import NotificationCenter
from ..services.task_api import MockTaskApi
from ..storage.kv_store import SqliteKeyValueStore
from ..sync.realtime import RealtimeSimulator
from ..tasks.ordering import next_order
from ..tasks.task_models import Task, TaskPriority, TaskStatus, generate_task_id, utc_now
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)

DEMO_TASKS: tuple[tuple[str, TaskStatus, TaskPriority, str | None, tuple[str, ...]], ...] = (
    ("Write release notes", TaskStatus.TODO, TaskPriority.MEDIUM, "Bob Johnson", ("docs",)),
    ("Triage incoming bugs", TaskStatus.TODO, TaskPriority.HIGH, None, ("bugs",)),
    ("Review drag-and-drop ordering", TaskStatus.TODO, TaskPriority.LOW, "David Brown", ("ux",)),
    ("Migrate storage schema", TaskStatus.IN_PROGRESS, TaskPriority.HIGH, "Nikhil Nagar", ("backend",)),
    ("Set up CI pipeline", TaskStatus.DONE, TaskPriority.MEDIUM, "Shirsha Chaudhuri", ("infra",)),
)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def seed_demo_tasks(store: TaskStore) -> int:
    """Populate an empty store (no history is recorded for seed data)."""
    now = utc_now()
    for i, (title, status, priority, assignee, tags) in enumerate(DEMO_TASKS):
        created = now - timedelta(days=len(DEMO_TASKS) - i)
        store.insert_task(
            Task(
                id=generate_task_id(),
                title=title,
                status=status,
                priority=priority,
                assignee=assignee,
                created_at=created,
                updated_at=created,
                tags=frozenset(tags),
                order=next_order(store.tasks, status),
            )
        )
    logger.info("Seeded %d demo tasks", len(DEMO_TASKS))
    return len(DEMO_TASKS)


def create_board(*, settings=None, seed_demo: bool = True) -> TaskBoard:
    """
    Create a TaskBoard from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = TaskStore(SqliteKeyValueStore(settings.db_path))
    if seed_demo and store.count_tasks() == 0:
        seed_demo_tasks(store)

    return TaskBoard(
        store,
        MockTaskApi(
            latency_seconds=settings.confirm_latency_seconds,
            failure_rate=settings.confirm_failure_rate,
        ),
        NotificationCenter(limit=settings.notification_limit),
        history=HistoryManager(settings.history_max_size),
        rollback=settings.rollback_strategy,
    )


def create_simulator(board: TaskBoard, *, settings=None) -> RealtimeSimulator:
    if settings is None:
        settings = get_settings()
    return RealtimeSimulator(
        lambda: board.tasks,
        board.handle_external_update,
        min_interval=settings.sync_min_interval_seconds,
        max_interval=settings.sync_max_interval_seconds,
    )
