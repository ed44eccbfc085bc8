# src/taskboard/services/task_api.py

from __future__ import annotations

"""
Mock backend API.

Every call sleeps for `latency_seconds` and then fails with probability
`failure_rate` by raising ApiError. Calls are single-shot: no retries.
"""

import asyncio
import logging
import random
from dataclasses import replace
from typing import Any

from ..errors import ApiError
from ..tasks.task_models import Task, TaskStatus, generate_task_id, utc_now

logger = logging.getLogger(__name__)


class MockTaskApi:
    """Implements the ConfirmationApi port (and the rest of the mock API)."""

    def __init__(
        self,
        *,
        latency_seconds: float = 2.0,
        failure_rate: float = 0.1,
        rng: random.Random | None = None,
    ) -> None:
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError("failure_rate must be within [0, 1]")
        self.latency_seconds = max(0.0, float(latency_seconds))
        self.failure_rate = float(failure_rate)
        self._rng = rng or random.Random()

    async def _roundtrip(self, what: str, message: str, code: str) -> None:
        await asyncio.sleep(self.latency_seconds)
        if self._rng.random() < self.failure_rate:
            logger.error("[API] %s failed (%s)", what, code)
            raise ApiError(message, 500, code)
        logger.info("[API] %s succeeded", what)

    async def reorder(self, task_id: str, new_status: str, new_order: float) -> dict[str, Any]:
        logger.info("[API] Reordering task %s to %s at position %s...", task_id, new_status, new_order)
        await self._roundtrip(
            f"reorder {task_id}",
            "Failed to reorder task. Changes have been reverted.",
            "REORDER_FAILED",
        )
        return {
            "id": task_id,
            "status": str(TaskStatus.parse(new_status)),
            "order": new_order,
            "updatedAt": utc_now().isoformat(),
        }

    async def update_task(self, task_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        logger.info("[API] Updating task %s fields=%s...", task_id, sorted(updates))
        await self._roundtrip(f"update {task_id}", "Failed to update task. Please try again.", "UPDATE_FAILED")
        return {**updates, "id": task_id, "updatedAt": utc_now().isoformat()}

    async def move_task(self, task_id: str, new_status: str) -> dict[str, Any]:
        logger.info("[API] Moving task %s to %s...", task_id, new_status)
        await self._roundtrip(
            f"move {task_id}",
            "Failed to move task. The task has been restored.",
            "MOVE_FAILED",
        )
        return {"id": task_id, "status": str(TaskStatus.parse(new_status)), "updatedAt": utc_now().isoformat()}

    async def create_task(self, task: Task) -> Task:
        logger.info("[API] Creating new task title=%r...", task.title)
        await self._roundtrip("create", "Failed to create task. Please try again.", "CREATE_FAILED")
        now = utc_now()
        return replace(task, id=task.id or generate_task_id(self._rng), created_at=now, updated_at=now)

    async def delete_task(self, task_id: str) -> None:
        logger.info("[API] Deleting task %s...", task_id)
        await self._roundtrip(f"delete {task_id}", "Failed to delete task. Please try again.", "DELETE_FAILED")

    async def batch_update_tasks(self, updates: list[dict[str, Any]]) -> list[dict[str, Any]]:
        logger.info("[API] Batch updating %d tasks...", len(updates))
        await self._roundtrip(
            "batch update",
            "Failed to sync tasks. Some changes may not have been saved.",
            "BATCH_UPDATE_FAILED",
        )
        stamp = utc_now().isoformat()
        return [{**u, "updatedAt": stamp} for u in updates]
