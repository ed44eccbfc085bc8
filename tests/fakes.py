# tests/fakes.py

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from taskboard.errors import ApiError


@dataclass(slots=True)
class ConfirmationCall:
    task_id: str
    new_status: str
    new_order: float
    future: asyncio.Future[Any]


class GatedConfirmationApi:
    """
    ConfirmationApi whose calls stay in flight until the test resolves them.

    Lets tests interleave confirmations with new mutations in any order.
    """

    def __init__(self) -> None:
        self.calls: list[ConfirmationCall] = []

    async def reorder(self, task_id: str, new_status: str, new_order: float) -> dict[str, Any]:
        fut: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self.calls.append(ConfirmationCall(task_id, new_status, new_order, fut))
        return await fut

    async def wait_for_calls(self, n: int) -> None:
        for _ in range(1000):
            if len(self.calls) >= n:
                return
            await asyncio.sleep(0)
        raise AssertionError(f"expected {n} confirmation calls, got {len(self.calls)}")

    def succeed(self, index: int) -> None:
        call = self.calls[index]
        call.future.set_result({"id": call.task_id})

    def fail(self, index: int, message: str = "Failed to reorder task. Changes have been reverted.") -> None:
        self.calls[index].future.set_exception(ApiError(message, 500, "REORDER_FAILED"))


@dataclass(slots=True)
class InstantConfirmationApi:
    """Resolves every confirmation immediately; fails when `fail` is set."""

    fail: bool = False
    calls: list[tuple[str, str, float]] = field(default_factory=list)

    async def reorder(self, task_id: str, new_status: str, new_order: float) -> dict[str, Any]:
        self.calls.append((task_id, new_status, new_order))
        if self.fail:
            raise ApiError("Failed to reorder task. Changes have been reverted.", 500, "REORDER_FAILED")
        return {"id": task_id}
