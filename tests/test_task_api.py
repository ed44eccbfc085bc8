# tests/test_task_api.py

from __future__ import annotations

import random

import pytest

from taskboard.errors import ApiError
from taskboard.services.task_api import MockTaskApi
from taskboard.tasks.task_models import TaskStatus


@pytest.mark.asyncio
async def test_reorder_success_echoes_new_position() -> None:
    api = MockTaskApi(latency_seconds=0, failure_rate=0)
    result = await api.reorder("A", "in_progress", 1.5)
    assert result["id"] == "A"
    assert result["status"] == TaskStatus.IN_PROGRESS
    assert result["order"] == 1.5
    assert "updatedAt" in result


@pytest.mark.asyncio
async def test_reorder_failure_raises_api_error() -> None:
    api = MockTaskApi(latency_seconds=0, failure_rate=1)
    with pytest.raises(ApiError) as excinfo:
        await api.reorder("A", "done", 0)
    err = excinfo.value
    assert (err.status_code, err.code) == (500, "REORDER_FAILED")
    assert str(err) == "Failed to reorder task. Changes have been reverted."


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("call", "code"),
    [
        (lambda api: api.update_task("A", {"title": "x"}), "UPDATE_FAILED"),
        (lambda api: api.move_task("A", "done"), "MOVE_FAILED"),
        (lambda api: api.delete_task("A"), "DELETE_FAILED"),
        (lambda api: api.batch_update_tasks([{"id": "A"}]), "BATCH_UPDATE_FAILED"),
    ],
)
async def test_other_calls_fail_with_their_own_codes(call, code: str) -> None:
    api = MockTaskApi(latency_seconds=0, failure_rate=1)
    with pytest.raises(ApiError) as excinfo:
        await call(api)
    assert excinfo.value.code == code


@pytest.mark.asyncio
async def test_create_task_stamps_timestamps(make_task) -> None:
    api = MockTaskApi(latency_seconds=0, failure_rate=0, rng=random.Random(0))
    draft = make_task("", title="Draft")
    created = await api.create_task(draft)
    assert created.id
    assert created.title == "Draft"
    assert created.created_at == created.updated_at
    assert created.created_at > draft.created_at


@pytest.mark.asyncio
async def test_batch_update_stamps_every_item() -> None:
    api = MockTaskApi(latency_seconds=0, failure_rate=0)
    out = await api.batch_update_tasks([{"id": "A"}, {"id": "B", "title": "t"}])
    assert [u["id"] for u in out] == ["A", "B"]
    assert len({u["updatedAt"] for u in out}) == 1


@pytest.mark.parametrize("rate", [-0.1, 1.5])
def test_failure_rate_out_of_range_is_rejected(rate: float) -> None:
    with pytest.raises(ValueError):
        MockTaskApi(failure_rate=rate)
