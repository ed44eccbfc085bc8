# tests/test_history.py

from __future__ import annotations

import pytest

from taskboard.history.history_manager import HistoryManager
from taskboard.history.history_models import CreateTask, DeleteTask, ReorderTask, UpdateTask
from taskboard.history.replay import apply_redo, apply_undo
from taskboard.tasks.ordering import DropPosition
from taskboard.tasks.task_models import TaskPriority, TaskStatus
from taskboard.tasks.task_store import TaskStore


def _observable(board):
    """Board state minus bookkeeping timestamps, keyed by id."""
    out = {}
    for t in board.tasks:
        d = t.to_dict()
        d.pop("updatedAt")
        out[t.id] = d
    return out


# ---- manager state machine ----


def test_record_evicts_oldest_beyond_max(make_task) -> None:
    history = HistoryManager(max_size=50)
    actions = [CreateTask(task=make_task(f"t{i}"), description=f"#{i}") for i in range(51)]
    for a in actions:
        history.record(a)

    assert history.size == 50
    assert history.past[0] is actions[1]
    assert history.past[-1] is actions[-1]


def test_new_action_after_undo_clears_future(make_task) -> None:
    history = HistoryManager()
    history.record(CreateTask(task=make_task("a")))
    history.record(CreateTask(task=make_task("b")))
    history.undo()
    assert history.can_redo

    history.record(CreateTask(task=make_task("c")))
    assert not history.can_redo
    assert history.future == ()


def test_undo_redo_move_actions_between_stacks(make_task) -> None:
    history = HistoryManager()
    first, second = CreateTask(task=make_task("a")), CreateTask(task=make_task("b"))
    history.record(first)
    history.record(second)

    assert history.undo() is second
    assert history.undo() is first
    assert history.undo() is None
    assert history.future == (first, second)

    assert history.redo() is first
    assert history.past == (first,)
    assert history.future == (second,)


def test_empty_stacks_are_silent_noops() -> None:
    history = HistoryManager()
    assert history.undo() is None
    assert history.redo() is None
    assert history.undo_description() is None
    assert history.redo_description() is None


def test_record_is_suppressed_while_replaying(make_task) -> None:
    history = HistoryManager()
    with history.replaying():
        assert history.is_replaying
        assert history.record(CreateTask(task=make_task("a"))) is False
    assert not history.is_replaying
    assert history.size == 0


def test_replay_flag_is_cleared_after_errors() -> None:
    history = HistoryManager()
    with pytest.raises(RuntimeError), history.replaying():
        raise RuntimeError("boom")
    assert not history.is_replaying


def test_descriptions_follow_stacks(make_task) -> None:
    history = HistoryManager()
    history.record_create(make_task("a", title="Write docs"))
    history.record_reorder("a", TaskStatus.TODO, 0, TaskStatus.DONE, 3, "Write docs")

    assert history.undo_description() == "Moved Write docs from todo to done"
    history.undo()
    assert history.undo_description() == "Created task: Write docs"
    assert history.redo_description() == "Moved Write docs from todo to done"


def test_invalid_max_size_rejected() -> None:
    with pytest.raises(ValueError):
        HistoryManager(max_size=0)


# ---- replay against a store ----


def test_replay_of_update_touches_only_recorded_fields(make_task) -> None:
    store = TaskStore(tasks=[make_task("A", title="old", assignee="Bob Johnson")])
    action = UpdateTask(task_id="A", previous_state={"title": "old"}, new_state={"title": "new"})

    store.patch_task("A", {"assignee": "David Brown"})
    apply_redo(store, action)
    assert store.get_task("A").title == "new"
    assert store.get_task("A").assignee == "David Brown"

    apply_undo(store, action)
    assert store.get_task("A").title == "old"
    assert store.get_task("A").assignee == "David Brown"


def test_replay_of_missing_task_is_noop(make_task) -> None:
    store = TaskStore(tasks=[make_task("A")])
    apply_undo(store, ReorderTask("gone", TaskStatus.TODO, 0, TaskStatus.DONE, 1))
    apply_redo(store, UpdateTask("gone", {"title": "x"}, {"title": "y"}))
    assert [t.id for t in store.tasks] == ["A"]


def test_delete_undo_reinserts_exact_entity(make_task) -> None:
    task = make_task("A", 7.25, TaskStatus.DONE, tags=frozenset({"x"}))
    store = TaskStore(tasks=[])
    apply_undo(store, DeleteTask(task=task))
    assert store.get_task("A") == task


# ---- round trips through the board ----


def test_create_round_trip(board) -> None:
    before = _observable(board)
    task = board.add_task("New one", status=TaskStatus.IN_PROGRESS)
    after = _observable(board)

    board.undo()
    assert _observable(board) == before
    board.redo()
    assert _observable(board) == after
    assert board.get_task(task.id) == task


def test_update_round_trip(board) -> None:
    before = _observable(board)
    board.update_task("B", title="Renamed", priority=TaskPriority.HIGH)
    after = _observable(board)

    board.undo()
    assert _observable(board) == before
    board.redo()
    assert _observable(board) == after


def test_delete_round_trip(board) -> None:
    before = _observable(board)
    board.delete_task("C")
    after = _observable(board)

    board.undo()
    assert _observable(board) == before
    board.redo()
    assert _observable(board) == after


@pytest.mark.asyncio
async def test_reorder_round_trip(board) -> None:
    before = _observable(board)
    assert await board.drop_task("A", TaskStatus.DONE)
    after = _observable(board)

    board.undo()
    assert _observable(board) == before
    board.redo()
    assert _observable(board) == after


def test_undo_redo_do_not_record_new_actions(board) -> None:
    board.add_task("x")
    board.update_task("A", title="y")
    assert board.history.size == 2

    board.undo()
    board.undo()
    assert board.history.size == 0
    assert len(board.history.future) == 2

    board.redo()
    assert board.history.size == 1
    assert len(board.history.future) == 1


def test_update_without_effective_changes_records_nothing(board) -> None:
    board.update_task("A", bogus=1)
    board.update_task("missing", title="x")
    assert board.history.size == 0


@pytest.mark.asyncio
async def test_reorder_that_normalizes_round_trips_between_same_neighbours(board) -> None:
    d = board.add_task("D")
    assert await board.drop_task(d.id, TaskStatus.TODO, "B", DropPosition.BEFORE)
    lane_before = [t.id for t in board.store.tasks_in_status(TaskStatus.TODO)]
    assert lane_before == ["A", d.id, "B", "C"]

    # C before A lands at -1 and renumbers the lane
    assert await board.drop_task("C", TaskStatus.TODO, "A", DropPosition.BEFORE)
    lane_after = [t.id for t in board.store.tasks_in_status(TaskStatus.TODO)]
    assert lane_after == ["C", "A", d.id, "B"]

    board.undo()
    assert [t.id for t in board.store.tasks_in_status(TaskStatus.TODO)] == lane_before
    assert len({t.order for t in board.tasks}) == len(board.tasks)

    board.redo()
    assert [t.id for t in board.store.tasks_in_status(TaskStatus.TODO)] == lane_after


@pytest.mark.asyncio
async def test_cross_lane_reorder_that_normalizes_restores_source_lane(board, make_task) -> None:
    board.store.insert_task(make_task("X", 0, TaskStatus.DONE))
    # B leaves TODO for the top of DONE: -1, normalization renumbers TODO to A0, C1
    assert await board.drop_task("B", TaskStatus.DONE, "X", DropPosition.BEFORE)
    assert {t.id: t.order for t in board.tasks} == {"A": 0, "C": 1, "B": 0, "X": 1}

    board.undo()
    assert [t.id for t in board.store.tasks_in_status(TaskStatus.TODO)] == ["A", "B", "C"]
    assert [t.id for t in board.store.tasks_in_status(TaskStatus.DONE)] == ["X"]
