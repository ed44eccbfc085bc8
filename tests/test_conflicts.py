# tests/test_conflicts.py

from __future__ import annotations

import random
from datetime import UTC, datetime

import pytest

from taskboard.history.history_models import UpdateTask
from taskboard.services.notifications import Severity
from taskboard.sync.conflicts import (
    EXTERNAL_USERS,
    ConflictResolver,
    ExternalUpdate,
    ResolutionOutcome,
    UpdateType,
    describe_update,
    detect_conflict,
    generate_random_update,
    merge_changes,
)
from taskboard.tasks.task_models import TaskPriority, TaskStatus
from taskboard.tasks.task_store import TaskStore

RESOLVED_AT = datetime(2024, 6, 1, 9, 30, tzinfo=UTC)


@pytest.fixture()
def store(make_task) -> TaskStore:
    return TaskStore(
        tasks=[
            make_task("A", 0, title="Write docs", priority=TaskPriority.LOW, assignee="Bob Johnson"),
            make_task("B", 1),
        ]
    )


@pytest.fixture()
def resolver(store, notifier) -> ConflictResolver:
    return ConflictResolver(store, notifier, clock=lambda: RESOLVED_AT)


def _update(task_id: str, changes: dict, update_type: UpdateType, user: str = "David Brown") -> ExternalUpdate:
    return ExternalUpdate(task_id=task_id, changes=changes, update_type=update_type, external_user=user)


# ---- detection ----


def test_conflict_needs_same_task_and_overlapping_fields() -> None:
    local = {"title": "x", "priority": "high"}
    assert detect_conflict("A", {"priority": "low"}, "A", local)
    assert not detect_conflict("A", {"assignee": "Bob"}, "A", local)
    assert not detect_conflict("B", {"priority": "low"}, "A", local)
    assert not detect_conflict("A", {"priority": "low"}, None, None)
    assert not detect_conflict("A", {"priority": "low"}, "A", {})


def test_bookkeeping_fields_never_conflict() -> None:
    assert not detect_conflict("A", {"updated_at": RESOLVED_AT}, "A", {"updated_at": RESOLVED_AT, "title": "t"})


# ---- merge ----


def test_merge_prefers_external_on_overlap_and_keeps_local_elsewhere(store) -> None:
    original = store.get_task("A")
    local = {"title": "Local title", "priority": TaskPriority.HIGH}
    external = {"priority": TaskPriority.MEDIUM, "assignee": "David Brown"}

    merged = merge_changes(original, local, external, RESOLVED_AT)

    assert merged.priority is TaskPriority.MEDIUM
    assert merged.assignee == "David Brown"
    assert merged.title == "Local title"
    assert merged.updated_at == RESOLVED_AT

    untouched = ("id", "description", "status", "created_at", "due_date", "tags", "order")
    assert merged.pick(untouched) == original.pick(untouched)


# ---- resolver ----


def test_non_conflicting_update_is_applied_with_info(resolver, store, notifier) -> None:
    outcome = resolver.handle_external_update(_update("B", {"status": "done"}, UpdateType.STATUS_CHANGE))

    assert outcome is ResolutionOutcome.APPLIED
    task = store.get_task("B")
    assert task.status is TaskStatus.DONE
    assert task.updated_at == RESOLVED_AT
    assert [(n.severity, n.message) for n in notifier.notifications] == [
        (Severity.INFO, "David Brown moved a task to done")
    ]


def test_update_on_other_task_while_editing_is_not_a_conflict(resolver, store) -> None:
    resolver.start_editing("A", {"priority": "high"})
    outcome = resolver.handle_external_update(_update("B", {"priority": "high"}, UpdateType.PRIORITY_CHANGE))

    assert outcome is ResolutionOutcome.APPLIED
    assert resolver.editing_task_id == "A"


def test_conflicting_update_is_merged_with_warning(store, notifier) -> None:
    seen: list[tuple] = []
    resolver = ConflictResolver(
        store,
        notifier,
        clock=lambda: RESOLVED_AT,
        on_conflict=lambda task_id, external, local: seen.append((task_id, external, local)),
    )
    resolver.start_editing("A", {"title": "Local title", "priority": "high"})

    outcome = resolver.handle_external_update(
        _update("A", {"priority": "medium", "assignee": "David Brown"}, UpdateType.PRIORITY_CHANGE)
    )

    assert outcome is ResolutionOutcome.MERGED
    task = store.get_task("A")
    assert (task.title, task.priority, task.assignee) == ("Local title", TaskPriority.MEDIUM, "David Brown")
    assert task.updated_at == RESOLVED_AT

    assert [(n.severity, n.message) for n in notifier.notifications] == [
        (Severity.WARNING, "Conflict: David Brown also edited this task. External changes applied.")
    ]
    assert [s[0] for s in seen] == ["A"]
    assert set(seen[0][1]) == {"priority", "assignee"}
    assert resolver.editing_task_id is None
    assert resolver.local_changes is None


def test_update_for_missing_task_is_skipped_silently(resolver, store, notifier) -> None:
    before = store.snapshot()
    outcome = resolver.handle_external_update(_update("gone", {"status": "done"}, UpdateType.STATUS_CHANGE))

    assert outcome is ResolutionOutcome.SKIPPED
    assert store.snapshot() == before
    assert notifier.notifications == []


def test_applied_external_update_is_recorded_and_undoable(board) -> None:
    outcome = board.handle_external_update(_update("A", {"priority": "high"}, UpdateType.PRIORITY_CHANGE))

    assert outcome is ResolutionOutcome.APPLIED
    assert board.history.size == 1
    action = board.history.past[-1]
    assert isinstance(action, UpdateTask)
    assert dict(action.previous_state) == {"priority": TaskPriority.MEDIUM}
    assert dict(action.new_state) == {"priority": TaskPriority.HIGH}

    board.undo()
    assert board.get_task("A").priority is TaskPriority.MEDIUM
    board.redo()
    assert board.get_task("A").priority is TaskPriority.HIGH


def test_external_status_change_keeps_order(board) -> None:
    board.handle_external_update(_update("A", {"status": "done"}, UpdateType.STATUS_CHANGE))
    assert board.get_task("A").status is TaskStatus.DONE
    assert board.get_task("A").order == 0
    assert board.undo_description() == "Updated Task A: status"


def test_merged_external_update_is_recorded_with_every_changed_field(board) -> None:
    board.start_editing("A", {"title": "Local title", "priority": "high"})
    outcome = board.handle_external_update(
        _update("A", {"priority": "low", "assignee": "David Brown"}, UpdateType.PRIORITY_CHANGE)
    )

    assert outcome is ResolutionOutcome.MERGED
    action = board.history.past[-1]
    assert dict(action.previous_state) == {"assignee": None, "priority": TaskPriority.MEDIUM, "title": "Task A"}
    assert dict(action.new_state) == {"assignee": "David Brown", "priority": TaskPriority.LOW, "title": "Local title"}

    board.undo()
    task = board.get_task("A")
    assert (task.title, task.priority, task.assignee) == ("Task A", TaskPriority.MEDIUM, None)


def test_skipped_external_update_records_nothing(board) -> None:
    board.handle_external_update(_update("gone", {"status": "done"}, UpdateType.STATUS_CHANGE))
    assert board.history.size == 0


def test_external_update_changes_are_read_only() -> None:
    update = _update("A", {"status": "done", "bogus": 1}, UpdateType.STATUS_CHANGE)
    assert dict(update.changes) == {"status": TaskStatus.DONE}
    with pytest.raises(TypeError):
        update.changes["status"] = "todo"  # type: ignore[index]


# ---- generation ----


@pytest.mark.parametrize("seed", range(20))
def test_generated_update_always_changes_something(store, seed: int) -> None:
    rng = random.Random(seed)
    tasks = store.tasks
    update = generate_random_update(tasks, rng)
    assert update is not None
    assert update.external_user in EXTERNAL_USERS

    task = store.get_task(update.task_id)
    ((field_name, value),) = update.changes.items()
    assert getattr(task, field_name) != value
    if update.update_type is UpdateType.ASSIGNEE_CHANGE:
        assert value == update.external_user


def test_repeated_updates_do_not_grow_text(store) -> None:
    rng = random.Random(7)
    title, description = store.get_task("A").title, store.get_task("A").description
    for _ in range(200):
        update = generate_random_update(store.tasks, rng)
        store.patch_task(update.task_id, dict(update.changes))
    task = store.get_task("A")
    assert (task.title, task.description) == (title, description)


def test_generate_on_empty_board_returns_none() -> None:
    assert generate_random_update([], random.Random(0)) is None


def test_describe_update_messages() -> None:
    assert describe_update(_update("A", {"priority": "high"}, UpdateType.PRIORITY_CHANGE, "Bob Johnson")) == (
        "Bob Johnson changed task priority to high"
    )
    assert describe_update(_update("A", {"assignee": "Bob Johnson"}, UpdateType.ASSIGNEE_CHANGE, "Bob Johnson")) == (
        "Bob Johnson reassigned a task to Bob Johnson"
    )
