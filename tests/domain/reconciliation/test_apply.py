from __future__ import annotations

from uuid import uuid4

import pytest

from schedsync.domain.reconciliation import (
    Decision,
    ImportMode,
    NormalizationResult,
    Plan,
    PlanAction,
    PlanStep,
    ReconciliationEngine,
    StalePlanError,
    apply_plan,
)
from tests.helpers.sessions import (
    FESTIVAL_ID,
    FakeSessionRepository,
    fake_unit_of_work,
    make_existing,
    make_record,
    normalized,
)


def test_apply_merge_plan_updates_creates_and_keeps() -> None:
    matched = make_existing("Salsa Basics", order=0, bookings=2)
    kept = make_existing("Kizomba Flow", order=1, start="18:00")
    uow = fake_unit_of_work([matched, kept])
    plan = ReconciliationEngine().plan(
        FESTIVAL_ID,
        normalized(make_record("Salsa Basics", level="Improver"), make_record("Lindy Hop")),
        [matched, kept],
    )

    result = apply_plan(plan, unit_of_work_factory=lambda: uow)

    assert (result.created, result.updated, result.kept, result.deleted) == (1, 1, 1, 0)
    assert uow.committed == 1
    assert matched.level == "Improver"
    assert matched.booking_count == 2
    sessions = uow.repositories.sessions
    assert isinstance(sessions, FakeSessionRepository)
    assert len(sessions.sessions) == 3


def test_apply_suggested_update_keeps_id_and_bookings() -> None:
    existing = make_existing("Acro Fundamentals", bookings=1)
    uow = fake_unit_of_work([existing])
    plan = ReconciliationEngine().plan(
        FESTIVAL_ID,
        normalized(make_record("Acro Fundementals", start="12:00")),
        [existing],
        decisions={existing.id: Decision.UPDATE},
    )

    apply_plan(plan, unit_of_work_factory=lambda: uow)

    assert existing.title == "Acro Fundementals"
    assert existing.start == "12:00"
    assert existing.booking_count == 1


def test_reapplying_merge_plan_does_not_duplicate_sessions() -> None:
    existing = make_existing("Salsa Basics")
    uow = fake_unit_of_work([existing])
    plan = ReconciliationEngine().plan(
        FESTIVAL_ID,
        normalized(make_record("Salsa Basics"), make_record("Lindy Hop"), make_record("Zouk")),
        [existing],
    )

    first = apply_plan(plan, unit_of_work_factory=lambda: uow)
    second = apply_plan(plan, unit_of_work_factory=lambda: uow)

    sessions = uow.repositories.sessions
    assert isinstance(sessions, FakeSessionRepository)
    assert len(sessions.sessions) == 3
    assert first.created == 2
    assert second.created == 0
    assert second.reused == 2


def test_apply_replace_plan_deletes_before_creating() -> None:
    existing = [make_existing(f"Old {n}", order=n, bookings=1) for n in range(3)]
    uow = fake_unit_of_work(existing)
    plan = ReconciliationEngine().plan(
        FESTIVAL_ID,
        normalized(make_record("New A"), make_record("New B")),
        existing,
        mode=ImportMode.REPLACE,
    )

    result = apply_plan(plan, unit_of_work_factory=lambda: uow)
    again = apply_plan(plan, unit_of_work_factory=lambda: uow)

    sessions = uow.repositories.sessions
    assert isinstance(sessions, FakeSessionRepository)
    assert sessions.calls[:2] == ["delete_all", "find_existing"]
    assert (result.deleted, result.created) == (3, 2)
    assert (again.deleted, again.created) == (2, 2)
    assert sorted(session.title for session in sessions.sessions.values()) == ["New A", "New B"]


def test_stale_update_rolls_back() -> None:
    uow = fake_unit_of_work([])
    plan = Plan(
        festival_id=FESTIVAL_ID,
        mode=ImportMode.MERGE,
        steps=(
            PlanStep(action=PlanAction.CREATE, record=make_record("Lindy Hop")),
            PlanStep(action=PlanAction.UPDATE, target_id=uuid4(), fields={"level": "Open"}),
        ),
    )

    with pytest.raises(StalePlanError):
        apply_plan(plan, unit_of_work_factory=lambda: uow)

    assert uow.rolled_back == 1
    assert uow.committed == 0


def _shared_key_rows() -> NormalizationResult:
    return normalized(
        make_record("Salsa", location="Room A"),
        make_record("Salsa", location="Room B"),
    )


@pytest.mark.parametrize("mode", [ImportMode.REPLACE, ImportMode.MERGE])
def test_rows_sharing_a_key_each_create_a_session(mode: ImportMode) -> None:
    existing = [make_existing("Old", bookings=1)] if mode is ImportMode.REPLACE else []
    uow = fake_unit_of_work(existing)
    plan = ReconciliationEngine().plan(
        FESTIVAL_ID,
        _shared_key_rows(),
        existing,
        mode=mode,
    )

    result = apply_plan(plan, unit_of_work_factory=lambda: uow)

    sessions = uow.repositories.sessions
    assert isinstance(sessions, FakeSessionRepository)
    assert result.created == plan.counts.created == 2
    assert result.reused == 0
    assert sorted(session.location or "" for session in sessions.sessions.values()) == [
        "Room A",
        "Room B",
    ]


def test_reapplying_plan_with_shared_keys_reuses_each_session_once() -> None:
    uow = fake_unit_of_work([])
    plan = ReconciliationEngine().plan(
        FESTIVAL_ID,
        _shared_key_rows(),
        [],
    )

    apply_plan(plan, unit_of_work_factory=lambda: uow)
    again = apply_plan(plan, unit_of_work_factory=lambda: uow)

    sessions = uow.repositories.sessions
    assert isinstance(sessions, FakeSessionRepository)
    assert (again.created, again.reused) == (0, 2)
    assert len(sessions.sessions) == 2
