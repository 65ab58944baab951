from __future__ import annotations

from schedsync.domain.reconciliation import detect_changes
from tests.helpers.sessions import make_existing, make_record


def test_identical_sessions_have_no_changes() -> None:
    existing = make_existing(teachers=["Maria", "Anna"], styles=["Salsa"], capacity=20)
    record = make_record(teachers=("Anna", "Maria"), styles=("Salsa",), capacity=20)

    change_set = detect_changes(existing, record)

    assert change_set.changes == ()
    assert not change_set.has_changes


def test_changes_are_listed_in_fixed_order() -> None:
    existing = make_existing(
        end="11:00",
        level="Beginner",
        teachers=["Anna"],
        styles=["Salsa"],
        location="Hall A",
        capacity=None,
        description="Old",
        prerequisites=None,
    )
    record = make_record(
        end="11:30",
        level=None,
        teachers=("Anna", "Tom"),
        styles=("Salsa", "Son"),
        location="Hall B",
        capacity=24,
        description="New",
        prerequisites="Basic steps",
    )

    change_set = detect_changes(existing, record)

    assert change_set.changes == (
        "End time: 11:00 → 11:30",
        'Level: "Beginner" → "none"',
        "Teachers: [Anna] → [Anna, Tom]",
        "Styles: [Salsa] → [Salsa, Son]",
        'Location: "Hall A" → "Hall B"',
        "Capacity: 0 → 24",
        "Description changed",
        "Prerequisites added",
    )
    assert change_set.has_changes


def test_removed_description_is_reported() -> None:
    existing = make_existing(description="Bring water")
    record = make_record(description=None)

    assert detect_changes(existing, record).changes == ("Description removed",)


def test_blank_and_absent_values_compare_equal() -> None:
    existing = make_existing(level="", location=None, capacity=0)
    record = make_record(level=None, location="", capacity=None)

    assert detect_changes(existing, record).changes == ()
