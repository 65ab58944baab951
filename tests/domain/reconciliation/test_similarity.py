from __future__ import annotations

import pytest

from schedsync.domain.reconciliation import levenshtein, suggest_matches, title_similarity
from tests.helpers.sessions import make_existing, make_record


@pytest.mark.parametrize(
    ("a", "b", "expected"),
    [
        ("", "", 0),
        ("abc", "", 3),
        ("kitten", "sitting", 3),
        ("flaw", "lawn", 2),
        ("salsa", "salsa", 0),
    ],
)
def test_levenshtein(a: str, b: str, expected: int) -> None:
    assert levenshtein(a, b) == expected


@pytest.mark.parametrize("title", ["Salsa Basics", "", "Zouk  Flow"])
def test_similarity_is_reflexive(title: str) -> None:
    assert title_similarity(title, title) == 100


@pytest.mark.parametrize(
    ("a", "b"),
    [("Salsa Basics", "Salsa Basic"), ("Bachata Sensual", "Kizomba"), ("abc", "")],
)
def test_similarity_is_symmetric(a: str, b: str) -> None:
    assert title_similarity(a, b) == title_similarity(b, a)


def test_similarity_normalizes_case_and_whitespace() -> None:
    assert title_similarity("  SALSA basics", "salsa Basics ") == 100


def test_similarity_rounds_half_up() -> None:
    # distance 1 over 8 characters -> 87.5
    assert title_similarity("abcdefgh", "abcdefgx") == 88


def test_similarity_of_disjoint_titles_is_zero() -> None:
    assert title_similarity("abc", "xyz") == 0


def test_same_title_different_schedule_suggests_with_full_similarity() -> None:
    existing = make_existing("Salsa Basics", day="2025-06-13", start="10:00")
    record = make_record("Salsa Basics", day="2025-06-14", start="10:00")

    (suggestion,) = suggest_matches([(0, record)], [existing])

    assert suggestion.similarity == 100
    assert suggestion.reason == "Same title, different schedule"
    assert suggestion.changes == ("Day: 2025-06-13 → 2025-06-14",)


def test_fuzzy_suggestion_reports_percentage_and_title_change() -> None:
    existing = make_existing("Salsa Basics", start="10:00")
    record = make_record("Salsa Basic", start="11:00")

    (suggestion,) = suggest_matches([(0, record)], [existing])

    assert suggestion.similarity == 92
    assert suggestion.reason == "Similar title (92% match)"
    assert suggestion.changes == (
        'Title: "Salsa Basics" → "Salsa Basic"',
        "Time: 10:00 → 11:00",
    )


def test_titles_below_threshold_are_not_suggested() -> None:
    existing = make_existing("Kizomba Flow")
    record = make_record("Salsa Basics")

    assert suggest_matches([(0, record)], [existing]) == ()


def test_threshold_is_configurable() -> None:
    existing = make_existing("Salsa Basics")
    record = make_record("Salsa Basic", start="12:00")

    assert suggest_matches([(0, record)], [existing], threshold=95) == ()


def test_existing_session_is_suggested_at_most_once() -> None:
    existing = make_existing("Salsa Basics")
    close = make_record("Salsa Basic", start="12:00")
    closer = make_record("Salsa Basics", start="14:00")

    suggestions = suggest_matches([(0, close), (1, closer)], [existing])

    assert len(suggestions) == 1
    assert suggestions[0].incoming is closer
    assert suggestions[0].similarity == 100


def test_incoming_record_keeps_only_its_best_suggestion() -> None:
    first = make_existing("Salsa Basics", order=0)
    second = make_existing("Salsa Basic", order=1, start="12:00")
    record = make_record("Salsa Basics", start="16:00")

    suggestions = suggest_matches([(0, record)], [first, second])

    (suggestion,) = suggestions
    assert suggestion.existing is first
    assert suggestion.reason == "Same title, different schedule"


def test_suggestions_are_ordered_by_similarity_then_batch_order() -> None:
    a = make_existing("Bachata Sensual", order=0)
    b = make_existing("Kizomba Flow", order=1)
    c = make_existing("Zouk Basics", order=2)
    incoming = [
        (0, make_record("Kizomba Flows", start="12:00")),
        (1, make_record("Zouk Basics", start="13:00")),
        (2, make_record("Bachata Sensuals", start="14:00")),
    ]

    suggestions = suggest_matches(incoming, [a, b, c])

    assert [suggestion.index for suggestion in suggestions] == [1, 2, 0]
    assert [suggestion.existing for suggestion in suggestions] == [c, a, b]


def test_suggestions_per_record_are_capped() -> None:
    existing = [make_existing(f"Salsa Basics {n}", order=n) for n in range(5)]
    record = make_record("Salsa Basics", start="18:00")

    suggestions = suggest_matches([(0, record)], existing, max_per_record=1)

    assert len(suggestions) == 1
    assert suggestions[0].existing is existing[0]
