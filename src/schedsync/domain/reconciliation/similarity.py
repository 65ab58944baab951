"""Title similarity and suggested matches for records without an exact match.

Suggestion ranking:
1) same normalized title with a different schedule (similarity 100)
2) fuzzy title similarity at or above the configured threshold

Every incoming record is compared with every unmatched existing session, so cost
grows with ``len(incoming) * len(existing)``. Festival schedules are small enough
for that to stay cheap.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Protocol

from schedsync.domain.model import normalize_key_part

from .contracts import SuggestedMatch

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from schedsync.domain.model import ExistingSession, SessionRecord

log = logging.getLogger(__name__)

SAME_TITLE_REASON = "Same title, different schedule"


class SuggestMatches(Protocol):
    """Propose probable pairings for records left over after exact matching."""

    def __call__(
        self,
        unmatched_incoming: Sequence[tuple[int, SessionRecord]],
        unmatched_existing: Sequence[ExistingSession],
        *,
        threshold: int,
        max_per_record: int,
    ) -> tuple[SuggestedMatch, ...]: ...


def levenshtein(a: str, b: str) -> int:
    """Edit distance with unit costs for insert, delete and substitute."""

    rows = len(a) + 1
    cols = len(b) + 1
    matrix = [[0] * cols for _ in range(rows)]
    for i in range(rows):
        matrix[i][0] = i
    for j in range(cols):
        matrix[0][j] = j
    for i in range(1, rows):
        for j in range(1, cols):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            matrix[i][j] = min(
                matrix[i - 1][j] + 1,
                matrix[i][j - 1] + 1,
                matrix[i - 1][j - 1] + cost,
            )
    return matrix[-1][-1]


def title_similarity(a: str, b: str) -> int:
    """Return similarity in percent, rounded half up, of two normalized titles."""

    left = normalize_key_part(a)
    right = normalize_key_part(b)
    if left == right:
        return 100
    longest = max(len(left), len(right))
    if longest == 0:
        return 100
    distance = levenshtein(left, right)
    return math.floor(100 * (longest - distance) / longest + 0.5)


def _schedule_changes(existing: ExistingSession, incoming: SessionRecord) -> list[str]:
    changes: list[str] = []
    if normalize_key_part(existing.day) != normalize_key_part(incoming.day):
        changes.append(f"Day: {existing.day} → {incoming.day}")
    if normalize_key_part(existing.start) != normalize_key_part(incoming.start):
        changes.append(f"Time: {existing.start} → {incoming.start}")
    return changes


def _candidates_for(
    index: int,
    record: SessionRecord,
    unmatched_existing: Sequence[ExistingSession],
    *,
    threshold: int,
) -> list[tuple[int, SuggestedMatch]]:
    """Return ``(rank, suggestion)`` pairs; rank 0 for same-title hits, 1 for fuzzy."""

    candidates: list[tuple[int, SuggestedMatch]] = []
    title = normalize_key_part(record.title)
    for existing in unmatched_existing:
        if normalize_key_part(existing.title) == title:
            candidates.append(
                (
                    0,
                    SuggestedMatch(
                        index=index,
                        incoming=record,
                        existing=existing,
                        similarity=100,
                        reason=SAME_TITLE_REASON,
                        changes=tuple(_schedule_changes(existing, record)),
                    ),
                )
            )
            continue
        similarity = title_similarity(record.title, existing.title)
        if similarity < threshold:
            continue
        changes = [f'Title: "{existing.title}" → "{record.title}"']
        changes.extend(_schedule_changes(existing, record))
        candidates.append(
            (
                1,
                SuggestedMatch(
                    index=index,
                    incoming=record,
                    existing=existing,
                    similarity=similarity,
                    reason=f"Similar title ({similarity}% match)",
                    changes=tuple(changes),
                ),
            )
        )
    return candidates


def suggest_matches(
    unmatched_incoming: Sequence[tuple[int, SessionRecord]],
    unmatched_existing: Sequence[ExistingSession],
    *,
    threshold: int = 70,
    max_per_record: int = 3,
) -> tuple[SuggestedMatch, ...]:
    """Suggest at most one existing session per incoming record and vice versa.

    Each incoming record keeps its best ``max_per_record`` candidates. The pooled
    candidates are then de-duplicated by existing session (highest similarity
    wins, earlier batch position on ties) and afterwards by incoming record.
    """

    existing_order = {session.id: position for position, session in enumerate(unmatched_existing)}
    pooled: list[tuple[int, SuggestedMatch]] = []
    for index, record in unmatched_incoming:
        candidates = _candidates_for(index, record, unmatched_existing, threshold=threshold)
        candidates.sort(key=lambda item: (item[0], -item[1].similarity))
        pooled.extend(candidates[:max_per_record])

    def order(item: tuple[int, SuggestedMatch]) -> tuple[int, int, int, int]:
        rank, suggestion = item
        return (
            -suggestion.similarity,
            rank,
            suggestion.index,
            existing_order[suggestion.existing.id],
        )

    pooled.sort(key=order)
    by_existing: dict[UUID, tuple[int, SuggestedMatch]] = {}
    for item in pooled:
        by_existing.setdefault(item[1].existing.id, item)

    by_incoming: dict[int, SuggestedMatch] = {}
    for _, suggestion in sorted(by_existing.values(), key=order):
        by_incoming.setdefault(suggestion.index, suggestion)

    suggestions = tuple(by_incoming.values())
    log.debug(
        "Suggested %s matches for %s unmatched incoming records",
        len(suggestions),
        len(unmatched_incoming),
    )
    return suggestions
