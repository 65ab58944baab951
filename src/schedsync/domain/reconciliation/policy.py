"""Turn matches, suggestions and user decisions into an executable plan.

Merge precedence for each incoming record, in batch order:
1) a suggestion the user decided to ``update`` -> ``suggested_update``
2) an exact composite-key match -> ``update`` (identity fields kept)
3) a suggestion decided as ``create``, or left undecided -> ``suggested_create``
4) anything else -> ``create``

Existing sessions nobody claimed are kept. Merge plans never delete; every merge
plan is checked for that before it is returned.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING

from .changes import detect_changes
from .contracts import Decision, ImportMode
from .errors import BookingPreservationError
from .match import creation_order
from .plan import Plan, PlanAction, PlanCounts, PlanStep

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from uuid import UUID

    from schedsync.domain.model import ExistingSession, SessionRecord

    from .contracts import ExactMatchResult, SuggestedMatch

log = logging.getLogger(__name__)

_EXISTING_TERMINALS = frozenset({PlanAction.UPDATE, PlanAction.SUGGESTED_UPDATE, PlanAction.KEEP})


def plan_replace(
    festival_id: UUID,
    incoming: Sequence[SessionRecord],
    existing: Sequence[ExistingSession],
) -> Plan:
    """Delete every existing session and create one session per incoming record."""

    ordered = creation_order(existing)
    steps = [PlanStep(action=PlanAction.DELETE, target_id=session.id) for session in ordered]
    steps.extend(PlanStep(action=PlanAction.CREATE, record=record) for record in incoming)
    with_bookings = sum(1 for session in ordered if session.has_bookings)
    plan = Plan(
        festival_id=festival_id,
        mode=ImportMode.REPLACE,
        steps=tuple(steps),
        counts=PlanCounts(created=len(incoming), deleted=len(ordered)),
        sessions_with_bookings=with_bookings,
    )
    if plan.warning:
        log.warning(plan.warning)
    return plan


def plan_merge(
    festival_id: UUID,
    incoming: Sequence[SessionRecord],
    existing: Sequence[ExistingSession],
    *,
    exact: ExactMatchResult,
    suggestions: Sequence[SuggestedMatch],
    decisions: Mapping[UUID, Decision] | None = None,
) -> Plan:
    decisions = decisions or {}
    suggestion_by_index = {suggestion.index: suggestion for suggestion in suggestions}
    suggested_ids = {suggestion.existing.id for suggestion in suggestions}
    exact_by_index = {match.index: match for match in exact.matches}

    warnings: list[str] = []
    for session_id in decisions:
        if session_id not in suggested_ids:
            message = f"Ignoring decision for session {session_id}: it is not a suggested match"
            log.warning(message)
            warnings.append(message)

    processed: set[UUID] = set()
    steps: list[PlanStep] = []
    for index, record in enumerate(incoming):
        suggestion = suggestion_by_index.get(index)
        match = exact_by_index.get(index)
        decision = decisions.get(suggestion.existing.id) if suggestion else None

        if (
            suggestion is not None
            and decision is Decision.UPDATE
            and suggestion.existing.id not in processed
        ):
            processed.add(suggestion.existing.id)
            steps.append(
                PlanStep(
                    action=PlanAction.SUGGESTED_UPDATE,
                    record=record,
                    target_id=suggestion.existing.id,
                    fields=record.field_values(include_identity=True),
                    similarity=suggestion.similarity,
                    reason=suggestion.reason,
                    changes=suggestion.changes,
                )
            )
        elif match is not None and match.existing.id not in processed:
            processed.add(match.existing.id)
            steps.append(
                PlanStep(
                    action=PlanAction.UPDATE,
                    record=record,
                    target_id=match.existing.id,
                    fields=record.field_values(include_identity=False),
                    changes=detect_changes(match.existing, record).changes,
                )
            )
        elif suggestion is not None:
            steps.append(
                PlanStep(
                    action=PlanAction.SUGGESTED_CREATE,
                    record=record,
                    similarity=suggestion.similarity,
                    reason=suggestion.reason
                    if decision is Decision.CREATE
                    else f"{suggestion.reason}; no decision, creating new session",
                )
            )
        else:
            steps.append(PlanStep(action=PlanAction.CREATE, record=record))

    steps.extend(
        PlanStep(action=PlanAction.KEEP, target_id=session.id)
        for session in creation_order(existing)
        if session.id not in processed
    )

    tally = Counter(step.action for step in steps)
    plan = Plan(
        festival_id=festival_id,
        mode=ImportMode.MERGE,
        steps=tuple(steps),
        counts=PlanCounts(
            created=tally[PlanAction.CREATE] + tally[PlanAction.SUGGESTED_CREATE],
            updated=tally[PlanAction.UPDATE],
            suggested_applied=tally[PlanAction.SUGGESTED_UPDATE],
            kept=tally[PlanAction.KEEP],
        ),
        sessions_with_bookings=sum(1 for session in existing if session.has_bookings),
        warnings=tuple(warnings),
    )
    assert_booking_preservation(plan, existing)
    log.info(plan.summary)
    return plan


def assert_booking_preservation(plan: Plan, existing: Sequence[ExistingSession]) -> None:
    """Check a merge plan deletes nothing and settles every existing session exactly once."""

    if plan.mode is not ImportMode.MERGE:
        return
    if plan.steps_for(PlanAction.DELETE):
        raise BookingPreservationError("Merge plan must not delete existing sessions")

    terminals = Counter(
        step.target_id for step in plan.steps if step.action in _EXISTING_TERMINALS
    )
    known = {session.id for session in existing}
    unknown = set(terminals) - known
    if unknown:
        raise BookingPreservationError(
            f"Merge plan targets unknown sessions: {', '.join(sorted(map(str, unknown)))}"
        )
    for session in existing:
        count = terminals.get(session.id, 0)
        if count != 1:
            raise BookingPreservationError(
                f"Session {session.id} has {count} terminal actions in merge plan, expected 1"
            )
