"""Orchestrator for schedule reconciliation.

The engine composes the pure stages (exact matching, suggestion scoring, change
detection, planning) and is the single entry point every surface goes through,
so a preview and the apply that follows it always agree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from schedsync.config import ReconciliationConfig

from .changes import detect_changes
from .contracts import ExactMatchWithChanges, ImportMode
from .match import match_exact
from .policy import plan_merge, plan_replace
from .similarity import suggest_matches

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from uuid import UUID

    from schedsync.domain.model import ExistingSession, SessionRecord

    from .contracts import Decision, ExactMatch, ExactMatchResult, SuggestedMatch
    from .match import MatchExisting
    from .normalize import NormalizationResult
    from .plan import Plan
    from .similarity import SuggestMatches

log = logging.getLogger(__name__)


def _record_payload(record: SessionRecord) -> dict[str, object]:
    return {
        "title": record.title,
        "day": record.day,
        "start": record.start,
        "end": record.end,
        "level": record.level,
        "teachers": list(record.teachers),
        "location": record.location,
        "capacity": record.capacity,
        "rowNumber": record.row_number,
    }


def _existing_payload(session: ExistingSession) -> dict[str, object]:
    return {
        "id": str(session.id),
        "title": session.title,
        "day": session.day,
        "start": session.start,
        "end": session.end,
        "level": session.level,
        "teachers": list(session.teachers),
        "location": session.location,
        "capacity": session.capacity,
        "bookings": session.booking_count,
    }


@dataclass(frozen=True, slots=True, kw_only=True)
class MergePreview:
    """What a merge import would do, before anything is written."""

    exact_matches: tuple[ExactMatch, ...] = ()
    exact_matches_with_changes: tuple[ExactMatchWithChanges, ...] = ()
    suggested_matches: tuple[SuggestedMatch, ...] = ()
    to_create: tuple[SessionRecord, ...] = ()
    to_keep: tuple[ExistingSession, ...] = ()
    incoming_count: int = 0
    existing_count: int = 0
    sessions_with_bookings: int = 0
    total_participants: int = 0
    skipped_rows: int = 0
    warnings: tuple[str, ...] = ()

    def to_payload(self) -> dict[str, object]:
        """Serialize for JSON surfaces using camelCase keys."""

        return {
            "exactMatches": len(self.exact_matches),
            "exactMatchesWithChanges": [
                {
                    "existing": _existing_payload(item.match.existing),
                    "incoming": _record_payload(item.match.incoming),
                    "changes": list(item.changes),
                    "hasChanges": True,
                }
                for item in self.exact_matches_with_changes
            ],
            "suggestedMatches": [
                {
                    "existingId": str(suggestion.existing.id),
                    "existing": _existing_payload(suggestion.existing),
                    "incoming": _record_payload(suggestion.incoming),
                    "reason": suggestion.reason,
                    "similarity": suggestion.similarity,
                    "changes": list(suggestion.changes),
                }
                for suggestion in self.suggested_matches
            ],
            "toCreate": len(self.to_create),
            "toKeep": len(self.to_keep),
            "toCreateSessions": [_record_payload(record) for record in self.to_create],
            "toKeepSessions": [_existing_payload(session) for session in self.to_keep],
            "incomingCount": self.incoming_count,
            "existingCount": self.existing_count,
            "sessionsWithBookings": self.sessions_with_bookings,
            "totalParticipants": self.total_participants,
            "skippedRows": self.skipped_rows,
            "warnings": list(self.warnings),
        }


@dataclass(slots=True)
class ReconciliationEngine:
    """Run matching, scoring and planning for one festival import."""

    config: ReconciliationConfig = field(default_factory=ReconciliationConfig)
    match: MatchExisting = match_exact
    suggest: SuggestMatches = suggest_matches

    def _match(
        self,
        incoming: Sequence[SessionRecord],
        existing: Sequence[ExistingSession],
    ) -> tuple[ExactMatchResult, tuple[SuggestedMatch, ...]]:
        exact = self.match(incoming, existing)
        suggestions = self.suggest(
            exact.unmatched_incoming,
            exact.unmatched_existing,
            threshold=self.config.similarity_threshold,
            max_per_record=self.config.max_suggestions_per_record,
        )
        return exact, suggestions

    def preview(
        self,
        normalized: NormalizationResult,
        existing: Sequence[ExistingSession],
    ) -> MergePreview:
        """Describe the merge outcome without deciding any suggestion."""

        incoming = normalized.records
        exact, suggestions = self._match(incoming, existing)

        with_changes: list[ExactMatchWithChanges] = []
        for match in exact.matches:
            change_set = detect_changes(match.existing, match.incoming)
            if change_set.has_changes:
                with_changes.append(ExactMatchWithChanges(match=match, changes=change_set.changes))

        suggested_indices = {suggestion.index for suggestion in suggestions}
        suggested_ids = {suggestion.existing.id for suggestion in suggestions}
        preview = MergePreview(
            exact_matches=exact.matches,
            exact_matches_with_changes=tuple(with_changes),
            suggested_matches=suggestions,
            to_create=tuple(
                record
                for index, record in exact.unmatched_incoming
                if index not in suggested_indices
            ),
            to_keep=tuple(
                session
                for session in exact.unmatched_existing
                if session.id not in suggested_ids
            ),
            incoming_count=len(incoming),
            existing_count=len(existing),
            sessions_with_bookings=sum(1 for session in existing if session.has_bookings),
            total_participants=sum(session.participants for session in existing),
            skipped_rows=normalized.skipped,
            warnings=normalized.warnings,
        )
        log.info(
            "Preview: %s exact (%s changed), %s suggested, %s to create, %s to keep",
            len(preview.exact_matches),
            len(preview.exact_matches_with_changes),
            len(preview.suggested_matches),
            len(preview.to_create),
            len(preview.to_keep),
        )
        return preview

    def plan(
        self,
        festival_id: UUID,
        normalized: NormalizationResult,
        existing: Sequence[ExistingSession],
        *,
        mode: ImportMode = ImportMode.MERGE,
        decisions: Mapping[UUID, Decision] | None = None,
    ) -> Plan:
        incoming = normalized.records
        if mode is ImportMode.REPLACE:
            plan = plan_replace(festival_id, incoming, existing)
        else:
            exact, suggestions = self._match(incoming, existing)
            plan = plan_merge(
                festival_id,
                incoming,
                existing,
                exact=exact,
                suggestions=suggestions,
                decisions=decisions,
            )
        if normalized.warnings:
            return _with_warnings(plan, normalized.warnings)
        return plan


def _with_warnings(plan: Plan, warnings: Sequence[str]) -> Plan:
    return replace(plan, warnings=(*warnings, *plan.warnings))
