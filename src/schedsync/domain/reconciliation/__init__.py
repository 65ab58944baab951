"""Reconciliation core for importing festival schedules.

Layered flow:
1) normalize raw rows into canonical session records
2) match records to existing sessions by composite key
3) score unmatched records for suggested matches
4) plan merge or replace, folding in user decisions
5) apply the plan inside one unit of work
"""

from __future__ import annotations

from .apply import ApplyResult, apply_plan
from .changes import ChangeSet, detect_changes
from .contracts import (
    Decision,
    DecisionsById,
    ExactMatch,
    ExactMatchResult,
    ExactMatchWithChanges,
    ImportMode,
    SuggestedMatch,
    parse_decisions,
)
from .engine import MergePreview, ReconciliationEngine
from .errors import (
    BookingPreservationError,
    EmptyInputError,
    FestivalAccessDeniedError,
    FestivalNotFoundError,
    NoValidRowsError,
    ScheduleImportError,
    StalePlanError,
    UndetectableDelimiterError,
)
from .match import match_exact
from .normalize import NormalizationResult, normalize_delimited, normalize_rows, parse_delimited
from .plan import Plan, PlanAction, PlanCounts, PlanStep
from .policy import assert_booking_preservation, plan_merge, plan_replace
from .similarity import levenshtein, suggest_matches, title_similarity

__all__ = [
    "ApplyResult",
    "BookingPreservationError",
    "ChangeSet",
    "Decision",
    "DecisionsById",
    "EmptyInputError",
    "ExactMatch",
    "ExactMatchResult",
    "ExactMatchWithChanges",
    "FestivalAccessDeniedError",
    "FestivalNotFoundError",
    "ImportMode",
    "MergePreview",
    "NoValidRowsError",
    "NormalizationResult",
    "Plan",
    "PlanAction",
    "PlanCounts",
    "PlanStep",
    "ReconciliationEngine",
    "ScheduleImportError",
    "StalePlanError",
    "SuggestedMatch",
    "UndetectableDelimiterError",
    "apply_plan",
    "assert_booking_preservation",
    "detect_changes",
    "levenshtein",
    "match_exact",
    "normalize_delimited",
    "normalize_rows",
    "parse_decisions",
    "parse_delimited",
    "plan_merge",
    "plan_replace",
    "suggest_matches",
    "title_similarity",
]
