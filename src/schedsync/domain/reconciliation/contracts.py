"""Shared reconciliation contract components.

This module holds only:
- import mode and user decision enums
- match/suggestion dataclasses passed between matcher, scorer and planner
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from schedsync.domain.model import ExistingSession, SessionRecord


class ImportMode(StrEnum):
    """How an import treats sessions already stored for the festival."""

    MERGE = "merge"
    REPLACE = "replace"


class Decision(StrEnum):
    """User verdict on a suggested match."""

    UPDATE = "update"
    CREATE = "create"


type DecisionsById = dict[UUID, Decision]


def parse_decisions(raw: dict[str, str] | None) -> DecisionsById:
    """Coerce a ``{id: "update" | "create"}`` mapping from an outer surface."""

    if not raw:
        return {}
    return {UUID(str(key)): Decision(str(value).strip().lower()) for key, value in raw.items()}


@dataclass(frozen=True, slots=True, kw_only=True)
class ExactMatch:
    """Incoming record sharing its composite key with an existing session."""

    index: int
    incoming: SessionRecord
    existing: ExistingSession


@dataclass(frozen=True, slots=True, kw_only=True)
class ExactMatchResult:
    """Partition of one batch produced by composite-key matching."""

    matches: tuple[ExactMatch, ...] = ()
    unmatched_incoming: tuple[tuple[int, SessionRecord], ...] = ()
    unmatched_existing: tuple[ExistingSession, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class SuggestedMatch:
    """Probable pairing between an unmatched incoming and unmatched existing record."""

    index: int
    incoming: SessionRecord
    existing: ExistingSession
    similarity: int
    reason: str
    changes: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class ExactMatchWithChanges:
    """Exact match whose descriptive fields differ from the stored session."""

    match: ExactMatch
    changes: tuple[str, ...]
