"""Composite-key matching between incoming records and existing sessions.

The index is built once and never mutated; claims are tracked separately so a
second incoming record with the same key cannot take an already claimed session.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Protocol

from .contracts import ExactMatch, ExactMatchResult

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from uuid import UUID

    from schedsync.domain.model import ExistingSession, SessionRecord

log = logging.getLogger(__name__)


class MatchExisting(Protocol):
    """Partition a batch into exact matches and leftovers."""

    def __call__(
        self,
        incoming: Sequence[SessionRecord],
        existing: Sequence[ExistingSession],
    ) -> ExactMatchResult: ...


def creation_order(existing: Sequence[ExistingSession]) -> list[ExistingSession]:
    return sorted(existing, key=lambda session: (session.created_at, str(session.id)))


def build_key_index(existing: Sequence[ExistingSession]) -> Mapping[str, ExistingSession]:
    """Index existing sessions by composite key; the earliest created wins a duplicate key."""

    index: dict[str, ExistingSession] = {}
    for session in creation_order(existing):
        key = session.composite_key
        if key in index:
            log.warning(
                "Duplicate composite key %r: keeping session %s, ignoring %s",
                key,
                index[key].id,
                session.id,
            )
            continue
        index[key] = session
    return MappingProxyType(index)


def match_exact(
    incoming: Sequence[SessionRecord],
    existing: Sequence[ExistingSession],
) -> ExactMatchResult:
    index = build_key_index(existing)
    claimed: set[UUID] = set()
    matches: list[ExactMatch] = []
    unmatched_incoming: list[tuple[int, SessionRecord]] = []

    for position, record in enumerate(incoming):
        candidate = index.get(record.composite_key)
        if candidate is None or candidate.id in claimed:
            unmatched_incoming.append((position, record))
            continue
        claimed.add(candidate.id)
        matches.append(ExactMatch(index=position, incoming=record, existing=candidate))

    unmatched_existing = tuple(
        session for session in creation_order(existing) if session.id not in claimed
    )
    log.debug(
        "Exact matching: %s matched, %s incoming unmatched, %s existing unmatched",
        len(matches),
        len(unmatched_incoming),
        len(unmatched_existing),
    )
    return ExactMatchResult(
        matches=tuple(matches),
        unmatched_incoming=tuple(unmatched_incoming),
        unmatched_existing=unmatched_existing,
    )
