"""Ports for persisting festivals and their sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from schedsync.domain.model import ExistingSession, Festival

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID

    from schedsync.domain.model import SessionRecord


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class FestivalRepository(Repository[Festival], Protocol):
    """Repository contract for festivals."""

    def get(self, festival_id: UUID) -> Festival | None: ...


@runtime_checkable
class ScheduleExecutor(Protocol):
    """Write side used when applying an import plan to one festival."""

    def find_existing(self, festival_id: UUID) -> list[ExistingSession]: ...

    def create(self, festival_id: UUID, record: SessionRecord) -> ExistingSession: ...

    def update(self, session_id: UUID, fields: Mapping[str, object]) -> ExistingSession: ...

    def delete_all(self, festival_id: UUID) -> int: ...


@runtime_checkable
class SessionRepository(Repository[ExistingSession], ScheduleExecutor, Protocol):
    """Repository contract for festival sessions and their bookings."""

    def get(self, session_id: UUID) -> ExistingSession | None: ...
