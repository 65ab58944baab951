"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select

from schedsync.adapters.sqlalchemy.mappings import session_table
from schedsync.domain.model import ExistingSession, Festival
from schedsync.domain.reconciliation.errors import StalePlanError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID

    from sqlalchemy.orm import Session

    from schedsync.domain.model import SessionRecord

log = logging.getLogger(__name__)


class SqlAlchemyFestivalRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Festival) -> None:
        self.session.add(entity)

    def get(self, festival_id: UUID) -> Festival | None:
        return self.session.get(Festival, festival_id)


class SqlAlchemySessionRepository:
    """Festival sessions; also the executor used when applying import plans."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: ExistingSession) -> None:
        self.session.add(entity)

    def get(self, session_id: UUID) -> ExistingSession | None:
        return self.session.get(ExistingSession, session_id)

    def find_existing(self, festival_id: UUID) -> list[ExistingSession]:
        stmt = (
            select(ExistingSession)
            .where(session_table.c.festival_id == festival_id)
            .order_by(session_table.c.created_at, session_table.c.id)
        )
        return list(self.session.scalars(stmt))

    def create(self, festival_id: UUID, record: SessionRecord) -> ExistingSession:
        entity = ExistingSession.from_record(festival_id, record)
        self.session.add(entity)
        return entity

    def update(self, session_id: UUID, fields: Mapping[str, object]) -> ExistingSession:
        entity = self.get(session_id)
        if entity is None:
            raise StalePlanError(session_id)
        entity.apply_fields(fields)
        return entity

    def delete_all(self, festival_id: UUID) -> int:
        sessions = self.find_existing(festival_id)
        for entity in sessions:
            self.session.delete(entity)
        self.session.flush()
        log.info("Deleted %s sessions of festival %s", len(sessions), festival_id)
        return len(sessions)
