"""SQLAlchemy mapping metadata for the schedsync domain model."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers, relationship

from schedsync.domain.model import Booking, CardType, ExistingSession, Festival

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class StringListType(TypeDecorator[list[str]]):
    """Ordered list of strings stored as a JSON array."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: list[str] | None, dialect: Dialect) -> str:
        _ = dialect
        return json.dumps(list(value or []))

    def process_result_value(self, value: str | None, dialect: Dialect) -> list[str]:
        _ = dialect
        if value is None:
            return []
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return []
        items = cast(list[Any], loaded)
        return [item for item in items if isinstance(item, str)]


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

festival_table = Table(
    "festival",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
    Column("start_date", Date, nullable=True),
    Column("end_date", Date, nullable=True),
    Column("owner", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
)

session_table = Table(
    "festival_session",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "festival_id",
        UUIDColumnType,
        ForeignKey("festival.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("title", String, nullable=False),
    Column("day", String, nullable=False),
    Column("start_time", String, key="start", nullable=False),
    Column("end_time", String, key="end", nullable=False),
    Column("level", String, nullable=True),
    Column("capacity", Integer, nullable=True),
    Column("styles", StringListType(), nullable=False),
    Column("teachers", StringListType(), nullable=False),
    Column("location", String, nullable=True),
    Column("description", Text, nullable=True),
    Column("prerequisites", Text, nullable=True),
    Column(
        "card_type",
        Enum(CardType, native_enum=False, values_callable=lambda kinds: [k.value for k in kinds]),
        nullable=False,
    ),
    Column("created_at", UTCDateTime(), nullable=False),
    Index("ix_festival_session_festival_day", "festival_id", "day"),
)

booking_table = Table(
    "booking",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "session_id",
        UUIDColumnType,
        ForeignKey("festival_session.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("names", StringListType(), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Map domain dataclasses onto their tables (idempotent)."""

    log.debug("Configuring SQLAlchemy mappers")
    mapper_registry.map_imperatively(Festival, festival_table)
    mapper_registry.map_imperatively(Booking, booking_table)
    mapper_registry.map_imperatively(
        ExistingSession,
        session_table,
        properties={
            "_bookings": relationship(
                Booking,
                cascade="all, delete-orphan",
                passive_deletes=True,
                lazy="selectin",
                order_by=booking_table.c.created_at,
            ),
        },
    )

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
