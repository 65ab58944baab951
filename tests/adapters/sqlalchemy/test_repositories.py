from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from schedsync.adapters.sqlalchemy.mappings import booking_table
from schedsync.adapters.sqlalchemy.repositories import (
    SqlAlchemyFestivalRepository,
    SqlAlchemySessionRepository,
)
from schedsync.domain.model import CardType, ExistingSession
from schedsync.domain.reconciliation import StalePlanError
from tests.helpers.sessions import FESTIVAL_ID, make_existing, make_festival, make_record

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def _booking_rows(session: Session) -> int:
    return session.execute(select(func.count()).select_from(booking_table)).scalar_one()


def test_festival_repository_round_trip(sqlite_session: Session) -> None:
    repository = SqlAlchemyFestivalRepository(sqlite_session)
    festival = make_festival(owner="organizer@example.com")

    repository.add(festival)
    sqlite_session.commit()
    sqlite_session.expunge_all()

    loaded = repository.get(FESTIVAL_ID)
    assert loaded is not None
    assert loaded.name == "Summer Dance Weekend"
    assert loaded.owner == "organizer@example.com"
    assert repository.get(uuid4()) is None


def test_session_repository_persists_lists_card_type_and_bookings(
    sqlite_session: Session,
) -> None:
    SqlAlchemyFestivalRepository(sqlite_session).add(make_festival())
    repository = SqlAlchemySessionRepository(sqlite_session)
    session = make_existing(
        styles=["Salsa", "Son"],
        teachers=["Anna & Tom"],
        card_type=CardType.PHOTO,
        capacity=20,
        bookings=2,
    )

    repository.add(session)
    sqlite_session.commit()
    sqlite_session.expunge_all()

    loaded = repository.get(session.id)
    assert loaded is not None
    assert loaded.styles == ["Salsa", "Son"]
    assert loaded.teachers == ["Anna & Tom"]
    assert loaded.card_type is CardType.PHOTO
    assert loaded.capacity == 20
    assert loaded.booking_count == 2
    assert loaded.created_at.tzinfo is not None


def test_find_existing_is_scoped_and_in_creation_order(sqlite_session: Session) -> None:
    other_festival = make_festival(id=uuid4(), name="Other")
    festivals = SqlAlchemyFestivalRepository(sqlite_session)
    festivals.add(make_festival())
    festivals.add(other_festival)
    repository = SqlAlchemySessionRepository(sqlite_session)
    late = make_existing("Late", order=5)
    early = make_existing("Early", order=1)
    foreign = make_existing("Foreign", festival_id=other_festival.id)
    for entity in (late, early, foreign):
        repository.add(entity)
    sqlite_session.commit()

    found = repository.find_existing(FESTIVAL_ID)

    assert [entity.title for entity in found] == ["Early", "Late"]


def test_create_and_update_sessions(sqlite_session: Session) -> None:
    SqlAlchemyFestivalRepository(sqlite_session).add(make_festival())
    repository = SqlAlchemySessionRepository(sqlite_session)

    created = repository.create(FESTIVAL_ID, make_record("Lindy Hop", teachers=("Maria",)))
    created.add_booking(["Anna"])
    sqlite_session.commit()
    updated = repository.update(created.id, {"level": "Advanced", "teachers": ["Maria", "Tom"]})
    sqlite_session.commit()
    sqlite_session.expunge_all()

    loaded = repository.get(created.id)
    assert updated.id == created.id
    assert loaded is not None
    assert loaded.level == "Advanced"
    assert loaded.teachers == ["Maria", "Tom"]
    assert loaded.booking_count == 1


def test_update_missing_session_is_stale(sqlite_session: Session) -> None:
    repository = SqlAlchemySessionRepository(sqlite_session)

    with pytest.raises(StalePlanError):
        repository.update(uuid4(), {"level": "Open"})


def test_delete_all_removes_sessions_and_their_bookings(sqlite_session: Session) -> None:
    other_festival = make_festival(id=uuid4(), name="Other")
    festivals = SqlAlchemyFestivalRepository(sqlite_session)
    festivals.add(make_festival())
    festivals.add(other_festival)
    repository = SqlAlchemySessionRepository(sqlite_session)
    repository.add(make_existing("A", bookings=2))
    repository.add(make_existing("B", order=1, bookings=1))
    survivor = make_existing("C", festival_id=other_festival.id, bookings=1)
    repository.add(survivor)
    sqlite_session.commit()

    deleted = repository.delete_all(FESTIVAL_ID)
    sqlite_session.commit()

    assert deleted == 2
    assert repository.find_existing(FESTIVAL_ID) == []
    assert sqlite_session.get(ExistingSession, survivor.id) is not None
    assert _booking_rows(sqlite_session) == 1


def test_created_sessions_get_utc_timestamps(sqlite_session: Session) -> None:
    SqlAlchemyFestivalRepository(sqlite_session).add(make_festival())
    repository = SqlAlchemySessionRepository(sqlite_session)
    before = datetime.now(tz=UTC)

    created = repository.create(FESTIVAL_ID, make_record())
    sqlite_session.commit()

    assert created.created_at >= before
