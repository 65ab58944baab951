"""Festival, session and booking entities.

``SessionRecord`` is the immutable shape of one imported row. ``ExistingSession``
is the persisted aggregate; its identity and bookings are what reconciliation
must preserve.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Final
from uuid import UUID, uuid4

from .enums import CardType

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


def new_id() -> UUID:
    return uuid4()


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def normalize_key_part(value: str | None) -> str:
    return (value or "").strip().lower()


def composite_key(day: str | None, start: str | None, title: str | None) -> str:
    """Return the ``day|start|title`` equality key used for exact matching."""

    return "|".join(normalize_key_part(part) for part in (day, start, title))


IDENTITY_FIELDS: Final[tuple[str, ...]] = ("title", "day", "start")
DESCRIPTIVE_FIELDS: Final[tuple[str, ...]] = (
    "end",
    "level",
    "capacity",
    "styles",
    "teachers",
    "location",
    "description",
    "prerequisites",
    "card_type",
)
UPDATABLE_FIELDS: Final[frozenset[str]] = frozenset(IDENTITY_FIELDS + DESCRIPTIVE_FIELDS)


@dataclass(frozen=True, slots=True, kw_only=True)
class SessionRecord:
    """One canonical incoming schedule row."""

    title: str
    day: str
    start: str
    end: str
    level: str | None = None
    capacity: int | None = None
    styles: tuple[str, ...] = ()
    teachers: tuple[str, ...] = ()
    location: str | None = None
    description: str | None = None
    prerequisites: str | None = None
    card_type: CardType = CardType.FULL
    row_number: int | None = None
    unresolved: frozenset[str] = frozenset()

    @property
    def composite_key(self) -> str:
        return composite_key(self.day, self.start, self.title)

    def field_values(self, *, include_identity: bool) -> dict[str, object]:
        """Return the persisted field values this record would write."""

        names = (IDENTITY_FIELDS if include_identity else ()) + DESCRIPTIVE_FIELDS
        values: dict[str, object] = {}
        for name in names:
            value = getattr(self, name)
            values[name] = list(value) if isinstance(value, tuple) else value
        return values


@dataclass(eq=False, kw_only=True)
class Booking:
    """Attendee reservation attached to a session."""

    id: UUID = field(default_factory=new_id)
    names: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def participants(self) -> int:
        return len(self.names)


@dataclass(eq=False, kw_only=True)
class ExistingSession:
    """Persisted session owned by a festival."""

    id: UUID = field(default_factory=new_id)
    festival_id: UUID
    title: str
    day: str
    start: str
    end: str
    level: str | None = None
    capacity: int | None = None
    styles: list[str] = field(default_factory=list)
    teachers: list[str] = field(default_factory=list)
    location: str | None = None
    description: str | None = None
    prerequisites: str | None = None
    card_type: CardType = CardType.FULL
    created_at: datetime = field(default_factory=_utcnow)
    _bookings: list[Booking] = field(default_factory=list, init=False, repr=False)

    @property
    def composite_key(self) -> str:
        return composite_key(self.day, self.start, self.title)

    @property
    def bookings(self) -> tuple[Booking, ...]:
        return tuple(self._bookings)

    @property
    def booking_count(self) -> int:
        return len(self._bookings)

    @property
    def has_bookings(self) -> bool:
        return bool(self._bookings)

    @property
    def participants(self) -> int:
        return sum(booking.participants for booking in self._bookings)

    def add_booking(self, names: Iterable[str] = ()) -> Booking:
        booking = Booking(names=list(names))
        self._bookings.append(booking)
        return booking

    def apply_fields(self, fields: Mapping[str, object]) -> None:
        """Overwrite persisted fields; identity (``id``) and bookings are untouched."""

        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update session fields: {', '.join(sorted(unknown))}")
        for name, value in fields.items():
            setattr(self, name, list(value) if isinstance(value, tuple) else value)

    @classmethod
    def from_record(cls, festival_id: UUID, record: SessionRecord) -> ExistingSession:
        session = cls(
            festival_id=festival_id,
            title=record.title,
            day=record.day,
            start=record.start,
            end=record.end,
        )
        session.apply_fields(record.field_values(include_identity=False))
        return session


@dataclass(eq=False, kw_only=True)
class Festival:
    """Festival whose date range anchors weekday-only schedule rows."""

    id: UUID = field(default_factory=new_id)
    name: str
    start_date: date | None = None
    end_date: date | None = None
    owner: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
