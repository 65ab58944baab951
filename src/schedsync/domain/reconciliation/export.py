"""Write festival sessions back to the delimited import template."""

from __future__ import annotations

import csv
import io
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable

    from schedsync.domain.model import ExistingSession

EXPORT_HEADER: Final[tuple[str, ...]] = (
    "id",
    "day",
    "start",
    "end",
    "title",
    "level",
    "capacity",
    "styles",
    "CardType",
    "teachers",
    "location",
    "Description",
    "Prerequisites",
)


def _row(position: int, session: ExistingSession) -> list[str]:
    return [
        str(position),
        session.day,
        session.start,
        session.end,
        session.title,
        session.level or "",
        "" if session.capacity is None else str(session.capacity),
        ", ".join(session.styles),
        session.card_type.value,
        ", ".join(session.teachers),
        session.location or "",
        session.description or "",
        session.prerequisites or "",
    ]


def export_delimited(sessions: Iterable[ExistingSession], *, bom: bool = True) -> str:
    """Render sessions as ``;``-delimited text that imports back unchanged."""

    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=";", quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)
    ordered = sorted(sessions, key=lambda session: (session.day, session.start, session.title))
    for position, session in enumerate(ordered, start=1):
        writer.writerow(_row(position, session))
    text = buffer.getvalue()
    return f"\ufeff{text}" if bom else text
