"""Input normalization for schedule imports.

Responsibilities of this stage:
- split delimited text into header-mapped rows (quote-aware)
- validate row shapes and skip rows missing required fields
- resolve days to ISO dates and times to ``HH:MM``
- emit canonical ``SessionRecord`` values without touching persistence

Malformed rows are counted, never fatal. Only structural problems (empty input,
no delimiter, nothing valid left) raise.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING, Final, cast

from dateutil import parser as date_parser
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from schedsync.domain.model import CardType, SessionRecord, parse_card_type

from .errors import EmptyInputError, NoValidRowsError, UndetectableDelimiterError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

log = logging.getLogger(__name__)

TEMPLATE_COLUMNS: Final[tuple[str, ...]] = (
    "id",
    "day",
    "start",
    "end",
    "title",
    "level",
    "capacity",
    "styles",
    "card_type",
    "teachers",
    "location",
    "description",
    "prerequisites",
)
TEMPLATE_MIN_ROW_FIELDS: Final[int] = 10
REQUIRED_COLUMNS: Final[frozenset[str]] = frozenset({"title", "day", "start", "end"})

_COLUMN_ALIASES: Final[dict[str, str]] = {
    "id": "id",
    "title": "title",
    "day": "day",
    "date": "day",
    "start": "start",
    "starttime": "start",
    "end": "end",
    "endtime": "end",
    "level": "level",
    "capacity": "capacity",
    "styles": "styles",
    "style": "styles",
    "types": "styles",
    "cardtype": "card_type",
    "teachers": "teachers",
    "teacher": "teachers",
    "location": "location",
    "description": "description",
    "prerequisites": "prerequisites",
}

_WEEKDAYS: Final[dict[str, int]] = {
    name: index
    for index, names in enumerate(
        (
            ("monday", "mon"),
            ("tuesday", "tue", "tues"),
            ("wednesday", "wed"),
            ("thursday", "thu", "thurs"),
            ("friday", "fri"),
            ("saturday", "sat"),
            ("sunday", "sun"),
        )
    )
    for name in names
}
_WEEKDAY_LABELS: Final[tuple[str, ...]] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_EMBEDDED_ISO_DATE = re.compile(r"(\d{4}-\d{2}-\d{2})[T\s]?")
_HHMM = re.compile(r"^\d{2}:\d{2}$")
_EMBEDDED_HHMM = re.compile(r"T(\d{2}:\d{2})|\s(\d{2}:\d{2})")
_LOOSE_HHMM = re.compile(r"^(\d{1,2}):(\d{2})")


# Row schema -------------------------------------------------------------------


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _split_list(value: object) -> tuple[str, ...]:
    # Commas only: "Anna & Tom" is one teaching pair, not two teachers.
    if value is None:
        return ()
    if isinstance(value, str):
        items: Iterable[object] = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = cast("Iterable[object]", value)
    else:
        items = (value,)
    return tuple(text for item in items if (text := str(item).strip()))


def _parse_capacity(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


class SessionRow(BaseModel):
    """Validated shape of one raw schedule row."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    title: str
    day: str
    start: str
    end: str
    level: str | None = None
    capacity: int | None = None
    styles: tuple[str, ...] = ()
    teachers: tuple[str, ...] = ()
    card_type: CardType = CardType.FULL
    location: str | None = None
    description: str | None = None
    prerequisites: str | None = None

    _normalize_text = field_validator(
        "title",
        "day",
        "start",
        "end",
        "level",
        "location",
        "description",
        "prerequisites",
        mode="before",
    )(_blank_to_none)

    @field_validator("day", "start", "end", mode="before")
    @classmethod
    def _temporal_to_text(cls, value: object) -> object:
        if isinstance(value, (date, time)):
            return value.isoformat()
        return value

    @field_validator("capacity", mode="before")
    @classmethod
    def _lenient_capacity(cls, value: object) -> int | None:
        return _parse_capacity(value)

    @field_validator("styles", "teachers", mode="before")
    @classmethod
    def _comma_list(cls, value: object) -> tuple[str, ...]:
        return _split_list(value)

    @field_validator("card_type", mode="before")
    @classmethod
    def _card_type_alias(cls, value: object) -> CardType:
        return parse_card_type(None if value is None else str(value))


def canonical_column(name: str) -> str | None:
    """Map a header or field name onto a canonical row field (case-insensitive)."""

    compact = re.sub(r"[\s_\-]", "", name.strip().lower())
    return _COLUMN_ALIASES.get(compact)


def _canonical_row(row: Mapping[str, object]) -> dict[str, object]:
    canonical: dict[str, object] = {}
    for key, value in row.items():
        column = canonical_column(key)
        if column is not None and column not in canonical:
            canonical[column] = value
    return canonical


# Delimited text ----------------------------------------------------------------


@dataclass(slots=True)
class DelimitedTable:
    """Header-mapped rows parsed from delimited text."""

    delimiter: str
    columns: tuple[str | None, ...]
    rows: list[tuple[int, dict[str, object]]] = field(
        default_factory=list["tuple[int, dict[str, object]]"]
    )
    skipped: int = 0


def detect_delimiter(header_line: str) -> str:
    if ";" in header_line:
        return ";"
    if "," in header_line:
        return ","
    raise UndetectableDelimiterError(header_line)


def parse_delimited(text: str) -> DelimitedTable:
    """Parse delimited schedule text with a header row.

    Quoted fields may contain the delimiter, doubled quotes and newlines. Columns
    are mapped by header name; when the header does not name the required columns
    the template column order is assumed.
    """

    body = text.lstrip("\ufeff")
    lines = [line for line in body.splitlines() if line.strip()]
    if not lines:
        raise EmptyInputError("Schedule input is empty")
    delimiter = detect_delimiter(lines[0])

    reader = csv.reader(io.StringIO(body), delimiter=delimiter, skipinitialspace=True)
    records = [row for row in reader if any(cell.strip() for cell in row)]
    if len(records) < 2:
        raise EmptyInputError("Schedule input must contain a header and at least one row")

    header, *data = records
    named = tuple(canonical_column(cell) for cell in header)
    by_name = REQUIRED_COLUMNS.issubset(column for column in named if column)
    columns = named if by_name else TEMPLATE_COLUMNS
    min_fields = (
        max(index for index, column in enumerate(columns) if column in REQUIRED_COLUMNS) + 1
        if by_name
        else TEMPLATE_MIN_ROW_FIELDS
    )
    if not by_name:
        log.info("Header does not name the required columns; using template column order")

    table = DelimitedTable(delimiter=delimiter, columns=columns)
    for offset, cells in enumerate(data, start=2):
        if len(cells) < min_fields:
            table.skipped += 1
            log.debug("Skipping row %s: %s fields, need %s", offset, len(cells), min_fields)
            continue
        row: dict[str, object] = {}
        for column, cell in zip(columns, cells, strict=False):
            if column is not None and column not in row:
                row[column] = cell.strip()
        table.rows.append((offset, row))
    return table


# Dates and times -----------------------------------------------------------------


def normalize_time(value: str) -> str | None:
    """Return ``HH:MM`` for clock, datetime or unpadded values, else ``None``."""

    text = value.strip().strip('"').strip()
    if _HHMM.match(text):
        return text
    embedded = _EMBEDDED_HHMM.search(text)
    if embedded:
        return embedded.group(1) or embedded.group(2)
    loose = _LOOSE_HHMM.match(text)
    if loose:
        return f"{int(loose.group(1)):02d}:{loose.group(2)}"
    return None


def extract_iso_date(value: str | None) -> str | None:
    if not value:
        return None
    match = _EMBEDDED_ISO_DATE.search(value)
    return match.group(1) if match else None


class WeekdayResolver:
    """Map weekday names onto concrete dates of a festival.

    Consecutive rows naming the same weekday form a block; each new block of a
    weekday moves on to the next such date in the festival range. Running out of
    dates reuses the last known date for that weekday, and a weekday that never
    occurs in the range falls back to the festival start date. Both cases are
    warnings, never errors.
    """

    def __init__(self, start_date: date | None, end_date: date | None) -> None:
        self.start_date = start_date
        self.dates_by_weekday: dict[int, list[date]] = {}
        self.warnings: list[str] = []
        self._blocks: dict[int, int] = {}
        self._previous: int | None = None
        self._current: date | None = None
        if start_date is None:
            return
        last = end_date if end_date is not None and end_date >= start_date else start_date
        current = start_date
        while current <= last:
            self.dates_by_weekday.setdefault(current.weekday(), []).append(current)
            current += timedelta(days=1)

    @staticmethod
    def weekday_of(value: str) -> int | None:
        return _WEEKDAYS.get(value.strip().lower())

    def resolve(self, weekday: int) -> date | None:
        if self.start_date is None:
            return None
        if weekday == self._previous and self._current is not None:
            return self._current

        block = self._blocks.get(weekday, -1) + 1
        self._blocks[weekday] = block
        self._previous = weekday
        dates = self.dates_by_weekday.get(weekday, [])
        label = _WEEKDAY_LABELS[weekday]
        if block < len(dates):
            self._current = dates[block]
        elif dates:
            self._current = dates[-1]
            self._warn(
                f"{label} appears in more blocks than the festival has {label}s; "
                f"reusing {dates[-1].isoformat()}"
            )
        else:
            self._current = self.start_date
            self._warn(
                f"{label} is not within the festival dates; "
                f"using festival start {self.start_date.isoformat()}"
            )
        return self._current

    def _warn(self, message: str) -> None:
        log.warning(message)
        self.warnings.append(message)


def _parse_generic_date(value: str, default: date | None) -> str | None:
    if not any(char.isdigit() for char in value):
        return None
    anchor = datetime.combine(default, datetime.min.time()) if default else None
    try:
        parsed = date_parser.parse(value, default=anchor)
    except (ValueError, OverflowError):
        return None
    return parsed.date().isoformat()


def resolve_day(
    raw_day: str,
    raw_start: str,
    raw_end: str,
    resolver: WeekdayResolver,
) -> str | None:
    """Resolve the day column to an ISO date, or ``None`` when unresolved."""

    if _ISO_DATE.match(raw_day):
        return raw_day
    embedded = extract_iso_date(raw_start) or extract_iso_date(raw_end)
    if embedded:
        return embedded
    generic = _parse_generic_date(raw_day, resolver.start_date)
    if generic:
        return generic
    weekday = resolver.weekday_of(raw_day)
    if weekday is not None:
        resolved = resolver.resolve(weekday)
        return resolved.isoformat() if resolved else None
    return None


# Records -------------------------------------------------------------------------


@dataclass(slots=True)
class NormalizationResult:
    """Canonical records plus diagnostics for one import batch."""

    records: tuple[SessionRecord, ...]
    skipped: int = 0
    warnings: tuple[str, ...] = ()


def normalize_rows(
    rows: Iterable[Mapping[str, object]],
    *,
    festival_start: date | None = None,
    festival_end: date | None = None,
    skipped: int = 0,
    row_numbers: Iterable[int] | None = None,
) -> NormalizationResult:
    """Turn raw row mappings into canonical session records."""

    resolver = WeekdayResolver(festival_start, festival_end)
    numbers = iter(row_numbers) if row_numbers is not None else None
    records: list[SessionRecord] = []
    warnings: list[str] = []

    for index, raw in enumerate(rows, start=1):
        row_number = next(numbers, index) if numbers is not None else index
        try:
            row = SessionRow.model_validate(_canonical_row(raw))
        except ValidationError as exc:
            skipped += 1
            log.debug("Skipping row %s: %s", row_number, exc.errors(include_url=False))
            continue
        record = _record_from_row(row, row_number=row_number, resolver=resolver)
        if record.unresolved:
            message = (
                f"Row {row_number}: could not resolve {', '.join(sorted(record.unresolved))}; "
                "keeping raw value"
            )
            log.warning(message)
            warnings.append(message)
        records.append(record)

    warnings[:0] = resolver.warnings
    if not records:
        raise NoValidRowsError(skipped=skipped)
    if skipped:
        log.warning("Skipped %s malformed schedule rows", skipped)
    log.info("Normalized %s schedule rows", len(records))
    return NormalizationResult(records=tuple(records), skipped=skipped, warnings=tuple(warnings))


def normalize_delimited(
    text: str,
    *,
    festival_start: date | None = None,
    festival_end: date | None = None,
) -> NormalizationResult:
    """Parse and normalize a delimited schedule body."""

    table = parse_delimited(text)
    log.info(
        "Parsed %s schedule rows (delimiter=%r, %s too short)",
        len(table.rows),
        table.delimiter,
        table.skipped,
    )
    return normalize_rows(
        (row for _, row in table.rows),
        festival_start=festival_start,
        festival_end=festival_end,
        skipped=table.skipped,
        row_numbers=[number for number, _ in table.rows],
    )


def _record_from_row(
    row: SessionRow,
    *,
    row_number: int,
    resolver: WeekdayResolver,
) -> SessionRecord:
    unresolved: set[str] = set()

    day = resolve_day(row.day, row.start, row.end, resolver)
    if day is None:
        unresolved.add("day")
    start = normalize_time(row.start)
    if start is None:
        unresolved.add("start")
    end = normalize_time(row.end)
    if end is None:
        unresolved.add("end")

    return SessionRecord(
        title=row.title,
        day=day or row.day,
        start=start or row.start,
        end=end or row.end,
        level=row.level,
        capacity=row.capacity,
        styles=row.styles,
        teachers=row.teachers,
        location=row.location,
        description=row.description,
        prerequisites=row.prerequisites,
        card_type=row.card_type,
        row_number=row_number,
        unresolved=frozenset(unresolved),
    )
