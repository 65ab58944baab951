"""Failure kinds surfaced by schedule reconciliation.

Only structural input problems, missing festivals, denied access, stale plans and
broken booking invariants are errors; malformed rows and unresolved values are
reported as counts and warnings instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID


class ScheduleImportError(Exception):
    """Base class for hard failures of a schedule import."""


class EmptyInputError(ScheduleImportError):
    """Raised when the input has no header or no data rows."""


class UndetectableDelimiterError(ScheduleImportError):
    """Raised when the header line contains neither ``;`` nor ``,``."""

    def __init__(self, header: str) -> None:
        self.header = header
        super().__init__(f"Could not detect a delimiter in header line: {header!r}")


class NoValidRowsError(ScheduleImportError):
    """Raised when no row survives normalization."""

    def __init__(self, *, skipped: int) -> None:
        self.skipped = skipped
        super().__init__(f"No valid sessions found in input ({skipped} rows skipped)")


class FestivalNotFoundError(ScheduleImportError):
    def __init__(self, festival_id: UUID) -> None:
        self.festival_id = festival_id
        super().__init__(f"Festival not found: {festival_id}")


class FestivalAccessDeniedError(ScheduleImportError):
    def __init__(self, festival_id: UUID) -> None:
        self.festival_id = festival_id
        super().__init__(f"Caller is not entitled to import into festival {festival_id}")


class StalePlanError(ScheduleImportError):
    """Raised when a plan targets a session that no longer exists."""

    def __init__(self, session_id: UUID) -> None:
        self.session_id = session_id
        super().__init__(f"Plan targets unknown session {session_id}; re-derive the plan")


class BookingPreservationError(ScheduleImportError):
    """Raised when a merge plan would detach bookings or lose an existing session."""
