"""Plan types shared by planner, preview and executor.

The plan is the contract between:
- the planner (pure, read-only over existing sessions)
- previews shown to the caller before anything is written
- the executor that mutates persistence inside one unit of work
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from .contracts import ImportMode

if TYPE_CHECKING:
    from uuid import UUID

    from schedsync.domain.model import SessionRecord


class PlanAction(StrEnum):
    """Terminal action for one incoming or existing record."""

    CREATE = "create"
    UPDATE = "update"
    KEEP = "keep"
    SUGGESTED_UPDATE = "suggested_update"
    SUGGESTED_CREATE = "suggested_create"
    DELETE = "delete"


@dataclass(frozen=True, slots=True, kw_only=True)
class PlanStep:
    """One planned action.

    ``record`` is set for every action driven by an incoming row; ``target_id`` is
    set for every action touching an existing session. ``fields`` holds the values
    an update overwrites.
    """

    action: PlanAction
    record: SessionRecord | None = None
    target_id: UUID | None = None
    fields: dict[str, object] = field(default_factory=dict["str", "object"])
    similarity: int | None = None
    reason: str | None = None
    changes: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class PlanCounts:
    created: int = 0
    updated: int = 0
    suggested_applied: int = 0
    kept: int = 0
    deleted: int = 0


@dataclass(frozen=True, slots=True, kw_only=True)
class Plan:
    """Aggregate plan for one import into one festival."""

    festival_id: UUID
    mode: ImportMode
    steps: tuple[PlanStep, ...] = ()
    counts: PlanCounts = PlanCounts()
    sessions_with_bookings: int = 0
    warnings: tuple[str, ...] = ()

    @property
    def will_delete(self) -> int:
        return self.counts.deleted

    @property
    def will_create(self) -> int:
        return self.counts.created

    @property
    def warning(self) -> str | None:
        """Booking-loss warning for replace plans, ``None`` otherwise."""

        if self.mode is not ImportMode.REPLACE or not self.sessions_with_bookings:
            return None
        return (
            f"{self.sessions_with_bookings} of {self.will_delete} sessions have bookings; "
            "replacing the schedule deletes those bookings."
        )

    @property
    def summary(self) -> str:
        counts = self.counts
        if self.mode is ImportMode.REPLACE:
            return (
                f"Replace: deleting {counts.deleted} existing sessions "
                f"({self.sessions_with_bookings} with bookings) "
                f"and creating {counts.created} new sessions."
            )
        return (
            f"Smart merge: updated {counts.updated}, "
            f"applied {counts.suggested_applied} suggested matches, "
            f"created {counts.created}, kept {counts.kept} existing sessions, "
            f"deleted {counts.deleted}."
        )

    def steps_for(self, *actions: PlanAction) -> tuple[PlanStep, ...]:
        return tuple(step for step in self.steps if step.action in actions)
