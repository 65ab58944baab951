"""Human-readable differences between an exact match and its stored session.

Used for previews only; the planner never branches on these strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from schedsync.domain.model import ExistingSession, SessionRecord


@dataclass(frozen=True, slots=True)
class ChangeSet:
    changes: tuple[str, ...] = ()

    @property
    def has_changes(self) -> bool:
        return bool(self.changes)


def _quoted(value: str | None) -> str:
    return f'"{value or "none"}"'


def _listed(values: Iterable[str]) -> str:
    return f"[{', '.join(values)}]"


def _text_change(label: str, old: str | None, new: str | None) -> str | None:
    if (old or "") == (new or ""):
        return None
    if not old:
        return f"{label} added"
    if not new:
        return f"{label} removed"
    return f"{label} changed"


def detect_changes(existing: ExistingSession, incoming: SessionRecord) -> ChangeSet:
    """List differing descriptive fields in a fixed order."""

    changes: list[str] = []
    if existing.end != incoming.end:
        changes.append(f"End time: {existing.end} → {incoming.end}")
    if (existing.level or "") != (incoming.level or ""):
        changes.append(f"Level: {_quoted(existing.level)} → {_quoted(incoming.level)}")
    if sorted(existing.teachers) != sorted(incoming.teachers):
        changes.append(f"Teachers: {_listed(existing.teachers)} → {_listed(incoming.teachers)}")
    if sorted(existing.styles) != sorted(incoming.styles):
        changes.append(f"Styles: {_listed(existing.styles)} → {_listed(incoming.styles)}")
    if (existing.location or "") != (incoming.location or ""):
        changes.append(f"Location: {_quoted(existing.location)} → {_quoted(incoming.location)}")
    if (existing.capacity or 0) != (incoming.capacity or 0):
        changes.append(f"Capacity: {existing.capacity or 0} → {incoming.capacity or 0}")
    for label, old, new in (
        ("Description", existing.description, incoming.description),
        ("Prerequisites", existing.prerequisites, incoming.prerequisites),
    ):
        change = _text_change(label, old, new)
        if change:
            changes.append(change)
    return ChangeSet(changes=tuple(changes))
