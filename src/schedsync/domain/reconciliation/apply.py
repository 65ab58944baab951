"""Execute a reconciliation plan against persistence.

Responsibilities of this stage:
- run every step of one plan inside a single unit of work
- commit once, roll back on any failure
- stay idempotent: re-applying a plan must not duplicate sessions
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .contracts import ImportMode
from .errors import StalePlanError
from .match import creation_order
from .plan import PlanAction

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from schedsync.domain.model import ExistingSession
    from schedsync.domain.ports import ScheduleExecutor, ScheduleUnitOfWork

    from .plan import Plan, PlanStep

log = logging.getLogger(__name__)


_UPDATE_ACTIONS = frozenset({PlanAction.UPDATE, PlanAction.SUGGESTED_UPDATE})


@dataclass(slots=True)
class ApplyResult:
    """Summary of writes performed by the executor."""

    created: int = 0
    updated: int = 0
    deleted: int = 0
    kept: int = 0
    reused: int = 0


class _PlanRunner:
    def __init__(self, executor: ScheduleExecutor, plan: Plan) -> None:
        self.executor = executor
        self.plan = plan
        self.result = ApplyResult()
        self.by_id: dict[UUID, ExistingSession] = {}
        self.reusable: dict[str, list[ExistingSession]] = {}

    def load(self) -> None:
        """Snapshot the festival; sessions present now may absorb one create each."""

        existing = self.executor.find_existing(self.plan.festival_id)
        self.by_id = {session.id: session for session in existing}
        targeted = {step.target_id for step in self.plan.steps if step.action in _UPDATE_ACTIONS}
        self.reusable = {}
        for session in creation_order(existing):
            if session.id not in targeted:
                self.reusable.setdefault(session.composite_key, []).append(session)

    def run(self) -> ApplyResult:
        if self.plan.mode is ImportMode.REPLACE:
            self.result.deleted = self.executor.delete_all(self.plan.festival_id)
        self.load()
        for step in self.plan.steps:
            match step.action:
                case PlanAction.CREATE | PlanAction.SUGGESTED_CREATE:
                    self._create(step)
                case PlanAction.UPDATE | PlanAction.SUGGESTED_UPDATE:
                    self._update(step)
                case PlanAction.KEEP:
                    self.result.kept += 1
                case PlanAction.DELETE:
                    pass
        return self.result

    def _create(self, step: PlanStep) -> None:
        record = step.record
        if record is None:
            raise ValueError(f"{step.action} step without an incoming record")
        candidates = self.reusable.get(record.composite_key)
        if candidates:
            # Left over from an earlier apply of this plan.
            current = candidates.pop(0)
            log.debug("Reusing session %s for %r", current.id, record.composite_key)
            self.executor.update(current.id, record.field_values(include_identity=False))
            self.result.reused += 1
            return
        self.executor.create(self.plan.festival_id, record)
        self.result.created += 1

    def _update(self, step: PlanStep) -> None:
        if step.target_id is None:
            raise ValueError(f"{step.action} step without a target session")
        if step.target_id not in self.by_id:
            raise StalePlanError(step.target_id)
        self.executor.update(step.target_id, step.fields)
        self.result.updated += 1


def apply_plan(
    plan: Plan,
    *,
    unit_of_work_factory: Callable[[], ScheduleUnitOfWork],
) -> ApplyResult:
    """Apply ``plan`` atomically; any exception leaves the festival untouched."""

    with unit_of_work_factory() as uow:
        result = _PlanRunner(uow.repositories.sessions, plan).run()
        uow.commit()
    log.info(
        "Applied %s plan for festival %s: created %s, updated %s, deleted %s, kept %s, reused %s",
        plan.mode,
        plan.festival_id,
        result.created,
        result.updated,
        result.deleted,
        result.kept,
        result.reused,
    )
    return result
