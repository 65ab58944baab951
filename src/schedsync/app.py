"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from schedsync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyScheduleUnitOfWork,
    is_started,
    startup,
)
from schedsync.config import get_reconciliation_config
from schedsync.domain.model import Festival
from schedsync.domain.ports.unit_of_work import ScheduleUnitOfWork
from schedsync.domain.reconciliation import (
    FestivalAccessDeniedError,
    FestivalNotFoundError,
    ImportMode,
    ReconciliationEngine,
    apply_plan,
    normalize_delimited,
    normalize_rows,
)
from schedsync.domain.reconciliation.export import export_delimited

if TYPE_CHECKING:
    from datetime import date
    from uuid import UUID

    from schedsync.domain.model import ExistingSession
    from schedsync.domain.reconciliation import (
        ApplyResult,
        Decision,
        MergePreview,
        NormalizationResult,
        Plan,
    )

UnitOfWorkFactory = Callable[[], ScheduleUnitOfWork]
Authorize = Callable[[Festival, str | None], bool]
type ScheduleSource = str | Sequence[Mapping[str, object]]


log = getLogger(__name__)


def owner_or_unowned(festival: Festival, caller: str | None) -> bool:
    """Allow unowned festivals, otherwise only their owner."""

    return festival.owner is None or festival.owner == caller


@dataclass(slots=True, frozen=True)
class ImportOutcome:
    plan: Plan
    result: ApplyResult


def _resolve_uow(unit_of_work_factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if unit_of_work_factory is not None:
        return unit_of_work_factory
    if not is_started():
        startup()
    return SqlAlchemyScheduleUnitOfWork


def _normalize(source: ScheduleSource, festival: Festival) -> NormalizationResult:
    if isinstance(source, str):
        return normalize_delimited(
            source,
            festival_start=festival.start_date,
            festival_end=festival.end_date,
        )
    return normalize_rows(
        source,
        festival_start=festival.start_date,
        festival_end=festival.end_date,
    )


def _load(
    uow_factory: UnitOfWorkFactory,
    festival_id: UUID,
    *,
    caller: str | None,
    authorize: Authorize,
) -> tuple[Festival, list[ExistingSession]]:
    with uow_factory() as uow:
        festival = uow.repositories.festivals.get(festival_id)
        if festival is None:
            raise FestivalNotFoundError(festival_id)
        if not authorize(festival, caller):
            raise FestivalAccessDeniedError(festival_id)
        existing = uow.repositories.sessions.find_existing(festival_id)
    return festival, existing


def create_festival(
    name: str,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
    owner: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Festival:
    uow_factory = _resolve_uow(unit_of_work_factory)
    festival = Festival(name=name, start_date=start_date, end_date=end_date, owner=owner)
    with uow_factory() as uow:
        uow.repositories.festivals.add(festival)
        uow.commit()
    log.info("Created festival %s (%s)", festival.name, festival.id)
    return festival


def preview_schedule_import(
    festival_id: UUID,
    source: ScheduleSource,
    *,
    mode: ImportMode = ImportMode.MERGE,
    caller: str | None = None,
    authorize: Authorize = owner_or_unowned,
    engine: ReconciliationEngine | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> MergePreview | Plan:
    """Dry-run an import: a ``MergePreview`` for merge, the replace ``Plan`` otherwise."""

    uow_factory = _resolve_uow(unit_of_work_factory)
    effective_engine = engine or ReconciliationEngine(get_reconciliation_config())
    festival, existing = _load(uow_factory, festival_id, caller=caller, authorize=authorize)
    normalized = _normalize(source, festival)
    if mode is ImportMode.REPLACE:
        return effective_engine.plan(festival_id, normalized, existing, mode=mode)
    return effective_engine.preview(normalized, existing)


def import_schedule(
    festival_id: UUID,
    source: ScheduleSource,
    *,
    mode: ImportMode = ImportMode.MERGE,
    decisions: Mapping[UUID, Decision] | None = None,
    caller: str | None = None,
    authorize: Authorize = owner_or_unowned,
    engine: ReconciliationEngine | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ImportOutcome:
    """Plan and apply an import into one festival."""

    uow_factory = _resolve_uow(unit_of_work_factory)
    effective_engine = engine or ReconciliationEngine(get_reconciliation_config())
    festival, existing = _load(uow_factory, festival_id, caller=caller, authorize=authorize)
    normalized = _normalize(source, festival)
    log.info(
        "Starting %s import into %s: %s incoming, %s existing",
        mode,
        festival.name,
        len(normalized.records),
        len(existing),
    )

    plan = effective_engine.plan(
        festival_id,
        normalized,
        existing,
        mode=mode,
        decisions=decisions,
    )
    result = apply_plan(plan, unit_of_work_factory=uow_factory)
    log.info("Finished import into %s: %s", festival.name, plan.summary)
    return ImportOutcome(plan=plan, result=result)


def export_schedule(
    festival_id: UUID,
    *,
    caller: str | None = None,
    authorize: Authorize = owner_or_unowned,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> str:
    uow_factory = _resolve_uow(unit_of_work_factory)
    _, existing = _load(uow_factory, festival_id, caller=caller, authorize=authorize)
    return export_delimited(existing)
