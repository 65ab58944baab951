"""Port definitions for the domain layer."""

from __future__ import annotations

from .persistence import FestivalRepository, Repository, ScheduleExecutor, SessionRepository
from .unit_of_work import (
    RepositoryCollection,
    ScheduleRepositories,
    ScheduleUnitOfWork,
    UnitOfWork,
)

__all__ = [
    "FestivalRepository",
    "Repository",
    "RepositoryCollection",
    "ScheduleExecutor",
    "ScheduleRepositories",
    "ScheduleUnitOfWork",
    "SessionRepository",
    "UnitOfWork",
]
