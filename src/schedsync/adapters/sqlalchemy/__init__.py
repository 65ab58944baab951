"""SQLAlchemy adapter package for schedsync."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import SqlAlchemyFestivalRepository, SqlAlchemySessionRepository
from .unit_of_work import (
    SqlAlchemyScheduleUnitOfWork,
    StartupError,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyFestivalRepository",
    "SqlAlchemyScheduleUnitOfWork",
    "SqlAlchemySessionRepository",
    "StartupError",
    "create_all_tables",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
