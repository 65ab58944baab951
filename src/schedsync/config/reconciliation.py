"""Tuning values for schedule reconciliation."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_int
from .errors import ConfigurationError

DEFAULT_SIMILARITY_THRESHOLD = 70
DEFAULT_MAX_SUGGESTIONS_PER_RECORD = 3


@dataclass(frozen=True, slots=True)
class ReconciliationConfig:
    similarity_threshold: int = DEFAULT_SIMILARITY_THRESHOLD
    max_suggestions_per_record: int = DEFAULT_MAX_SUGGESTIONS_PER_RECORD

    def __post_init__(self) -> None:
        if not 0 <= self.similarity_threshold <= 100:
            raise ConfigurationError("Similarity threshold must be between 0 and 100")
        if self.max_suggestions_per_record < 1:
            raise ConfigurationError("At least one suggestion per record must be allowed")


def get_reconciliation_config() -> ReconciliationConfig:
    return ReconciliationConfig(
        similarity_threshold=optional_env_int(
            "SCHEDSYNC_SIMILARITY_THRESHOLD", DEFAULT_SIMILARITY_THRESHOLD
        ),
        max_suggestions_per_record=optional_env_int(
            "SCHEDSYNC_MAX_SUGGESTIONS", DEFAULT_MAX_SUGGESTIONS_PER_RECORD
        ),
    )
