from __future__ import annotations

import pytest

from schedsync.config import (
    ConfigurationError,
    ReconciliationConfig,
    get_database_config,
    get_reconciliation_config,
)


def test_reconciliation_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SCHEDSYNC_SIMILARITY_THRESHOLD", raising=False)
    monkeypatch.delenv("SCHEDSYNC_MAX_SUGGESTIONS", raising=False)

    config = get_reconciliation_config()

    assert config == ReconciliationConfig(similarity_threshold=70, max_suggestions_per_record=3)


def test_reconciliation_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SCHEDSYNC_SIMILARITY_THRESHOLD", " 85 ")
    monkeypatch.setenv("SCHEDSYNC_MAX_SUGGESTIONS", "1")

    config = get_reconciliation_config()

    assert config.similarity_threshold == 85
    assert config.max_suggestions_per_record == 1


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("SCHEDSYNC_SIMILARITY_THRESHOLD", "high"),
        ("SCHEDSYNC_SIMILARITY_THRESHOLD", "101"),
        ("SCHEDSYNC_MAX_SUGGESTIONS", "0"),
    ],
)
def test_invalid_reconciliation_values_raise(
    monkeypatch: pytest.MonkeyPatch,
    name: str,
    value: str,
) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        get_reconciliation_config()


def test_database_uri_prefers_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///custom.db")

    assert get_database_config().uri == "sqlite+pysqlite:///custom.db"
