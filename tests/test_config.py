"""Tests for Settings and StorageConfig."""

import pytest
from pydantic import ValidationError

from feed_store import Settings, StorageConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for field in Settings.model_fields:
        monkeypatch.delenv(f"FEED_STORE_{field.upper()}", raising=False)


def test_defaults():
    settings = Settings()
    assert settings.db_path == ""
    assert settings.server_url == "http://localhost:8787"
    assert settings.api_secret == ""
    assert settings.poll_interval_ms == 1000
    assert settings.queue_name == "DP1_WRITE_QUEUE"
    assert settings.log_level == "info"


def test_env_overrides_constructor(monkeypatch):
    monkeypatch.setenv("FEED_STORE_DB_PATH", "/srv/feed.db")
    monkeypatch.setenv("FEED_STORE_POLL_INTERVAL_MS", "250")
    settings = Settings(db_path="./local.db")
    assert settings.db_path == "/srv/feed.db"
    assert settings.poll_interval_ms == 250


def test_poll_interval_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(poll_interval_ms=0)


def test_storage_config():
    config = Settings(db_path=":memory:").storage_config()
    assert config == StorageConfig(db_path=":memory:")
    assert config.in_memory
    assert not StorageConfig(db_path="./data/feed.db").in_memory
