"""Shared test fixtures."""

import json
import sqlite3
from pathlib import Path

import pytest
import yaml

from forecaster.config.schema import ForecasterConfig, ProviderConfig
from forecaster.storage.database import open_database

FIXTURE_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    return str(tmp_path / "test.db")


@pytest.fixture
def db(db_path: str) -> sqlite3.Connection:
    """Migrated temporary SQLite database."""
    conn = open_database(db_path)
    yield conn
    conn.close()


@pytest.fixture
def test_config() -> ForecasterConfig:
    """Config pointing at a fake provider with a fixed API key."""
    return ForecasterConfig(
        provider=ProviderConfig(
            url="https://test-owm.example.com/data/2.5/forecast/daily",
            api_key="test-key",
            days=16,
            max_workers=2,
        ),
    )


@pytest.fixture
def config_yaml_path(tmp_path: Path) -> Path:
    """Write a minimal valid config YAML and return its path."""
    data = {
        "provider": {"api_key": "yaml-key", "days": 7},
        "schedule": {"refresh_time": "03:30"},
    }
    path = tmp_path / "test_config.yaml"
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path


@pytest.fixture
def warsaw_response() -> dict:
    with open(FIXTURE_DIR / "openweather_daily_warsaw.json") as f:
        return json.load(f)
