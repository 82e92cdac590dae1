"""Tests for the forecast store schema and connection settings."""

import sqlite3
from pathlib import Path

import pytest

from forecaster.storage.database import BUSY_TIMEOUT_MS, connect, open_database, run_migrations


def _columns(conn: sqlite3.Connection, table: str) -> dict[str, dict]:
    return {r["name"]: dict(r) for r in conn.execute(f"PRAGMA table_info({table})")}


class TestConnect:
    def test_pragmas(self, tmp_path: Path):
        conn = connect(tmp_path / "store.db")
        assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
        assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
        assert conn.execute("PRAGMA busy_timeout").fetchone()[0] == BUSY_TIMEOUT_MS
        conn.close()

    def test_creates_parent_dir(self, tmp_path: Path):
        conn = connect(tmp_path / "data" / "nested" / "store.db")
        assert (tmp_path / "data" / "nested").is_dir()
        conn.close()


class TestSchema:
    def test_cities_table(self, db: sqlite3.Connection):
        cols = _columns(db, "cities")
        assert {"id", "name", "lat", "lon"} <= cols.keys()
        assert cols["lat"]["type"] == "REAL"
        assert cols["name"]["notnull"] == 1

    def test_forecasts_table(self, db: sqlite3.Connection):
        cols = _columns(db, "forecasts")
        assert {"city_id", "forecast_date", "temp_max", "weather_main"} <= cols.keys()
        assert all(cols[c]["notnull"] == 1 for c in ("temp_max", "weather_main"))

        fks = [dict(r) for r in db.execute("PRAGMA foreign_key_list(forecasts)")]
        assert len(fks) == 1
        assert fks[0]["table"] == "cities"
        assert fks[0]["on_delete"] == "CASCADE"

    def test_forecast_date_index(self, db: sqlite3.Connection):
        indexes = {r["name"] for r in db.execute("PRAGMA index_list(forecasts)")}
        assert "idx_forecasts_city_date" in indexes

    def test_refresh_runs_table(self, db: sqlite3.Connection):
        cols = _columns(db, "refresh_runs")
        assert {
            "run_id", "status", "cities_total", "cities_failed",
            "forecasts_saved", "error_message",
        } <= cols.keys()
        assert cols["status"]["dflt_value"] == "'running'"

    def test_city_names_unique(self, db: sqlite3.Connection):
        db.execute("INSERT INTO cities (name, lat, lon) VALUES ('Lodz', 51.76, 19.46)")
        with pytest.raises(sqlite3.IntegrityError):
            db.execute("INSERT INTO cities (name, lat, lon) VALUES ('Lodz', 0, 0)")


class TestMigrations:
    def test_open_database_applies_initial(self, tmp_path: Path):
        conn = open_database(tmp_path / "store.db")
        versions = [r[0] for r in conn.execute("SELECT version FROM schema_versions")]
        assert versions == ["v001_initial"]
        conn.close()

    def test_rerun_is_noop(self, db: sqlite3.Connection):
        assert run_migrations(db) == []
