"""Tests for repositories and the storage gateway."""

import sqlite3
from datetime import date
from unittest.mock import patch

import pytest

from forecaster.models.errors import CommitFailure
from forecaster.models.forecast import Forecast
from forecaster.models.reporting import CityFailure, FailureKind, RefreshSummary
from forecaster.storage import city_repo, forecast_repo, run_repo
from forecaster.storage.database import connect
from forecaster.storage.gateway import StorageGateway


def _forecast(city_id: int, day: int, tmax: float = 10.0, main: str = "Clear") -> Forecast:
    return Forecast(
        city_id=city_id,
        city_name=f"city-{city_id}",
        forecast_date=date(2026, 10, day),
        temp_max=tmax,
        weather_main=main,
    )


class TestCityRepo:
    def test_add_and_list(self, db: sqlite3.Connection):
        a = city_repo.add_city(db, "Warsaw", 52.22977, 21.01178)
        b = city_repo.add_city(db, "Krakow", 50.06143, 19.93658)
        cities = city_repo.list_cities(db)
        assert [c.id for c in cities] == [a, b]
        assert cities[0].name == "Warsaw"
        assert cities[0].lat == pytest.approx(52.22977)

    def test_duplicate_name_rejected(self, db: sqlite3.Connection):
        city_repo.add_city(db, "Warsaw", 52.2, 21.0)
        with pytest.raises(sqlite3.IntegrityError):
            city_repo.add_city(db, "Warsaw", 52.2, 21.0)

    def test_get_and_remove(self, db: sqlite3.Connection):
        city_id = city_repo.add_city(db, "Gdansk", 54.35, 18.65)
        assert city_repo.get_city(db, city_id).name == "Gdansk"
        assert city_repo.remove_city(db, city_id) is True
        assert city_repo.get_city(db, city_id) is None
        assert city_repo.remove_city(db, city_id) is False

    def test_remove_cascades_forecasts(self, db: sqlite3.Connection):
        city_id = city_repo.add_city(db, "Gdansk", 54.35, 18.65)
        forecast_repo.save_forecasts(db, [_forecast(city_id, 1)])
        db.commit()
        city_repo.remove_city(db, city_id)
        assert forecast_repo.count_forecasts(db) == 0


class TestForecastRepo:
    def test_save_and_get(self, db: sqlite3.Connection):
        a = city_repo.add_city(db, "Warsaw", 52.2, 21.0)
        b = city_repo.add_city(db, "Krakow", 50.1, 19.9)
        saved = forecast_repo.save_forecasts(
            db, [_forecast(a, 2, 9.5, "Rain"), _forecast(a, 1), _forecast(b, 1)]
        )
        db.commit()
        assert saved == 3

        rows = forecast_repo.get_forecasts(db, a)
        assert [r["forecast_date"] for r in rows] == ["2026-10-01", "2026-10-02"]
        assert rows[1]["temp_max"] == 9.5
        assert rows[1]["weather_main"] == "Rain"
        assert rows[1]["city_name"] == "Warsaw"
        assert len(forecast_repo.get_forecasts(db)) == 3

    def test_delete_all(self, db: sqlite3.Connection):
        a = city_repo.add_city(db, "Warsaw", 52.2, 21.0)
        forecast_repo.save_forecasts(db, [_forecast(a, 1), _forecast(a, 2)])
        db.commit()
        forecast_repo.delete_all_forecasts(db)
        db.commit()
        assert forecast_repo.count_forecasts(db) == 0

    def test_writes_do_not_commit(self, db_path: str, db: sqlite3.Connection):
        a = city_repo.add_city(db, "Warsaw", 52.2, 21.0)
        forecast_repo.save_forecasts(db, [_forecast(a, 1)])

        other = connect(db_path)
        assert forecast_repo.count_forecasts(other) == 0
        other.close()
        db.rollback()


class TestRunRepo:
    def test_create_and_complete(self, db: sqlite3.Connection):
        run_repo.create_run(db, "run1", "hash1")
        run = run_repo.get_run(db, "run1")
        assert run is not None
        assert run["status"] == "running"
        assert run["config_hash"] == "hash1"

        summary = RefreshSummary(
            run_id="run1",
            cities_total=3,
            cities_succeeded=2,
            forecasts_saved=32,
            failures=[CityFailure(2, "Krakow", FailureKind.TRANSPORT, "503")],
            status="completed",
        )
        run_repo.complete_run(db, summary)
        run = run_repo.get_run(db, "run1")
        assert run["status"] == "completed"
        assert run["cities_failed"] == 1
        assert run["forecasts_saved"] == 32
        assert run["completed_at"] is not None
        assert run["error_message"] is None
        assert "Krakow" in run["summary_json"]

    def test_latest_run(self, db: sqlite3.Connection):
        assert run_repo.get_latest_run(db) is None
        run_repo.create_run(db, "run1")
        run_repo.create_run(db, "run2")
        assert run_repo.get_latest_run(db)["run_id"] == "run2"


class TestStorageGateway:
    def test_replace_all_forecasts(self, db: sqlite3.Connection):
        gateway = StorageGateway(db)
        a = gateway.add_city("Warsaw", 52.2, 21.0)
        gateway.replace_all_forecasts([_forecast(a, 1), _forecast(a, 2)])

        inserted = gateway.replace_all_forecasts([_forecast(a, 5, 3.0, "Snow")])
        assert inserted == 1
        rows = gateway.list_forecasts()
        assert len(rows) == 1
        assert rows[0]["forecast_date"] == "2026-10-05"
        assert rows[0]["weather_main"] == "Snow"

    def test_replace_with_empty_clears(self, db: sqlite3.Connection):
        gateway = StorageGateway(db)
        a = gateway.add_city("Warsaw", 52.2, 21.0)
        gateway.replace_all_forecasts([_forecast(a, 1)])
        assert gateway.replace_all_forecasts([]) == 0
        assert gateway.list_forecasts() == []

    def test_failed_insert_keeps_previous_snapshot(self, db: sqlite3.Connection):
        gateway = StorageGateway(db)
        a = gateway.add_city("Warsaw", 52.2, 21.0)
        gateway.replace_all_forecasts([_forecast(a, 1), _forecast(a, 2)])

        with patch(
            "forecaster.storage.forecast_repo.save_forecasts",
            side_effect=sqlite3.OperationalError("disk I/O error"),
        ), pytest.raises(CommitFailure):
            gateway.replace_all_forecasts([_forecast(a, 9)])

        rows = gateway.list_forecasts()
        assert [r["forecast_date"] for r in rows] == ["2026-10-01", "2026-10-02"]

    def test_removed_city_forecasts_skipped(self, db: sqlite3.Connection):
        gateway = StorageGateway(db)
        a = gateway.add_city("Warsaw", 52.2, 21.0)
        b = gateway.add_city("Krakow", 50.1, 19.9)
        gateway.replace_all_forecasts([_forecast(a, 1), _forecast(b, 1)])
        gateway.remove_city(b)

        inserted = gateway.replace_all_forecasts(
            [_forecast(a, 2), _forecast(b, 2), _forecast(999, 2)]
        )
        assert inserted == 1
        rows = gateway.list_forecasts()
        assert [(r["city_id"], r["forecast_date"]) for r in rows] == [(a, "2026-10-02")]

    def test_get_city_and_count(self, db: sqlite3.Connection):
        gateway = StorageGateway(db)
        a = gateway.add_city("Warsaw", 52.2, 21.0)
        assert gateway.get_city(a).name == "Warsaw"
        assert gateway.get_city(a + 1) is None
        gateway.replace_all_forecasts([_forecast(a, 1), _forecast(a, 2)])
        assert gateway.count_forecasts() == 2

    def test_reader_never_sees_empty_store(self, db_path: str, db: sqlite3.Connection):
        gateway = StorageGateway(db)
        a = gateway.add_city("Warsaw", 52.2, 21.0)
        gateway.replace_all_forecasts([_forecast(a, 1), _forecast(a, 2)])

        reader = connect(db_path)
        with gateway.atomic():
            gateway.delete_all_forecasts()
            # Mid-transaction a second connection still sees the old snapshot
            assert forecast_repo.count_forecasts(reader) == 2
            gateway.save_forecasts([_forecast(a, 3)])
        assert forecast_repo.count_forecasts(reader) == 1
        reader.close()
