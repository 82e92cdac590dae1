"""Refresh pipeline: fetch every tracked city's forecast and replace the snapshot."""

import logging
import sqlite3
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor

from forecaster.config.loader import config_hash
from forecaster.config.schema import ForecasterConfig
from forecaster.ingest.forecast_parser import parse_daily_forecasts
from forecaster.ingest.openweather_client import OpenWeatherClient
from forecaster.models.errors import (
    MalformedResponse,
    RefreshInProgress,
    TransportError,
)
from forecaster.models.forecast import City, Forecast
from forecaster.models.reporting import CityFailure, FailureKind, RefreshSummary
from forecaster.reporting.formatters import format_summary_text
from forecaster.storage import run_repo
from forecaster.storage.database import open_database
from forecaster.storage.gateway import StorageGateway

logger = logging.getLogger(__name__)

# One refresh at a time per process, whoever triggers it.
_REFRESH_LOCK = threading.Lock()


class RefreshPipeline:
    def __init__(
        self,
        config: ForecasterConfig,
        db_path: str = "data/forecaster.db",
        client: OpenWeatherClient | None = None,
    ):
        self.config = config
        self.db_path = db_path
        self.client = client or OpenWeatherClient(config.provider)

    def refresh_all_forecasts(self) -> RefreshSummary:
        """Execute one refresh cycle.

        Per-city provider and parse failures are logged and skipped. Raises
        CommitFailure if the snapshot could not be stored, and
        RefreshInProgress if another cycle is still running. Any cycle-level
        error marks the run row failed before it propagates.
        """
        if not _REFRESH_LOCK.acquire(blocking=False):
            raise RefreshInProgress("A forecast refresh is already running")
        try:
            return self._run()
        finally:
            _REFRESH_LOCK.release()

    def _run(self) -> RefreshSummary:
        start_time = time.monotonic()
        summary = RefreshSummary(run_id=str(uuid.uuid4()))

        conn = open_database(self.db_path)
        try:
            gateway = StorageGateway(conn)
            run_repo.create_run(conn, summary.run_id, config_hash(self.config))

            try:
                # 1. SNAPSHOT CATALOG
                cities = gateway.list_cities()
                summary.cities_total = len(cities)
                logger.info("Refreshing forecasts for %d cities", len(cities))

                # 2. FETCH + PARSE
                forecasts: list[Forecast] = []
                for outcome in self._fetch_all(cities):
                    if isinstance(outcome, CityFailure):
                        summary.failures.append(outcome)
                    else:
                        summary.cities_succeeded += 1
                        forecasts.extend(outcome)

                # 3. COMMIT
                summary.forecasts_saved = gateway.replace_all_forecasts(forecasts)

                summary.status = "completed"
                summary.duration_seconds = time.monotonic() - start_time
                run_repo.complete_run(conn, summary)
                logger.info("\n%s", format_summary_text(summary))
                return summary

            except Exception as e:
                logger.exception("Refresh %s failed", summary.run_id)
                summary.status = "failed"
                summary.error = str(e)
                summary.duration_seconds = time.monotonic() - start_time
                self._record_failed_run(conn, summary)
                raise
        finally:
            conn.close()

    def _record_failed_run(self, conn: sqlite3.Connection, summary: RefreshSummary) -> None:
        if conn.in_transaction:
            conn.rollback()
        try:
            run_repo.complete_run(conn, summary)
        except sqlite3.Error:
            logger.exception("Could not record failed run %s", summary.run_id)

    def _fetch_all(self, cities: list[City]) -> list[list[Forecast] | CityFailure]:
        """Run per-city work on a bounded pool; results follow catalog order."""
        if not cities:
            return []
        workers = min(self.config.provider.max_workers, len(cities))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="refresh") as pool:
            return list(pool.map(self._refresh_city, cities))

    def _refresh_city(self, city: City) -> list[Forecast] | CityFailure:
        try:
            body = self.client.get_daily_forecast(city.lat, city.lon)
            forecasts = parse_daily_forecasts(body, city)
        except TransportError as e:
            logger.warning(
                "Failed to fetch forecast for city %s (id %d): %s",
                city.name, city.id, e,
            )
            return CityFailure(city.id, city.name, FailureKind.TRANSPORT, str(e))
        except MalformedResponse as e:
            logger.error(
                "Malformed forecast response for city %s (id %d): %s",
                city.name, city.id, e,
            )
            return CityFailure(city.id, city.name, FailureKind.MALFORMED, str(e))
        except Exception as e:
            logger.exception(
                "Unexpected error refreshing city %s (id %d)", city.name, city.id
            )
            return CityFailure(city.id, city.name, FailureKind.UNEXPECTED, repr(e))

        logger.debug("Parsed %d forecasts for %s", len(forecasts), city.name)
        return forecasts
