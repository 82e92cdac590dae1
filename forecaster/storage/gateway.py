"""Storage gateway: city catalog reads and atomic forecast snapshot writes."""

import logging
import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from forecaster.models.errors import CommitFailure
from forecaster.models.forecast import City, Forecast
from forecaster.storage import city_repo, forecast_repo

logger = logging.getLogger(__name__)


class StorageGateway:
    """Thin facade over the repositories for a single connection.

    delete_all_forecasts and save_forecasts do not commit on their own;
    wrap them in atomic() (or use replace_all_forecasts) so readers on other
    connections see either the previous snapshot or the new one.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def list_cities(self) -> list[City]:
        return city_repo.list_cities(self.conn)

    def get_city(self, city_id: int) -> City | None:
        return city_repo.get_city(self.conn, city_id)

    def add_city(self, name: str, lat: float, lon: float) -> int:
        return city_repo.add_city(self.conn, name, lat, lon)

    def remove_city(self, city_id: int) -> bool:
        return city_repo.remove_city(self.conn, city_id)

    def list_forecasts(self, city_id: int | None = None) -> list[dict]:
        return forecast_repo.get_forecasts(self.conn, city_id)

    def count_forecasts(self) -> int:
        return forecast_repo.count_forecasts(self.conn)

    def delete_all_forecasts(self) -> int:
        return forecast_repo.delete_all_forecasts(self.conn)

    def save_forecasts(self, forecasts: Sequence[Forecast]) -> int:
        return forecast_repo.save_forecasts(self.conn, forecasts)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Run the enclosed writes as one transaction, rolling back on error."""
        self.conn.execute("BEGIN IMMEDIATE")
        try:
            yield
        except BaseException:
            self.conn.rollback()
            raise
        else:
            self.conn.commit()

    def replace_all_forecasts(self, forecasts: Sequence[Forecast]) -> int:
        """Replace the stored snapshot with ``forecasts``. Returns rows inserted.

        Forecasts for cities removed from the catalog since they were fetched
        are dropped. Raises CommitFailure if any part of the delete+insert
        fails; in that case the previous snapshot is left untouched.
        """
        try:
            with self.atomic():
                removed = self.delete_all_forecasts()
                inserted = self.save_forecasts(forecasts)
        except sqlite3.Error as e:
            raise CommitFailure(f"Forecast snapshot commit failed: {e}") from e
        logger.info("Replaced %d stored forecasts with %d new", removed, inserted)
        if inserted < len(forecasts):
            logger.warning(
                "Skipped %d forecasts for cities no longer in the catalog",
                len(forecasts) - inserted,
            )
        return inserted
