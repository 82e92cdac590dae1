"""Repository for the forecast snapshot.

Writes here do not commit: the caller owns the transaction so that a delete
and the following bulk insert land as one unit.
"""

import sqlite3
from collections.abc import Iterable

from forecaster.models.forecast import Forecast


def delete_all_forecasts(conn: sqlite3.Connection) -> int:
    """Delete every stored forecast. Returns the number of rows removed."""
    cursor = conn.execute("DELETE FROM forecasts")
    return cursor.rowcount


def save_forecasts(conn: sqlite3.Connection, forecasts: Iterable[Forecast]) -> int:
    """Bulk insert forecasts. Returns the number of rows inserted.

    Rows whose city is no longer in the catalog are skipped.
    """
    rows = [
        (f.city_id, f.forecast_date.isoformat(), f.temp_max, f.weather_main, f.city_id)
        for f in forecasts
    ]
    if not rows:
        return 0
    cursor = conn.executemany(
        "INSERT INTO forecasts (city_id, forecast_date, temp_max, weather_main) "
        "SELECT ?, ?, ?, ? WHERE EXISTS (SELECT 1 FROM cities WHERE id = ?)",
        rows,
    )
    return cursor.rowcount


def get_forecasts(conn: sqlite3.Connection, city_id: int | None = None) -> list[dict]:
    """Get stored forecasts joined with city names, optionally for one city."""
    query = (
        "SELECT f.city_id, c.name AS city_name, f.forecast_date, f.temp_max, "
        "f.weather_main FROM forecasts f JOIN cities c ON c.id = f.city_id"
    )
    params: tuple = ()
    if city_id is not None:
        query += " WHERE f.city_id = ?"
        params = (city_id,)
    query += " ORDER BY c.name, f.forecast_date"
    return [dict(r) for r in conn.execute(query, params).fetchall()]


def count_forecasts(conn: sqlite3.Connection) -> int:
    return conn.execute("SELECT COUNT(*) FROM forecasts").fetchone()[0]
