"""Repository for the tracked city catalog."""

import sqlite3

from forecaster.models.forecast import City


def list_cities(conn: sqlite3.Connection) -> list[City]:
    """Get every tracked city ordered by id."""
    rows = conn.execute(
        "SELECT id, name, lat, lon FROM cities ORDER BY id"
    ).fetchall()
    return [City(id=r["id"], name=r["name"], lat=r["lat"], lon=r["lon"]) for r in rows]


def get_city(conn: sqlite3.Connection, city_id: int) -> City | None:
    row = conn.execute(
        "SELECT id, name, lat, lon FROM cities WHERE id = ?", (city_id,)
    ).fetchone()
    if row is None:
        return None
    return City(id=row["id"], name=row["name"], lat=row["lat"], lon=row["lon"])


def add_city(conn: sqlite3.Connection, name: str, lat: float, lon: float) -> int:
    """Add a city to the catalog. Returns the row id."""
    cursor = conn.execute(
        "INSERT INTO cities (name, lat, lon) VALUES (?, ?, ?)",
        (name, lat, lon),
    )
    conn.commit()
    assert cursor.lastrowid is not None
    return cursor.lastrowid


def remove_city(conn: sqlite3.Connection, city_id: int) -> bool:
    """Remove a city (and, by cascade, its forecasts). Returns True if it existed."""
    cursor = conn.execute("DELETE FROM cities WHERE id = ?", (city_id,))
    conn.commit()
    return cursor.rowcount > 0

