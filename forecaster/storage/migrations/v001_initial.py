"""Initial schema: city catalog, forecast snapshot and refresh run log."""

import sqlite3

DDL = [
    # Tracked cities
    """
    CREATE TABLE IF NOT EXISTS cities (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        lat REAL NOT NULL,
        lon REAL NOT NULL,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,

    # Current forecast snapshot, fully replaced on every refresh
    """
    CREATE TABLE IF NOT EXISTS forecasts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        city_id INTEGER NOT NULL REFERENCES cities(id) ON DELETE CASCADE,
        forecast_date TEXT NOT NULL,
        temp_max REAL NOT NULL,
        weather_main TEXT NOT NULL,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    (
        "CREATE INDEX IF NOT EXISTS idx_forecasts_city_date "
        "ON forecasts(city_id, forecast_date)"
    ),

    # Refresh cycle log
    """
    CREATE TABLE IF NOT EXISTS refresh_runs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        run_id TEXT UNIQUE NOT NULL,
        config_hash TEXT,
        started_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        completed_at TEXT,
        status TEXT NOT NULL DEFAULT 'running',
        cities_total INTEGER NOT NULL DEFAULT 0,
        cities_succeeded INTEGER NOT NULL DEFAULT 0,
        cities_failed INTEGER NOT NULL DEFAULT 0,
        forecasts_saved INTEGER NOT NULL DEFAULT 0,
        summary_json TEXT,
        error_message TEXT
    )
    """,
]


def up(conn: sqlite3.Connection) -> None:
    for stmt in DDL:
        conn.execute(stmt)
    conn.commit()
