"""Repository for refresh run tracking."""

import json
import sqlite3

from forecaster.models.reporting import RefreshSummary


def create_run(
    conn: sqlite3.Connection, run_id: str, config_hash: str | None = None
) -> None:
    """Record the start of a refresh cycle."""
    conn.execute(
        "INSERT INTO refresh_runs (run_id, config_hash) VALUES (?, ?)",
        (run_id, config_hash),
    )
    conn.commit()


def complete_run(conn: sqlite3.Connection, summary: RefreshSummary) -> None:
    """Record the outcome of a refresh cycle."""
    conn.execute(
        "UPDATE refresh_runs SET completed_at = CURRENT_TIMESTAMP, status = ?, "
        "cities_total = ?, cities_succeeded = ?, cities_failed = ?, "
        "forecasts_saved = ?, summary_json = ?, error_message = ? "
        "WHERE run_id = ?",
        (
            summary.status,
            summary.cities_total,
            summary.cities_succeeded,
            summary.cities_failed,
            summary.forecasts_saved,
            json.dumps({
                "failures": [
                    {
                        "city_id": f.city_id,
                        "city_name": f.city_name,
                        "kind": f.kind.value,
                        "detail": f.detail,
                    }
                    for f in summary.failures
                ],
                "duration_seconds": summary.duration_seconds,
            }),
            summary.error or None,
            summary.run_id,
        ),
    )
    conn.commit()


def get_run(conn: sqlite3.Connection, run_id: str) -> dict | None:
    row = conn.execute(
        "SELECT * FROM refresh_runs WHERE run_id = ?", (run_id,)
    ).fetchone()
    if row is None:
        return None
    return dict(row)


def get_latest_run(conn: sqlite3.Connection) -> dict | None:
    row = conn.execute(
        "SELECT * FROM refresh_runs ORDER BY id DESC LIMIT 1"
    ).fetchone()
    if row is None:
        return None
    return dict(row)
