"""Output formatters for refresh summaries."""

import json

from forecaster.models.reporting import RefreshSummary


def format_summary_text(s: RefreshSummary) -> str:
    """Plain text summary for logging."""
    lines = [
        f"=== Refresh {s.status} | Run {s.run_id[:8]} ===",
        f"Cities: {s.cities_total} total, {s.cities_succeeded} ok, "
        f"{s.cities_failed} failed",
        f"Forecasts saved: {s.forecasts_saved}",
    ]
    for f in s.failures:
        lines.append(f"  {f.kind.value}: {f.city_name} (id {f.city_id}): {f.detail}")
    if s.error:
        lines.append(f"Error: {s.error}")
    lines.append(f"Duration: {s.duration_seconds:.1f}s")
    return "\n".join(lines)


def format_summary_json(s: RefreshSummary) -> str:
    """JSON summary for programmatic consumption."""
    data = {
        "run_id": s.run_id,
        "status": s.status,
        "cities_total": s.cities_total,
        "cities_succeeded": s.cities_succeeded,
        "cities_failed": s.cities_failed,
        "failure_counts": s.failure_counts(),
        "forecasts_saved": s.forecasts_saved,
        "failures": [
            {
                "city_id": f.city_id,
                "city_name": f.city_name,
                "kind": f.kind.value,
                "detail": f.detail,
            }
            for f in s.failures
        ],
        "duration_seconds": s.duration_seconds,
        "error": s.error,
    }
    return json.dumps(data, indent=2)
