"""Refresh cycle reporting models."""

from dataclasses import dataclass, field
from enum import StrEnum

from forecaster.models.common import CityId, RunId


class FailureKind(StrEnum):
    TRANSPORT = "transport"
    MALFORMED = "malformed"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class CityFailure:
    city_id: CityId
    city_name: str
    kind: FailureKind
    detail: str


@dataclass
class RefreshSummary:
    run_id: RunId
    cities_total: int = 0
    cities_succeeded: int = 0
    forecasts_saved: int = 0
    failures: list[CityFailure] = field(default_factory=list)
    duration_seconds: float = 0.0
    status: str = "running"  # "running", "completed" or "failed"
    error: str = ""

    @property
    def cities_failed(self) -> int:
        return len(self.failures)

    def failure_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for f in self.failures:
            counts[f.kind.value] = counts.get(f.kind.value, 0) + 1
        return counts
