"""City catalog and daily forecast models."""

from dataclasses import dataclass
from datetime import date

from forecaster.models.common import CityId


@dataclass(frozen=True)
class City:
    id: CityId
    name: str
    lat: float
    lon: float


@dataclass(frozen=True)
class Forecast:
    city_id: CityId
    city_name: str
    forecast_date: date  # local calendar date of the provider timestamp
    temp_max: float  # degrees Celsius
    weather_main: str  # e.g. "Clear", "Rain"
