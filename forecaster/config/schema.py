"""Pydantic v2 configuration schema with strict validation."""

import os

from pydantic import BaseModel, Field, field_validator

OPENWEATHER_DAILY_URL = "https://api.openweathermap.org/data/2.5/forecast/daily"


class CityConfig(BaseModel):
    model_config = {"extra": "forbid"}

    name: str
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)


class ProviderConfig(BaseModel):
    model_config = {"extra": "forbid"}

    url: str = OPENWEATHER_DAILY_URL
    api_key: str = Field(default_factory=lambda: os.environ.get("OPENWEATHER_API_KEY", ""))
    days: int = Field(default=16, ge=1, le=16)
    units: str = "metric"
    timeout_seconds: float = Field(default=10.0, gt=0.0)
    max_workers: int = Field(default=4, ge=1, le=32)


class ScheduleConfig(BaseModel):
    model_config = {"extra": "forbid"}

    refresh_time: str = "00:00"  # HH:MM, server local time

    @field_validator("refresh_time")
    @classmethod
    def _check_refresh_time(cls, v: str) -> str:
        hour, sep, minute = v.partition(":")
        if (
            not sep
            or not (hour.isdigit() and minute.isdigit())
            or not (0 <= int(hour) <= 23 and 0 <= int(minute) <= 59)
        ):
            raise ValueError(f"refresh_time must be HH:MM, got {v!r}")
        return f"{int(hour):02d}:{int(minute):02d}"

    @property
    def hour(self) -> int:
        return int(self.refresh_time.split(":")[0])

    @property
    def minute(self) -> int:
        return int(self.refresh_time.split(":")[1])


class ForecasterConfig(BaseModel):
    model_config = {"extra": "forbid"}

    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    schedule: ScheduleConfig = ScheduleConfig()
    cities: list[CityConfig] = []
