"""Parser for OpenWeatherMap daily forecast responses."""

import json
import math
from datetime import date, datetime
from typing import Any

from forecaster.models.errors import MalformedResponse
from forecaster.models.forecast import City, Forecast


def parse_daily_forecasts(body: str | bytes | dict, city: City) -> list[Forecast]:
    """Parse a daily forecast response into one Forecast per ``list`` entry.

    Entry order is preserved. The weather condition is taken from the first
    element of each entry's ``weather`` list. Any structural problem raises
    MalformedResponse for the whole response.
    """
    root = _decode(body)
    entries = root.get("list")
    if not isinstance(entries, list):
        raise MalformedResponse("Missing or non-list 'list' field")

    return [_parse_entry(entry, i, city) for i, entry in enumerate(entries)]


def _decode(body: str | bytes | dict) -> dict:
    if isinstance(body, dict):
        return body
    try:
        root = json.loads(body, parse_constant=_reject_constant)
    except (TypeError, ValueError) as e:
        raise MalformedResponse(f"Response is not valid JSON: {e}") from e
    if not isinstance(root, dict):
        raise MalformedResponse(
            f"Expected a JSON object, got {type(root).__name__}"
        )
    return root


def _reject_constant(token: str) -> Any:
    raise MalformedResponse(f"Non-finite number {token} in response")


def _parse_entry(entry: Any, index: int, city: City) -> Forecast:
    if not isinstance(entry, dict):
        raise MalformedResponse(f"list[{index}] is not an object")

    temp = entry.get("temp")
    if not isinstance(temp, dict):
        raise MalformedResponse(f"list[{index}].temp missing or not an object")

    weather = entry.get("weather")
    if not isinstance(weather, list) or not weather:
        raise MalformedResponse(f"list[{index}].weather missing or empty")
    first = weather[0]
    main = first.get("main") if isinstance(first, dict) else None
    if not isinstance(main, str):
        raise MalformedResponse(f"list[{index}].weather[0].main missing")

    return Forecast(
        city_id=city.id,
        city_name=city.name,
        forecast_date=_local_date(entry.get("dt"), index),
        temp_max=_number(temp.get("max"), f"list[{index}].temp.max"),
        weather_main=main,
    )


def _local_date(dt: Any, index: int) -> date:
    """Convert epoch seconds to a calendar date in the process's local time zone."""
    if isinstance(dt, bool) or not isinstance(dt, (int, float)):
        raise MalformedResponse(f"list[{index}].dt missing or not numeric")
    if isinstance(dt, float) and not dt.is_integer():
        raise MalformedResponse(f"list[{index}].dt is not whole seconds: {dt}")
    try:
        return datetime.fromtimestamp(int(dt)).date()
    except (OverflowError, OSError, ValueError) as e:
        raise MalformedResponse(f"list[{index}].dt out of range: {dt}") from e


def _number(value: Any, path: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedResponse(f"{path} missing or not numeric")
    try:
        number = float(value)
    except OverflowError as e:
        raise MalformedResponse(f"{path} out of range") from e
    if not math.isfinite(number):
        raise MalformedResponse(f"{path} is not finite: {value}")
    return number
