"""OpenWeatherMap daily forecast client.

Performs exactly one GET per call. Retries are left to the next scheduled
refresh; parsing is left to forecast_parser.
"""

import logging
import re

import httpx

from forecaster.config.schema import ProviderConfig
from forecaster.models.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "forecaster/0.1.0"

_APPID_RE = re.compile(r"(appid=)[^&]*")


def redact(url: str) -> str:
    """Mask the API key in a request URL for logging."""
    return _APPID_RE.sub(r"\1***", url)


class OpenWeatherClient:
    def __init__(
        self,
        config: ProviderConfig,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self.config = config
        self.user_agent = user_agent

    def build_url(self, lat: float, lon: float) -> str:
        """Build the request URL; coordinates are fixed to 5 decimal places."""
        c = self.config
        return (
            f"{c.url}?lat={lat:.5f}&lon={lon:.5f}"
            f"&cnt={c.days}&units={c.units}&appid={c.api_key}"
        )

    def get_daily_forecast(self, lat: float, lon: float) -> str:
        """Fetch the raw daily forecast body for a coordinate pair."""
        url = self.build_url(lat, lon)
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        try:
            resp = httpx.get(url, headers=headers, timeout=self.config.timeout_seconds)
        except httpx.HTTPError as e:
            raise TransportError(
                f"Request to {redact(url)} failed: {type(e).__name__}: {e}"
            ) from e

        if not resp.is_success:
            raise TransportError(
                f"{redact(url)} returned {resp.status_code}",
                status_code=resp.status_code,
            )
        logger.debug("Fetched %d bytes from %s", len(resp.content), redact(url))
        return resp.text
