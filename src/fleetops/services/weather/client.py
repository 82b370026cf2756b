"""HTTP client for the Open-Meteo forecast API."""

from __future__ import annotations

import logging

import httpx

from ...config import settings

logger = logging.getLogger(__name__)

CURRENT_FIELDS = "temperature_2m,weather_code"
DAILY_FIELDS = "weather_code,temperature_2m_max,temperature_2m_min"


class WeatherUnavailableError(RuntimeError):
    """The forecast provider could not be reached or answered with an error."""


class OpenMeteoClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
        timezone: str = "America/Sao_Paulo",
        forecast_days: int = 4,
    ) -> None:
        self.base_url = base_url or settings.weather_api_url
        self.timeout = timeout if timeout is not None else settings.weather_timeout_seconds
        self.timezone = timezone
        self.forecast_days = forecast_days
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(timeout=httpx.Timeout(self.timeout, connect=5.0), transport=self._transport)

    def forecast(self, latitude: float, longitude: float) -> dict:
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "current": CURRENT_FIELDS,
            "daily": DAILY_FIELDS,
            "timezone": self.timezone,
            "forecast_days": self.forecast_days,
        }
        with self._get_client() as client:
            try:
                response = client.get(self.base_url, params=params)
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPError as exc:
                logger.error(f"Open-Meteo request failed for ({latitude}, {longitude}): {exc}")
                raise WeatherUnavailableError(f"Failed to fetch weather for ({latitude}, {longitude})") from exc

        if "current" not in data or "daily" not in data:
            raise WeatherUnavailableError("Open-Meteo response missing current/daily data.")
        return data
