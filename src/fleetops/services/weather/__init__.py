"""Weather panel services."""

from functools import lru_cache

from ...config import settings
from .cache import TTLCache
from .client import OpenMeteoClient, WeatherUnavailableError
from .service import WeatherService, describe_weather, parse_city_weather


@lru_cache()
def get_weather_service() -> WeatherService:
    """Process-wide service instance used by the API dependency."""
    return WeatherService(OpenMeteoClient().forecast, TTLCache(settings.weather_cache_seconds))


__all__ = [
    "OpenMeteoClient",
    "TTLCache",
    "WeatherService",
    "WeatherUnavailableError",
    "describe_weather",
    "get_weather_service",
    "parse_city_weather",
]
