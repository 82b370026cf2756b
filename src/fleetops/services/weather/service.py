"""Current weather and short forecast for the dashboard's operating cities."""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Callable

from ...schemas.weather import CityWeather, CurrentWeather, DailyForecast, WeatherResponse
from .cache import TTLCache

# key -> (display name, latitude, longitude)
CITIES: dict[str, tuple[str, float, float]] = {
    "curitiba": ("Curitiba", -25.4284, -49.2733),
    "araucaria": ("Araucária", -25.5931, -49.4091),
}

WEATHER_CODES: dict[int, tuple[str, str]] = {
    0: ("Céu limpo", "☀️"),
    1: ("Principalmente limpo", "🌤️"),
    2: ("Parcialmente nublado", "⛅"),
    3: ("Nublado", "☁️"),
    45: ("Nevoeiro", "🌫️"),
    48: ("Nevoeiro com geada", "🌫️"),
    51: ("Chuvisco leve", "🌦️"),
    53: ("Chuvisco moderado", "🌦️"),
    55: ("Chuvisco intenso", "🌦️"),
    61: ("Chuva leve", "🌧️"),
    63: ("Chuva moderada", "🌧️"),
    65: ("Chuva forte", "🌧️"),
    71: ("Neve leve", "🌨️"),
    73: ("Neve moderada", "🌨️"),
    75: ("Neve forte", "🌨️"),
    77: ("Granizo", "🌨️"),
    80: ("Pancadas leves", "🌦️"),
    81: ("Pancadas moderadas", "🌦️"),
    82: ("Pancadas fortes", "⛈️"),
    85: ("Pancadas de neve leves", "🌨️"),
    86: ("Pancadas de neve fortes", "🌨️"),
    95: ("Tempestade", "⛈️"),
    96: ("Tempestade com granizo leve", "⛈️"),
    99: ("Tempestade com granizo forte", "⛈️"),
}
UNKNOWN_WEATHER = ("Desconhecido", "❓")

WEEKDAYS = ("Seg.", "Ter.", "Qua.", "Qui.", "Sex.", "Sáb.", "Dom.")

ForecastFetcher = Callable[[float, float], dict]


def describe_weather(code: int | None) -> tuple[str, str]:
    if code is None:
        return UNKNOWN_WEATHER
    return WEATHER_CODES.get(int(code), UNKNOWN_WEATHER)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _day_label(index: int, day: str) -> str:
    if index == 0:
        return "Hoje"
    return WEEKDAYS[date.fromisoformat(day).weekday()]


def parse_city_weather(name: str, data: dict) -> CityWeather:
    current = data["current"]
    description, icon = describe_weather(current.get("weather_code"))
    daily = data["daily"]

    forecast = []
    for index, day in enumerate(daily.get("time", [])):
        day_description, day_icon = describe_weather(daily["weather_code"][index])
        forecast.append(
            DailyForecast(
                day=_day_label(index, day),
                date=day,
                max_temp=_round_half_up(daily["temperature_2m_max"][index]),
                min_temp=_round_half_up(daily["temperature_2m_min"][index]),
                description=day_description,
                icon=day_icon,
            )
        )
    return CityWeather(
        city=name,
        current=CurrentWeather(
            temperature=_round_half_up(current["temperature_2m"]),
            description=description,
            icon=icon,
        ),
        forecast=forecast,
    )


class WeatherService:
    """Serve the weather panel from ``cache`` and refill it through ``fetcher`` once stale."""

    def __init__(self, fetcher: ForecastFetcher, cache: TTLCache[WeatherResponse]) -> None:
        self.fetcher = fetcher
        self.cache = cache

    def get_weather(self) -> WeatherResponse:
        cached = self.cache.get()
        if cached is not None:
            return cached

        cities = {
            key: parse_city_weather(name, self.fetcher(latitude, longitude))
            for key, (name, latitude, longitude) in CITIES.items()
        }
        result = WeatherResponse(last_updated=datetime.now(timezone.utc), **cities)
        self.cache.set(result)
        return result
