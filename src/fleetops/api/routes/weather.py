"""Weather panel endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...schemas.weather import WeatherResponse
from ...services.weather import WeatherService, get_weather_service
from .errors import http_error

router = APIRouter(tags=["weather"])


@router.get("/weather", response_model=WeatherResponse, status_code=status.HTTP_200_OK)
def weather(service: WeatherService = Depends(get_weather_service)) -> WeatherResponse:
    """Current conditions and a four-day forecast for Curitiba and Araucária."""
    try:
        return service.get_weather()
    except Exception as exc:
        raise http_error(exc, "fetch weather data") from exc
