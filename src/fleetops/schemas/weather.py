"""Weather panel response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class CurrentWeather(BaseModel):
    temperature: int
    description: str
    icon: str


class DailyForecast(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day: str
    date: str
    max_temp: int = Field(alias="maxTemp")
    min_temp: int = Field(alias="minTemp")
    description: str
    icon: str


class CityWeather(BaseModel):
    city: str
    current: CurrentWeather
    forecast: List[DailyForecast]


class WeatherResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    curitiba: CityWeather
    araucaria: CityWeather
    last_updated: datetime = Field(alias="lastUpdated")
