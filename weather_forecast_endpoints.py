"""
Weather forecast endpoints

Random weather forecast generator exposed through the versioned route group:
- GET weatherforecast (v1): five-day forecast
- GET weatherforecast (v2): one-day forecast
- POST weatherforecast (every version): accepts a forecast
"""

import logging
import random
from datetime import date, timedelta
from typing import List, Optional

from fastapi import Request

from schemas import ForecastAcceptedResponse, WeatherForecast
from versioned_routing import VersionedRouteGroup, get_api_version

logger = logging.getLogger(__name__)

SUMMARIES = [
    "Freezing", "Bracing", "Chilly", "Cool", "Mild", "Warm", "Balmy", "Hot", "Sweltering", "Scorching"
]

MIN_TEMPERATURE_C = -20
MAX_TEMPERATURE_C = 55  # exclusive


def generate_forecast(days: int, rng: Optional[random.Random] = None,
                      start: Optional[date] = None) -> List[WeatherForecast]:
    """
    Generate a random forecast starting tomorrow.

    Args:
        days: Number of days to forecast
        rng: Random generator, the module-level one by default
        start: Reference date, today by default

    Returns:
        List[WeatherForecast]: one entry per day
    """
    rng = rng or random
    start = start or date.today()
    return [
        WeatherForecast(
            date=start + timedelta(days=index),
            temperature_c=rng.randrange(MIN_TEMPERATURE_C, MAX_TEMPERATURE_C),
            summary=rng.choice(SUMMARIES),
        )
        for index in range(1, days + 1)
    ]


def get_weather_forecast_v1(request: Request) -> List[WeatherForecast]:
    return generate_forecast(5)


def get_weather_forecast_v2(request: Request) -> List[WeatherForecast]:
    return generate_forecast(1)


async def post_weather_forecast(request: Request) -> ForecastAcceptedResponse:
    logger.info(f"Weather forecast accepted (API version {get_api_version(request)})")
    return ForecastAcceptedResponse(message="Weather forecast successfully.")


def map_weather_forecast_endpoints(group: VersionedRouteGroup) -> None:
    """Регистрация эндпоинтов прогноза погоды в группе маршрутов"""
    group.map(
        "weatherforecast", "GET", get_weather_forecast_v1, version=1,
        name="GetWeatherForecastV1",
        summary="Five-day weather forecast",
        tags=["WeatherForecast"],
        response_model=List[WeatherForecast],
    )
    group.map(
        "weatherforecast", "GET", get_weather_forecast_v2, version=2,
        name="GetWeatherForecastV2",
        summary="One-day weather forecast",
        tags=["WeatherForecast"],
        response_model=List[WeatherForecast],
    )
    group.map(
        "weatherforecast", "POST", post_weather_forecast,
        name="PostWeatherForecast",
        summary="Submit a weather forecast",
        tags=["WeatherForecast"],
        response_model=ForecastAcceptedResponse,
    )
