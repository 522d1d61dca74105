from fastapi import APIRouter, Depends, HTTPException, Query
from app.modules.weather.client import WeatherClient, WeatherServiceError
from app.modules.weather.schemas import WeatherReport, HistoricalWeather
from app.core.dependencies import require_active_subscription, require_feature
from datetime import date
from typing import List

router = APIRouter(
    prefix="/weather",
    tags=["weather"],
    dependencies=[Depends(require_active_subscription), Depends(require_feature("weather"))],
)

UPSTREAM_FAILURE = "Failed to fetch weather data"


def get_weather_client() -> WeatherClient:
    return WeatherClient()


@router.get("/forecast", response_model=WeatherReport)
async def get_forecast(
    latitude: float = Query(ge=-90, le=90),
    longitude: float = Query(ge=-180, le=180),
    client: WeatherClient = Depends(get_weather_client)
):
    try:
        return client.get_forecast(latitude, longitude)
    except WeatherServiceError:
        raise HTTPException(status_code=502, detail=UPSTREAM_FAILURE)


@router.get("/history", response_model=List[HistoricalWeather])
async def get_history(
    start_date: date,
    end_date: date,
    latitude: float = Query(ge=-90, le=90),
    longitude: float = Query(ge=-180, le=180),
    client: WeatherClient = Depends(get_weather_client)
):
    """Daily archive means between two dates (inclusive)"""
    if start_date > end_date:
        raise HTTPException(status_code=422, detail="start_date must not be after end_date")
    try:
        return client.get_history(latitude, longitude, start_date, end_date)
    except WeatherServiceError:
        raise HTTPException(status_code=502, detail=UPSTREAM_FAILURE)
