"""
Open-Meteo client: current conditions, daily forecast and archive data.
No API key is needed; a failed or malformed upstream call raises WeatherServiceError.
"""

import logging
import httpx
from datetime import date
from typing import Any, Dict, List, Optional
from app.config import settings
from app.modules.weather.schemas import (
    WeatherCondition, WeatherForecast, WeatherReport, HistoricalWeather,
    Temperature, Precipitation
)

logger = logging.getLogger(__name__)

CURRENT_FIELDS = "temperature_2m,relative_humidity_2m,apparent_temperature,is_day,precipitation,weather_code,wind_speed_10m"
DAILY_FIELDS = "weather_code,temperature_2m_max,temperature_2m_min,precipitation_sum,precipitation_probability_max,wind_speed_10m_max"
ARCHIVE_FIELDS = "temperature_2m_mean,relative_humidity_2m_mean,precipitation_sum"

_CODE_CONDITIONS = {
    0: WeatherCondition.SUNNY,
    1: WeatherCondition.PARTLY_CLOUDY,
    2: WeatherCondition.PARTLY_CLOUDY,
    3: WeatherCondition.CLOUDY,
    45: WeatherCondition.FOGGY,
    48: WeatherCondition.FOGGY,
    # drizzle
    51: WeatherCondition.RAINY,
    53: WeatherCondition.RAINY,
    55: WeatherCondition.RAINY,
    61: WeatherCondition.RAINY,
    63: WeatherCondition.RAINY,
    65: WeatherCondition.RAINY,
    80: WeatherCondition.RAINY,
    81: WeatherCondition.RAINY,
    82: WeatherCondition.RAINY,
    71: WeatherCondition.SNOWY,
    73: WeatherCondition.SNOWY,
    75: WeatherCondition.SNOWY,
    85: WeatherCondition.SNOWY,
    86: WeatherCondition.SNOWY,
    95: WeatherCondition.STORMY,
    96: WeatherCondition.STORMY,
    99: WeatherCondition.STORMY,
}


class WeatherServiceError(Exception):
    pass


def map_weather_code(code: Optional[int], is_day: bool = True) -> WeatherCondition:
    """WMO weather code -> condition; unknown codes read as clear (day) or cloudy (night)"""
    if code in _CODE_CONDITIONS:
        return _CODE_CONDITIONS[code]
    return WeatherCondition.SUNNY if is_day else WeatherCondition.CLOUDY


def _at(values: Optional[List[Any]], index: int) -> Any:
    if not values or index >= len(values):
        return None
    return values[index]


class WeatherClient:
    def __init__(
        self,
        base_url: str = settings.open_meteo_base_url,
        archive_url: str = settings.open_meteo_archive_url,
        timezone: str = settings.weather_timezone,
        timeout: float = settings.http_timeout_seconds,
        transport: Optional[httpx.BaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.archive_url = archive_url.rstrip("/")
        self.timezone = timezone
        self.timeout = timeout
        self.transport = transport

    def _get(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                r = client.get(url, params=params)
                r.raise_for_status()
                return r.json()
        except httpx.TimeoutException as e:
            logger.warning(f"Open-Meteo request timed out: {url}")
            raise WeatherServiceError("Weather service timed out") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Open-Meteo request failed: {e}")
            raise WeatherServiceError(str(e)) from e

    def get_forecast(self, latitude: float, longitude: float, days: int = settings.weather_forecast_days) -> WeatherReport:
        """Current conditions plus the following days of the daily forecast"""
        data = self._get(f"{self.base_url}/forecast", {
            "latitude": latitude,
            "longitude": longitude,
            "current": CURRENT_FIELDS,
            "daily": DAILY_FIELDS,
            "timezone": self.timezone,
            "forecast_days": days,
        })
        try:
            current = data["current"]
            daily = data["daily"]
            report_current = WeatherForecast(
                id="current",
                date=current["time"],
                temperature=Temperature(
                    min=_at(daily.get("temperature_2m_min"), 0),
                    max=_at(daily.get("temperature_2m_max"), 0),
                    current=current.get("temperature_2m"),
                ),
                humidity=current.get("relative_humidity_2m"),
                precipitation=Precipitation(
                    probability=_at(daily.get("precipitation_probability_max"), 0) or 0,
                    amount=current.get("precipitation"),
                ),
                wind_speed=current.get("wind_speed_10m"),
                condition=map_weather_code(current.get("weather_code"), current.get("is_day") == 1),
            )

            forecast = []
            for index, day in enumerate(daily["time"][1:], start=1):
                forecast.append(WeatherForecast(
                    id=f"forecast-{index - 1}",
                    date=day,
                    temperature=Temperature(
                        min=_at(daily.get("temperature_2m_min"), index),
                        max=_at(daily.get("temperature_2m_max"), index),
                    ),
                    humidity=current.get("relative_humidity_2m"),
                    precipitation=Precipitation(
                        probability=_at(daily.get("precipitation_probability_max"), index) or 0,
                        amount=_at(daily.get("precipitation_sum"), index),
                    ),
                    wind_speed=_at(daily.get("wind_speed_10m_max"), index),
                    condition=map_weather_code(_at(daily.get("weather_code"), index)),
                ))
        except (KeyError, TypeError) as e:
            logger.error(f"Unexpected Open-Meteo forecast payload: {e}")
            raise WeatherServiceError("Unexpected weather payload") from e

        return WeatherReport(current=report_current, forecast=forecast)

    def get_history(self, latitude: float, longitude: float, start_date: date, end_date: date) -> List[HistoricalWeather]:
        data = self._get(f"{self.archive_url}/archive", {
            "latitude": latitude,
            "longitude": longitude,
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
            "daily": ARCHIVE_FIELDS,
            "timezone": self.timezone,
        })
        try:
            daily = data["daily"]
            return [
                HistoricalWeather(
                    date=day,
                    temperature=_at(daily.get("temperature_2m_mean"), index),
                    humidity=_at(daily.get("relative_humidity_2m_mean"), index),
                    precipitation=_at(daily.get("precipitation_sum"), index),
                )
                for index, day in enumerate(daily["time"])
            ]
        except (KeyError, TypeError) as e:
            logger.error(f"Unexpected Open-Meteo archive payload: {e}")
            raise WeatherServiceError("Unexpected weather payload") from e
