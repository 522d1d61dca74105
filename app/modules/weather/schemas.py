from enum import Enum
from pydantic import BaseModel
from typing import Optional, List
from datetime import date


class WeatherCondition(str, Enum):
    SUNNY = "sunny"
    CLOUDY = "cloudy"
    RAINY = "rainy"
    STORMY = "stormy"
    SNOWY = "snowy"
    FOGGY = "foggy"
    PARTLY_CLOUDY = "partly_cloudy"


class Temperature(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None
    current: Optional[float] = None
    unit: str = "°C"


class Precipitation(BaseModel):
    probability: float = 0
    amount: Optional[float] = None
    unit: str = "mm"


class WeatherForecast(BaseModel):
    id: str
    date: str
    temperature: Temperature
    humidity: Optional[float] = None
    precipitation: Precipitation
    wind_speed: Optional[float] = None
    condition: WeatherCondition


class WeatherReport(BaseModel):
    current: WeatherForecast
    forecast: List[WeatherForecast]


class HistoricalWeather(BaseModel):
    date: date
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    precipitation: Optional[float] = None
