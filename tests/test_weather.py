from datetime import date

import httpx
import pytest

from app.main import app
from app.modules.weather.client import WeatherClient, WeatherServiceError, map_weather_code
from app.modules.weather.routes import get_weather_client
from app.modules.weather.schemas import WeatherCondition

FORECAST_PAYLOAD = {
    "current": {
        "time": "2024-06-03T09:00",
        "temperature_2m": 24.3,
        "relative_humidity_2m": 51,
        "is_day": 1,
        "precipitation": 0.0,
        "weather_code": 2,
        "wind_speed_10m": 12.5,
    },
    "daily": {
        "time": ["2024-06-03", "2024-06-04", "2024-06-05"],
        "weather_code": [2, 61, 95],
        "temperature_2m_max": [28.1, 25.0, 22.4],
        "temperature_2m_min": [17.2, 16.0, 15.1],
        "precipitation_sum": [0.0, 4.2, 11.0],
        "precipitation_probability_max": [10, 70, 90],
        "wind_speed_10m_max": [15.0, 20.1, 35.7],
    },
}

ARCHIVE_PAYLOAD = {
    "daily": {
        "time": ["2024-05-01", "2024-05-02"],
        "temperature_2m_mean": [19.5, 20.1],
        "relative_humidity_2m_mean": [60, 58],
        "precipitation_sum": [0.0, 1.2],
    }
}


def _client(handler):
    return WeatherClient(
        base_url="https://weather.test/v1",
        archive_url="https://archive.test/v1",
        timezone="UTC",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.parametrize("code, is_day, expected", [
    (0, True, WeatherCondition.SUNNY),
    (2, True, WeatherCondition.PARTLY_CLOUDY),
    (48, True, WeatherCondition.FOGGY),
    (53, True, WeatherCondition.RAINY),
    (86, True, WeatherCondition.SNOWY),
    (99, True, WeatherCondition.STORMY),
    (None, True, WeatherCondition.SUNNY),
    (7, False, WeatherCondition.CLOUDY),
])
def test_map_weather_code(code, is_day, expected):
    assert map_weather_code(code, is_day) == expected


def test_forecast_splits_current_and_following_days():
    seen = {}

    def handler(request):
        seen["url"] = request.url
        return httpx.Response(200, json=FORECAST_PAYLOAD)

    report = _client(handler).get_forecast(36.8, 10.18, days=3)

    assert seen["url"].path == "/v1/forecast"
    assert seen["url"].params["forecast_days"] == "3"
    assert seen["url"].params["timezone"] == "UTC"
    assert report.current.id == "current"
    assert report.current.temperature.current == 24.3
    assert report.current.temperature.max == 28.1
    assert report.current.condition == WeatherCondition.PARTLY_CLOUDY
    assert [f.id for f in report.forecast] == ["forecast-0", "forecast-1"]
    assert report.forecast[0].condition == WeatherCondition.RAINY
    assert report.forecast[1].precipitation.probability == 90
    assert report.forecast[1].wind_speed == 35.7


def test_history_reads_daily_means():
    def handler(request):
        assert request.url.host == "archive.test"
        assert request.url.params["start_date"] == "2024-05-01"
        return httpx.Response(200, json=ARCHIVE_PAYLOAD)

    history = _client(handler).get_history(36.8, 10.18, date(2024, 5, 1), date(2024, 5, 2))
    assert [h.date for h in history] == [date(2024, 5, 1), date(2024, 5, 2)]
    assert history[1].precipitation == 1.2


def test_upstream_error_is_wrapped():
    with pytest.raises(WeatherServiceError):
        _client(lambda request: httpx.Response(503)).get_forecast(0, 0)


def test_malformed_payload_is_wrapped():
    with pytest.raises(WeatherServiceError):
        _client(lambda request: httpx.Response(200, json={"current": {}})).get_forecast(0, 0)


def test_timeout_is_wrapped():
    def handler(request):
        raise httpx.ConnectTimeout("too slow", request=request)

    with pytest.raises(WeatherServiceError, match="timed out"):
        _client(handler).get_history(0, 0, date(2024, 5, 1), date(2024, 5, 2))


class TestWeatherRoutes:
    def test_forecast(self, client, subscribed_farmer):
        app.dependency_overrides[get_weather_client] = lambda: _client(
            lambda request: httpx.Response(200, json=FORECAST_PAYLOAD)
        )
        response = client.get("/api/v1/weather/forecast", params={"latitude": 36.8, "longitude": 10.18})
        assert response.status_code == 200
        assert response.json()["current"]["condition"] == "partly_cloudy"

    def test_upstream_failure_is_bad_gateway(self, client, subscribed_farmer):
        app.dependency_overrides[get_weather_client] = lambda: _client(lambda request: httpx.Response(500))
        response = client.get("/api/v1/weather/forecast", params={"latitude": 36.8, "longitude": 10.18})
        assert response.status_code == 502
        assert response.json()["detail"] == "Failed to fetch weather data"

    def test_inverted_history_range(self, client, subscribed_farmer):
        response = client.get("/api/v1/weather/history", params={
            "latitude": 36.8, "longitude": 10.18, "start_date": "2024-05-02", "end_date": "2024-05-01"
        })
        assert response.status_code == 422

    def test_latitude_is_bounded(self, client, subscribed_farmer):
        response = client.get("/api/v1/weather/forecast", params={"latitude": 95, "longitude": 0})
        assert response.status_code == 422
