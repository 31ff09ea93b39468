"""
FasalPlanner - Current weather lookup (OpenWeatherMap).
Province names are mapped to their main city before the lookup. Any failure
raises WeatherError; there is no retry.
"""
import logging
from typing import Any, Dict, Optional

import requests
from pydantic import BaseModel

import config

logger = logging.getLogger(__name__)

PROVINCE_TO_CITY: Dict[str, str] = {
    "KPK": "Peshawar",
    "Khyber Pakhtunkhwa": "Peshawar",
    "Punjab": "Lahore",
    "Sindh": "Karachi",
    "Balochistan": "Quetta",
    "Gilgit-Baltistan": "Gilgit",
    "Azad Kashmir": "Muzaffarabad",
    "Islamabad": "Islamabad",
}


class WeatherError(Exception):
    """Weather data could not be fetched."""


class WeatherData(BaseModel):
    city_name: str
    temperature: float
    feels_like: Optional[float] = None
    humidity: float
    condition: str = "Unknown"
    description: str = "unknown"
    icon_code: str = ""
    wind_speed: float = 0.0
    pressure: Optional[int] = None


def weather_city(location: str) -> str:
    """Province name -> city for the lookup; anything else is taken as a city."""
    return PROVINCE_TO_CITY.get(location, location)


def parse_weather(data: Dict[str, Any]) -> WeatherData:
    main = data.get("main") or {}
    weather = (data.get("weather") or [{}])[0]
    if main.get("temp") is None or main.get("humidity") is None:
        raise WeatherError("Weather response is missing temperature or humidity")
    return WeatherData(
        city_name=data.get("name") or "Unknown",
        temperature=main["temp"],
        feels_like=main.get("feels_like"),
        humidity=main["humidity"],
        condition=weather.get("main") or "Unknown",
        description=weather.get("description") or "unknown",
        icon_code=weather.get("icon") or "",
        wind_speed=(data.get("wind") or {}).get("speed") or 0.0,
        pressure=main.get("pressure"),
    )


def _fetch(params: Dict[str, Any], label: str) -> WeatherData:
    if not config.WEATHER_API_KEY:
        raise WeatherError("Weather API key not configured")
    params = dict(params, appid=config.WEATHER_API_KEY, units="metric")
    try:
        response = requests.get(config.WEATHER_BASE_URL, params=params, timeout=config.WEATHER_TIMEOUT_SECONDS)
    except requests.exceptions.Timeout:
        raise WeatherError("Connection timeout. Please check your internet.")
    except requests.exceptions.RequestException as e:
        logger.error("Weather API error for %s: %s", label, e)
        raise WeatherError(f"Failed to fetch weather: {e}")

    if response.status_code == 200:
        try:
            return parse_weather(response.json())
        except (ValueError, TypeError, AttributeError) as e:
            # ValidationError is a ValueError
            logger.error("Malformed weather response for %s: %s", label, e)
            raise WeatherError("Received malformed weather data")
    if response.status_code == 401:
        raise WeatherError("Invalid weather API key")
    if response.status_code == 404:
        raise WeatherError(f'City "{label}" not found')
    try:
        message = response.json().get("message")
    except ValueError:
        message = None
    raise WeatherError(message or f"Failed to fetch weather data (HTTP {response.status_code})")


def fetch_current_weather(location: str) -> WeatherData:
    """Current weather for a region or city name (Pakistan)."""
    city = weather_city(location)
    return _fetch({"q": f"{city},PK"}, location)


def fetch_weather_by_coords(lat: float, lon: float) -> WeatherData:
    return _fetch({"lat": lat, "lon": lon}, f"{lat},{lon}")
