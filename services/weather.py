# services/weather.py
import logging
import math

import requests

from config import Settings
from models import Coordinate, Fallback, Ok, ProviderResult, WeatherSnapshot
from .simulation import simulated_weather

logger = logging.getLogger(__name__)

OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def fetch_weather(coord: Coordinate, settings: Settings, session=None) -> ProviderResult:
    """
    Current weather from OpenWeatherMap.
    Returns Ok(WeatherSnapshot), or Fallback(simulated snapshot, reason) when no
    key is configured or the request fails. Never raises.
    """
    if not settings.has_weather_key:
        logger.warning("No OpenWeatherMap API key found. Using deterministic simulation.")
        return Fallback(simulated_weather(coord), "missing_key")

    logger.debug("Weather key present (starts with %s...)", settings.weather_api_key[:4])
    http = session or requests
    params = {
        "lat": coord.lat,
        "lon": coord.lng,
        "units": "metric",
        "appid": settings.weather_api_key,
        "lang": settings.language,
    }

    try:
        r = http.get(OPENWEATHER_URL, params=params, timeout=settings.timeout)
        if not r.ok:
            logger.warning("Weather API error %s: reverting to simulation.", r.status_code)
            return Fallback(simulated_weather(coord), f"http_{r.status_code}")

        data = r.json() or {}
        main = data["main"]
        snapshot = WeatherSnapshot(
            humidity=int(main["humidity"]),
            temperature=_round_half_up(main["temp"]),
            wind_speed=_round_half_up(data["wind"]["speed"] * 3.6),  # m/s -> km/h
            is_simulated=False,
        )
        logger.info("Fetched live weather for %s,%s", coord.lat, coord.lng)
        return Ok(snapshot)

    except requests.exceptions.RequestException as e:
        logger.error("Error fetching weather: %s", e)
        return Fallback(simulated_weather(coord), f"weather_api_error: {e}")
    except (ValueError, KeyError, TypeError) as e:
        logger.error("Unexpected weather payload: %s", e)
        return Fallback(simulated_weather(coord), f"weather_payload_invalid: {e}")
