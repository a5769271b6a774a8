# services/geocode.py
import logging

import requests

from config import Settings
from models import Coordinate, Fallback, Ok, ProviderResult

logger = logging.getLogger(__name__)

OPENWEATHER_GEO_URL = "https://api.openweathermap.org/geo/1.0/reverse"

UNKNOWN_LOCATION = "Unknown location"
UNKNOWN_LOCATION_NO_KEY = "Unknown location (missing API key)"


def is_unknown_location(name: str) -> bool:
    return name.startswith(UNKNOWN_LOCATION)


def resolve_name(coord: Coordinate, settings: Settings, session=None) -> ProviderResult:
    """
    Reverse-geocode a point with the OpenWeatherMap Geo API.
    Returns Ok("name, state, country") or Fallback(unknown sentinel, reason).
    """
    if not settings.has_weather_key:
        return Fallback(UNKNOWN_LOCATION_NO_KEY, "missing_key")

    http = session or requests
    params = {
        "lat": coord.lat,
        "lon": coord.lng,
        "limit": 1,
        "appid": settings.weather_api_key,
    }

    try:
        r = http.get(OPENWEATHER_GEO_URL, params=params, timeout=settings.timeout)
        if not r.ok:
            logger.warning("Geocoding API error %s", r.status_code)
            return Fallback(UNKNOWN_LOCATION, f"http_{r.status_code}")

        results = r.json() or []
        if not results:
            return Fallback(UNKNOWN_LOCATION, "no_results")

        place = results[0]
        # Local name, then state/province, then country code
        parts = [place.get(k) for k in ("name", "state", "country")]
        name = ", ".join(p for p in parts if p)
        if not name:
            return Fallback(UNKNOWN_LOCATION, "unnamed_result")
        return Ok(name)

    except requests.exceptions.RequestException as e:
        logger.error("Geocoding error: %s", e)
        return Fallback(UNKNOWN_LOCATION, f"geocode_request_failed: {e}")
    except (ValueError, KeyError, AttributeError, TypeError) as e:
        logger.error("Unexpected geocoding payload: %s", e)
        return Fallback(UNKNOWN_LOCATION, f"geocode_failed: {e}")
