# services/simulation.py
import math
from typing import List, Tuple

from models import Coordinate, WeatherSnapshot

# Fixed per-quantity seed offsets; changing one changes every simulated value
# of that quantity for every coordinate.
VEGETATION_START = (1, 60, 90)
VEGETATION_DECREMENTS = (
    (2, 0, 5),
    (3, 2, 8),
    (4, 5, 12),
    (5, 8, 20),
)
HUMIDITY = (10, 50, 90)
TEMPERATURE = (20, 15, 35)
WIND = (30, 5, 30)


def pseudo_random(x: float) -> float:
    """Fractional part of sin(x) * 10000, in [0, 1)."""
    v = math.sin(x) * 10000
    return v - math.floor(v)


def seed_for(coord: Coordinate) -> float:
    return coord.lat * 1000 + coord.lng


def rand_in_range(seed: float, offset: int, lo: int, hi: int) -> int:
    r = pseudo_random(seed + offset)
    return int(math.floor(r * (hi - lo + 1))) + lo


def simulate(coord: Coordinate) -> Tuple[List[int], WeatherSnapshot]:
    """
    Reproducible vegetation trend (2020-2024) and fallback weather for a point.
    Pure: the same coordinate always yields the same values.
    """
    seed = seed_for(coord)

    year = rand_in_range(seed, *VEGETATION_START)
    trend = [year]
    for offset, lo, hi in VEGETATION_DECREMENTS:
        year -= rand_in_range(seed, offset, lo, hi)
        trend.append(year)

    weather = WeatherSnapshot(
        humidity=rand_in_range(seed, *HUMIDITY),
        temperature=rand_in_range(seed, *TEMPERATURE),
        wind_speed=rand_in_range(seed, *WIND),
        is_simulated=True,
    )
    return trend, weather


def simulated_weather(coord: Coordinate) -> WeatherSnapshot:
    return simulate(coord)[1]
