"""Regional pollen risk map.

The same weather does not mean the same pollen load everywhere: each
city carries a fixed suitability coefficient for the dominant taxa, and
the raw weather-driven score is blended toward a low baseline in regions
where those taxa are scarce. Cities are scored independently; nothing is
interpolated between them.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Awaitable, Callable, Optional

from .errors import MapUnavailableError
from .risk_engine import (
    RiskLevel,
    WeatherSnapshot,
    clamp,
    estimate_snapshot_risk,
    risk_level,
    round_half_up,
)

logger = logging.getLogger(__name__)

BASELINE_SCORE = 14
MIN_EFFECTIVE_SUITABILITY = 0.15

PARTIAL_MAP_WARNING = "Some regions are unavailable; showing the rest."


@dataclass(frozen=True)
class MapCity:
    id: str
    name: str
    lat: float
    lon: float
    region: str
    suitability: float  # 0-1, fixed calibration constant


@dataclass(frozen=True)
class CityRiskPoint:
    city: MapCity
    score: int
    level: RiskLevel
    temperature: float
    humidity: float
    wind: float
    precipitation: float


@dataclass
class RiskMap:
    points: list[CityRiskPoint]
    failed: list[str]  # city ids that could not be fetched
    warning: Optional[str] = None


MAP_CITIES: list[MapCity] = [
    MapCity("sapporo", "Sapporo", 43.0618, 141.3545, "Hokkaido", 0.25),
    MapCity("sendai", "Sendai", 38.2682, 140.8694, "Tohoku", 0.8),
    MapCity("niigata", "Niigata", 37.9161, 139.0364, "Chubu", 0.7),
    MapCity("tokyo", "Tokyo", 35.6764, 139.65, "Kanto", 0.95),
    MapCity("nagoya", "Nagoya", 35.1815, 136.9066, "Chubu", 0.9),
    MapCity("kanazawa", "Kanazawa", 36.5613, 136.6562, "Hokuriku", 0.75),
    MapCity("osaka", "Osaka", 34.6937, 135.5023, "Kansai", 0.85),
    MapCity("hiroshima", "Hiroshima", 34.3853, 132.4553, "Chugoku", 0.8),
    MapCity("kochi", "Kochi", 33.5597, 133.5311, "Shikoku", 0.9),
    MapCity("fukuoka", "Fukuoka", 33.5902, 130.4017, "Kyushu", 0.8),
    MapCity("naha", "Naha", 26.2124, 127.6809, "Okinawa", 0.15),
]


def month_scale(month: int) -> float:
    """How strongly local suitability applies in a given month."""
    if 2 <= month <= 4:
        return 1.0
    if month == 5:
        return 0.78
    if 8 <= month <= 10:
        return 0.55
    return 0.35


def adjust_map_risk_score(raw_score: float, suitability: float, month: int) -> int:
    """Blend a raw risk score toward the baseline by effective suitability.

    Effective suitability never drops below MIN_EFFECTIVE_SUITABILITY so
    off-season cities still follow their weather a little.
    """
    effective = clamp(suitability * month_scale(month), MIN_EFFECTIVE_SUITABILITY, 1)
    blended = raw_score * effective + BASELINE_SCORE * (1 - effective)
    return int(round_half_up(clamp(blended, 0, 100)))


def build_city_point(city: MapCity, snapshot: WeatherSnapshot, day: date) -> CityRiskPoint:
    raw = estimate_snapshot_risk(day, snapshot)
    score = adjust_map_risk_score(raw.score, city.suitability, day.month)
    return CityRiskPoint(
        city=city,
        score=score,
        level=risk_level(score),
        temperature=snapshot.temperature,
        humidity=snapshot.humidity,
        wind=snapshot.wind,
        precipitation=snapshot.precipitation,
    )


async def build_risk_map(
    fetch_snapshot: Callable[[float, float], Awaitable[WeatherSnapshot]],
    day: date,
    cities: Optional[list[MapCity]] = None,
) -> RiskMap:
    """Fetch every city concurrently and score the ones that succeed.

    Failed cities are dropped and reported in ``failed``. Raises
    MapUnavailableError only when no city succeeds.
    """
    cities = MAP_CITIES if cities is None else cities
    results = await asyncio.gather(
        *(fetch_snapshot(c.lat, c.lon) for c in cities),
        return_exceptions=True,
    )

    points: list[CityRiskPoint] = []
    failed: list[str] = []
    for city, result in zip(cities, results):
        if isinstance(result, BaseException):
            logger.warning("Map fetch failed for %s: %s", city.id, result)
            failed.append(city.id)
            continue
        points.append(build_city_point(city, result, day))

    if cities and not points:
        raise MapUnavailableError()

    points.sort(key=lambda p: p.score, reverse=True)
    logger.info("Risk map built: %d cities, %d failed", len(points), len(failed))
    return RiskMap(
        points=points,
        failed=failed,
        warning=PARTIAL_MAP_WARNING if failed else None,
    )
