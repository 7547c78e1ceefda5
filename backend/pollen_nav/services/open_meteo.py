"""Open-Meteo weather and air-quality client.

Fetches current conditions plus a short daily forecast for a location,
and current PM10/PM2.5 from the air-quality API. Results are cached per
coordinate for a few minutes to spare the API when the dashboard and
map ask for the same place.

Open-Meteo docs: https://open-meteo.com/en/docs
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

import httpx

from ..config import settings
from .errors import WeatherUnavailableError
from .risk_engine import DailyOutlook, WeatherSnapshot, parse_number

logger = logging.getLogger(__name__)

CURRENT_VARS = [
    "temperature_2m",
    "relative_humidity_2m",
    "wind_speed_10m",
    "precipitation",
]
DAILY_VARS = [
    "temperature_2m_max",
    "wind_speed_10m_max",
    "precipitation_probability_max",
]
AIR_QUALITY_VARS = ["pm10", "pm2_5"]

# Substituted for missing or non-finite readings at the selected location
FALLBACK_TEMPERATURE = 12.0
FALLBACK_HUMIDITY = 50.0
FALLBACK_WIND = 2.0
FALLBACK_PRECIPITATION = 0.0
FALLBACK_PM10 = 20.0
FALLBACK_PM25 = 10.0

# The map does not query air quality; every city assumes these
MAP_PM10 = 24.0
MAP_PM25 = 13.0


@dataclass(frozen=True)
class LocationConditions:
    """Current snapshot plus the daily outlook for one location."""
    snapshot: WeatherSnapshot
    daily: list[DailyOutlook]


@dataclass
class _CacheEntry:
    value: Any
    expires_at: float


# Module-level cache keyed by (kind, lat, lon) with coordinates rounded to 4 places.
_cache: dict[tuple[str, float, float], _CacheEntry] = {}


def _cache_key(kind: str, lat: float, lon: float) -> tuple[str, float, float]:
    return (kind, round(lat, 4), round(lon, 4))


def _evict_expired(now: float) -> None:
    for key in [k for k, e in _cache.items() if e.expires_at <= now]:
        del _cache[key]


def _get_cached(kind: str, lat: float, lon: float) -> Optional[Any]:
    now = time.time()
    _evict_expired(now)
    entry = _cache.get(_cache_key(kind, lat, lon))
    if entry is not None:
        logger.debug("Open-Meteo cache hit for %s (%s, %s)", kind, lat, lon)
        return entry.value
    return None


def _set_cached(kind: str, lat: float, lon: float, value: Any) -> None:
    if settings.snapshot_cache_ttl_sec <= 0:
        return
    _cache[_cache_key(kind, lat, lon)] = _CacheEntry(
        value=value,
        expires_at=time.time() + settings.snapshot_cache_ttl_sec,
    )


def clear_cache() -> None:
    _cache.clear()


def _weather_params(lat: float, lon: float, daily: bool) -> dict[str, Any]:
    params: dict[str, Any] = {
        "latitude": lat,
        "longitude": lon,
        "timezone": settings.reference_timezone,
        "current": ",".join(CURRENT_VARS),
        "wind_speed_unit": "ms",
    }
    if daily:
        params["daily"] = ",".join(DAILY_VARS)
        params["forecast_days"] = settings.forecast_days
    return params


def _air_quality_params(lat: float, lon: float) -> dict[str, Any]:
    return {
        "latitude": lat,
        "longitude": lon,
        "timezone": settings.reference_timezone,
        "current": ",".join(AIR_QUALITY_VARS),
    }


async def _get_json(client: httpx.AsyncClient, url: str, params: dict[str, Any]) -> dict:
    """GET and decode JSON; any transport, status, or decode failure raises WeatherUnavailableError."""
    try:
        resp = await client.get(url, params=params)
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Open-Meteo request to %s failed: %s", url, exc)
        raise WeatherUnavailableError() from exc
    return data if isinstance(data, dict) else {}


def _current(data: dict) -> dict:
    current = data.get("current")
    return current if isinstance(current, dict) else {}


def _series(daily: dict, name: str) -> list:
    values = daily.get(name)
    return values if isinstance(values, list) else []


def _valid_day(day: Any) -> bool:
    if not isinstance(day, str):
        return False
    try:
        date.fromisoformat(day[:10])
    except ValueError:
        return False
    return True


def _parse_daily(data: dict) -> list[DailyOutlook]:
    """Zip Open-Meteo's parallel daily arrays into DailyOutlook rows.

    Rows whose date does not parse are skipped; a field that is not an
    array is treated as empty.
    """
    daily = data.get("daily")
    if not isinstance(daily, dict):
        return []
    times = _series(daily, "time")
    max_temps = _series(daily, "temperature_2m_max")
    max_winds = _series(daily, "wind_speed_10m_max")
    precip_prob = _series(daily, "precipitation_probability_max")

    def _at(values: list, i: int) -> Optional[float]:
        return values[i] if i < len(values) else None

    outlook: list[DailyOutlook] = []
    for i, day in enumerate(times):
        if not _valid_day(day):
            logger.debug("Skipping daily entry with bad date %r", day)
            continue
        outlook.append(DailyOutlook(
            date=day,
            temperature_max=_at(max_temps, i),
            wind_max=_at(max_winds, i),
            precipitation_probability=_at(precip_prob, i),
        ))
    return outlook


def _weather_fields(current: dict) -> dict[str, float]:
    return {
        "temperature": parse_number(current.get("temperature_2m"), FALLBACK_TEMPERATURE),
        "humidity": parse_number(current.get("relative_humidity_2m"), FALLBACK_HUMIDITY),
        "wind": parse_number(current.get("wind_speed_10m"), FALLBACK_WIND),
        "precipitation": parse_number(current.get("precipitation"), FALLBACK_PRECIPITATION),
    }


async def fetch_location_conditions(
    lat: float,
    lon: float,
    client: Optional[httpx.AsyncClient] = None,
) -> LocationConditions:
    """Fetch current weather, daily outlook, and air quality for one location.

    The weather and air-quality requests run concurrently and both must
    succeed; there is no partial result.

    Raises:
        WeatherUnavailableError: either request failed.
    """
    cached = _get_cached("location", lat, lon)
    if cached is not None:
        return cached

    own_client = client is None
    if own_client:
        client = httpx.AsyncClient(timeout=settings.request_timeout_sec)
    try:
        results = await asyncio.gather(
            _get_json(client, settings.open_meteo_forecast_url, _weather_params(lat, lon, daily=True)),
            _get_json(client, settings.open_meteo_air_quality_url, _air_quality_params(lat, lon)),
            return_exceptions=True,
        )
    finally:
        if own_client:
            await client.aclose()

    for result in results:
        if isinstance(result, BaseException):
            raise result
    weather, air = results

    air_current = _current(air)
    snapshot = WeatherSnapshot(
        **_weather_fields(_current(weather)),
        pm10=parse_number(air_current.get("pm10"), FALLBACK_PM10),
        pm25=parse_number(air_current.get("pm2_5"), FALLBACK_PM25),
    )
    conditions = LocationConditions(
        snapshot=snapshot,
        daily=_parse_daily(weather),
    )
    _set_cached("location", lat, lon, conditions)
    logger.info(
        "Open-Meteo conditions fetched for (%s, %s): %d forecast days",
        lat, lon, len(conditions.daily),
    )
    return conditions


async def fetch_city_snapshot(
    lat: float,
    lon: float,
    client: Optional[httpx.AsyncClient] = None,
) -> WeatherSnapshot:
    """Fetch current weather for a map city; particulates use MAP_PM10/MAP_PM25.

    Raises:
        WeatherUnavailableError: the request failed.
    """
    cached = _get_cached("city", lat, lon)
    if cached is not None:
        return cached

    own_client = client is None
    if own_client:
        client = httpx.AsyncClient(timeout=settings.request_timeout_sec)
    try:
        weather = await _get_json(
            client, settings.open_meteo_forecast_url, _weather_params(lat, lon, daily=False),
        )
    finally:
        if own_client:
            await client.aclose()

    snapshot = WeatherSnapshot(
        **_weather_fields(_current(weather)),
        pm10=MAP_PM10,
        pm25=MAP_PM25,
    )
    _set_cached("city", lat, lon, snapshot)
    return snapshot
