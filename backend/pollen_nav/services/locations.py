"""Selectable locations and one-shot geolocation."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from .errors import GeolocationError, UnknownLocationError

logger = logging.getLogger(__name__)

CURRENT_LOCATION_ID = "current-location"
CURRENT_LOCATION_NAME = "Current location"


@dataclass(frozen=True)
class LocationOption:
    id: str
    name: str
    lat: float
    lon: float


PRESET_LOCATIONS: list[LocationOption] = [
    LocationOption("tokyo", "Tokyo", 35.6764, 139.65),
    LocationOption("osaka", "Osaka", 34.6937, 135.5023),
    LocationOption("nagoya", "Nagoya", 35.1815, 136.9066),
    LocationOption("sapporo", "Sapporo", 43.0618, 141.3545),
    LocationOption("fukuoka", "Fukuoka", 33.5902, 130.4017),
]


def location_options(custom: Optional[LocationOption] = None) -> list[LocationOption]:
    """Presets, with the geolocated position first when there is one."""
    if custom is None:
        return list(PRESET_LOCATIONS)
    return [custom, *PRESET_LOCATIONS]


def find_location(location_id: str, custom: Optional[LocationOption] = None) -> LocationOption:
    for option in location_options(custom):
        if option.id == location_id:
            return option
    raise UnknownLocationError(f"Unknown location: {location_id}")


def current_location(lat: float, lon: float) -> LocationOption:
    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        raise GeolocationError(f"Position out of range: ({lat}, {lon})")
    return LocationOption(CURRENT_LOCATION_ID, CURRENT_LOCATION_NAME, lat, lon)


async def acquire_position(
    locator: Callable[[], Awaitable[tuple[float, float]]],
    timeout: float,
) -> LocationOption:
    """Ask the locator for (lat, lon) once, failing after timeout seconds.

    No retry. Denial, errors, and timeouts all become GeolocationError.
    """
    try:
        lat, lon = await asyncio.wait_for(locator(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.warning("Geolocation timed out after %.1fs", timeout)
        raise GeolocationError() from exc
    except GeolocationError:
        raise
    except Exception as exc:
        logger.warning("Geolocation failed: %s", exc)
        raise GeolocationError() from exc
    return current_location(lat, lon)
