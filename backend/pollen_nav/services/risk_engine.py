"""Pollen exposure risk scoring.

Maps a weather/air-quality snapshot plus a calendar date to a bounded
0-100 risk score, a risk level, and canned advice. The score is a
seasonal baseline (cedar/cypress season) adjusted by clamped weather
terms, so no single reading can dominate or invert the season signal.

All functions here are pure; fetching and persistence live elsewhere.
"""

import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

# ---------------------------------------------------------------------------
# Scalar helpers
# ---------------------------------------------------------------------------


def clamp(value: float, low: float, high: float) -> float:
    """Limit value to the closed range [low, high]."""
    return min(high, max(low, value))


def parse_number(value: object, fallback: float = 0.0) -> float:
    """Coerce an upstream field to a finite float, else return fallback."""
    if isinstance(value, bool) or value is None:
        return fallback
    try:
        num = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return fallback
    return num if math.isfinite(num) else fallback


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with ties going up (2.5 -> 3, 0.25 -> 0.3 at one digit)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def month_distance(a: int, b: int) -> int:
    """Circular distance between two months (December and January are 1 apart)."""
    diff = abs(a - b) % 12
    return min(diff, 12 - diff)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


class RiskLevel(str, Enum):
    """Ordered risk categories, lowest first."""
    LOW = "low"
    ELEVATED = "elevated"
    HIGH = "high"
    VERY_HIGH = "very_high"

    @property
    def label(self) -> str:
        return _LEVEL_LABELS[self]


_LEVEL_LABELS = {
    RiskLevel.LOW: "Low",
    RiskLevel.ELEVATED: "Elevated",
    RiskLevel.HIGH: "High",
    RiskLevel.VERY_HIGH: "Very high",
}


@dataclass(frozen=True)
class WeatherSnapshot:
    """Point-in-time readings for one location."""
    temperature: float  # deg C
    humidity: float  # %
    wind: float  # m/s
    precipitation: float  # mm
    pm10: float  # ug/m3
    pm25: float  # ug/m3


@dataclass(frozen=True)
class RiskResult:
    score: int
    level: RiskLevel
    advice: str


@dataclass(frozen=True)
class DailyOutlook:
    """One day of the collaborator's daily forecast, values may be missing."""
    date: str  # "2026-03-15"
    temperature_max: Optional[float] = None
    wind_max: Optional[float] = None
    precipitation_probability: Optional[float] = None


@dataclass(frozen=True)
class ForecastDay:
    date: str
    score: int
    level: RiskLevel


# ---------------------------------------------------------------------------
# Calibration
# ---------------------------------------------------------------------------

# Score thresholds, inclusive lower bounds, highest first
LEVEL_THRESHOLDS: list[tuple[int, RiskLevel]] = [
    (75, RiskLevel.VERY_HIGH),
    (55, RiskLevel.HIGH),
    (35, RiskLevel.ELEVATED),
]

RAIN_PENALTY = 16
HUMID_PENALTY = 6
HUMID_PENALTY_THRESHOLD = 70

# Daily precipitation probability (%) at which a forecast day counts as rainy
FORECAST_RAIN_PROBABILITY = 40

ADVICE = {
    RiskLevel.VERY_HIGH: (
        "Keep time outdoors short and take full precautions: mask, glasses, "
        "and an outer layer that sheds pollen."
    ),
    RiskLevel.HIGH: (
        "After a long time outdoors, brush off your clothes and wash your "
        "face and gargle soon."
    ),
    RiskLevel.ELEVATED: (
        "Don't let your guard down. Keep windows open only briefly to limit "
        "pollen getting indoors."
    ),
    RiskLevel.LOW: (
        "Conditions are fairly calm, but if you are prone to symptoms keep "
        "taking your preventive medication."
    ),
}

TIPS = {
    RiskLevel.VERY_HIGH: "Run the air purifier on a stronger setting and avoid drying laundry outside.",
    RiskLevel.HIGH: "Keep windows closed as much as possible after waking to cut down on pollen drifting in.",
    RiskLevel.ELEVATED: "Brushing off clothes before coming indoors helps keep symptoms from flaring at night.",
    RiskLevel.LOW: "Even on mild days, don't stop medication on your own; follow your doctor's instructions.",
}
LOADING_TIP = "Loading data."


def seasonal_base(month: int) -> int:
    """Season-only baseline score for a calendar month (1-12)."""
    if 2 <= month <= 4:
        return 48
    if month == 5:
        return 36
    if 6 <= month <= 9:
        return 16
    return 10


def risk_level(score: float) -> RiskLevel:
    for threshold, level in LEVEL_THRESHOLDS:
        if score >= threshold:
            return level
    return RiskLevel.LOW


def risk_advice(level: RiskLevel) -> str:
    return ADVICE[level]


def risk_tip(level: Optional[RiskLevel]) -> str:
    """Supplementary tip shown beside the advice; a placeholder before data arrives."""
    if level is None:
        return LOADING_TIP
    return TIPS[level]


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def estimate_risk(
    day: date,
    temperature: float,
    humidity: float,
    wind: float,
    precipitation: float,
    pm10: float,
    pm25: float,
) -> RiskResult:
    """Estimate pollen risk for one day from weather and air-quality readings.

    Args:
        day: Calendar date; only the month is used.
        temperature: Air temperature, deg C.
        humidity: Relative humidity, %.
        wind: Wind speed, m/s.
        precipitation: Precipitation, mm (any positive value counts as rain).
        pm10: Coarse particulate, ug/m3.
        pm25: Fine particulate, ug/m3.

    Returns:
        RiskResult with an integer score in [0, 100].
    """
    score = float(seasonal_base(day.month))
    score += clamp((temperature - 12) * 1.8, -6, 22)
    score += clamp((wind - 2) * 2.9, 0, 20)
    score += clamp((48 - humidity) * 0.6, 0, 15)
    score += clamp((pm25 - 15) * 0.4, 0, 9)
    score += clamp((pm10 - 30) * 0.25, 0, 8)

    if precipitation > 0:
        score -= RAIN_PENALTY
    if humidity >= HUMID_PENALTY_THRESHOLD:
        score -= HUMID_PENALTY

    normalized = int(round_half_up(clamp(score, 0, 100)))
    level = risk_level(normalized)
    return RiskResult(score=normalized, level=level, advice=risk_advice(level))


def estimate_snapshot_risk(day: date, snapshot: WeatherSnapshot) -> RiskResult:
    return estimate_risk(
        day,
        temperature=snapshot.temperature,
        humidity=snapshot.humidity,
        wind=snapshot.wind,
        precipitation=snapshot.precipitation,
        pm10=snapshot.pm10,
        pm25=snapshot.pm25,
    )


def build_forecast(
    snapshot: WeatherSnapshot,
    daily: list[DailyOutlook],
) -> list[ForecastDay]:
    """Score each forecast day.

    Daily max temperature and max wind replace the current readings where
    present; humidity and particulates are carried over from the current
    snapshot. A day counts as rainy when its precipitation probability
    reaches FORECAST_RAIN_PROBABILITY.
    """
    days: list[ForecastDay] = []
    for outlook in daily:
        rain_pct = parse_number(outlook.precipitation_probability, 0)
        result = estimate_risk(
            date.fromisoformat(outlook.date[:10]),
            temperature=parse_number(outlook.temperature_max, snapshot.temperature),
            humidity=snapshot.humidity,
            wind=parse_number(outlook.wind_max, snapshot.wind),
            precipitation=1 if rain_pct >= FORECAST_RAIN_PROBABILITY else 0,
            pm10=snapshot.pm10,
            pm25=snapshot.pm25,
        )
        days.append(ForecastDay(date=outlook.date, score=result.score, level=result.level))
    return days
