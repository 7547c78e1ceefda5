"""Per-taxon pollen scores.

Each pollen type has its own season window. Its score combines how close
the current month is to that window with the overall risk score and the
current wind/dryness/rain readings.
"""

from dataclasses import dataclass
from typing import Optional

from .risk_engine import (
    RiskLevel,
    WeatherSnapshot,
    clamp,
    month_distance,
    risk_level,
    round_half_up,
)

# Seasonal factor by circular month distance from the nearest season month
SEASON_RAMP = {0: 1.0, 1: 0.44, 2: 0.2}

SEASON_WEIGHT = 72
OVERALL_WEIGHT = 0.22

# Used when no weather snapshot is available yet
WIND_BOOST_FALLBACK = 6
DRY_BOOST_FALLBACK = 4
RAIN_PENALTY = 12


@dataclass(frozen=True)
class PollenType:
    """Static taxon descriptor. Season months need not be contiguous."""
    id: str
    name: str
    season_months: frozenset[int]
    peak_months: frozenset[int]
    description: str

    def __post_init__(self):
        if not self.peak_months <= self.season_months:
            raise ValueError(f"{self.id}: peak months must be within season months")


@dataclass(frozen=True)
class PollenTypeStatus:
    type: PollenType
    score: int
    level: RiskLevel
    in_peak: bool


POLLEN_TYPES: list[PollenType] = [
    PollenType(
        id="cedar",
        name="Japanese cedar (sugi)",
        season_months=frozenset({2, 3, 4}),
        peak_months=frozenset({3}),
        description="The main spring allergen. Can travel tens of kilometres on dry, windy days.",
    ),
    PollenType(
        id="cypress",
        name="Japanese cypress (hinoki)",
        season_months=frozenset({3, 4, 5}),
        peak_months=frozenset({4}),
        description="Follows cedar season; many people react to both.",
    ),
    PollenType(
        id="birch",
        name="Birch",
        season_months=frozenset({4, 5, 6}),
        peak_months=frozenset({5}),
        description="The dominant spring pollen in Hokkaido. Linked to oral allergy syndrome.",
    ),
    PollenType(
        id="grass",
        name="Grasses",
        season_months=frozenset({4, 5, 6, 9, 10}),
        peak_months=frozenset({5, 6}),
        description="Two waves, early summer and early autumn. Stays close to riverbanks and parks.",
    ),
    PollenType(
        id="ragweed",
        name="Ragweed",
        season_months=frozenset({8, 9, 10}),
        peak_months=frozenset({9}),
        description="Autumn weed pollen found along roadsides and vacant lots.",
    ),
    PollenType(
        id="mugwort",
        name="Mugwort",
        season_months=frozenset({8, 9, 10}),
        peak_months=frozenset({9}),
        description="Autumn weed pollen; symptoms often overlap with ragweed.",
    ),
]


def seasonal_factor(season_months: frozenset[int], month: int) -> float:
    """1 inside the season, tapering to 0 two months outside it (wraps across the year)."""
    if not season_months:
        return 0.0
    nearest = min(month_distance(month, m) for m in season_months)
    return SEASON_RAMP.get(nearest, 0.0)


def estimate_type_score(
    pollen_type: PollenType,
    month: int,
    snapshot: Optional[WeatherSnapshot],
    overall_score: float,
) -> int:
    """Score one taxon 0-100 for the current month and conditions."""
    if snapshot is not None:
        wind_boost = clamp((snapshot.wind - 2) * 6, 0, 18)
        dry_boost = clamp((50 - snapshot.humidity) * 0.35, 0, 12)
        rain_penalty = RAIN_PENALTY if snapshot.precipitation > 0 else 0
    else:
        wind_boost = WIND_BOOST_FALLBACK
        dry_boost = DRY_BOOST_FALLBACK
        rain_penalty = 0

    score = (
        seasonal_factor(pollen_type.season_months, month) * SEASON_WEIGHT
        + overall_score * OVERALL_WEIGHT
        + wind_boost
        + dry_boost
        - rain_penalty
    )
    return int(round_half_up(clamp(score, 0, 100)))


def rank_pollen_types(
    month: int,
    snapshot: Optional[WeatherSnapshot],
    overall_score: float,
    catalog: Optional[list[PollenType]] = None,
) -> list[PollenTypeStatus]:
    """Score every taxon and order by score, highest first.

    Ties keep catalog order.
    """
    types = POLLEN_TYPES if catalog is None else catalog
    statuses = []
    for pollen_type in types:
        score = estimate_type_score(pollen_type, month, snapshot, overall_score)
        statuses.append(PollenTypeStatus(
            type=pollen_type,
            score=score,
            level=risk_level(score),
            in_peak=month in pollen_type.peak_months,
        ))
    return sorted(statuses, key=lambda s: s.score, reverse=True)
