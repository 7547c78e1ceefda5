"""GET /api/risk - Pollen risk for the selected location."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..services.dashboard import DashboardController, get_controller
from ..services.errors import WeatherUnavailableError
from ..services.pollen_types import PollenTypeStatus
from ..services.risk_engine import RiskResult, WeatherSnapshot, risk_tip

router = APIRouter()


def _snapshot_to_dict(s: Optional[WeatherSnapshot]) -> Optional[dict]:
    if s is None:
        return None
    return {
        "temperature": s.temperature,
        "humidity": s.humidity,
        "wind": s.wind,
        "precipitation": s.precipitation,
        "pm10": s.pm10,
        "pm25": s.pm25,
    }


def _risk_to_dict(r: Optional[RiskResult]) -> Optional[dict]:
    if r is None:
        return None
    return {
        "score": r.score,
        "level": r.level.value,
        "level_label": r.level.label,
        "advice": r.advice,
    }


def _pollen_to_dict(p: PollenTypeStatus) -> dict:
    return {
        "id": p.type.id,
        "name": p.type.name,
        "season_months": sorted(p.type.season_months),
        "peak_months": sorted(p.type.peak_months),
        "description": p.type.description,
        "score": p.score,
        "level": p.level.value,
        "in_peak": p.in_peak,
    }


def risk_view(controller: DashboardController) -> dict:
    """Serialize the location half of the dashboard state."""
    state = controller.state
    location = controller.selected_location
    return {
        "location": {
            "id": location.id,
            "name": location.name,
            "lat": location.lat,
            "lon": location.lon,
        },
        "weather": _snapshot_to_dict(state.snapshot),
        "today": _risk_to_dict(state.today_risk),
        "tip": risk_tip(state.today_risk.level if state.today_risk else None),
        "forecast": [
            {"date": d.date, "score": d.score, "level": d.level.value}
            for d in state.forecast
        ],
        "pollen_types": [_pollen_to_dict(p) for p in state.pollen_types],
        "error": state.error,
    }


async def refresh_or_502(controller: DashboardController) -> dict:
    try:
        await controller.refresh()
    except WeatherUnavailableError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return risk_view(controller)


@router.get("/risk")
async def get_risk(controller: DashboardController = Depends(get_controller)):
    """Fetch fresh conditions for the selected location and return the scored view."""
    return await refresh_or_502(controller)


@router.get("/risk/pollen-types")
def get_pollen_types(controller: DashboardController = Depends(get_controller)):
    """Per-taxon scores from the last refresh, highest first."""
    return [_pollen_to_dict(p) for p in controller.pollen_ranking()]
