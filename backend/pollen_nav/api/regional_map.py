"""GET /api/map - Regional pollen risk across fixed cities."""

from fastapi import APIRouter, Depends, HTTPException

from ..services.dashboard import DashboardController, get_controller
from ..services.errors import MapUnavailableError
from ..services.spatial_risk import CityRiskPoint

router = APIRouter()


def _point_to_dict(p: CityRiskPoint) -> dict:
    return {
        "id": p.city.id,
        "name": p.city.name,
        "region": p.city.region,
        "lat": p.city.lat,
        "lon": p.city.lon,
        "suitability": p.city.suitability,
        "score": p.score,
        "level": p.level.value,
        "temperature": p.temperature,
        "humidity": p.humidity,
        "wind": p.wind,
        "precipitation": p.precipitation,
    }


@router.get("/map")
async def get_map(controller: DashboardController = Depends(get_controller)):
    """Score every map city, highest risk first.

    Cities whose fetch failed are left out and reported under ``failed``.
    """
    try:
        await controller.refresh_map()
    except MapUnavailableError as e:
        raise HTTPException(status_code=502, detail=str(e))

    risk_map = controller.state.risk_map
    if risk_map is None:
        raise HTTPException(status_code=502, detail="Regional map is not available yet.")
    return {
        "cities": [_point_to_dict(p) for p in risk_map.points],
        "failed": risk_map.failed,
        "warning": risk_map.warning,
    }
