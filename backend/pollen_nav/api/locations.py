"""Location selection endpoints, including the client-reported current position."""

from fastapi import APIRouter, Depends, HTTPException

from ..schemas.dashboard import LocationSelect, PositionReport
from ..services.dashboard import DashboardController, get_controller
from ..services.errors import GeolocationError, UnknownLocationError, WeatherUnavailableError
from .risk import risk_view

router = APIRouter()


@router.get("/locations")
def get_locations(controller: DashboardController = Depends(get_controller)):
    return {
        "selected": controller.selected_location.id,
        "options": [
            {"id": o.id, "name": o.name, "lat": o.lat, "lon": o.lon}
            for o in controller.options
        ],
    }


@router.put("/locations/selected")
async def select_location(
    body: LocationSelect, controller: DashboardController = Depends(get_controller),
):
    """Switch location and return its freshly fetched risk view."""
    try:
        await controller.select_location(body.id)
    except UnknownLocationError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except WeatherUnavailableError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return risk_view(controller)


@router.post("/locations/current")
async def use_current_position(
    body: PositionReport, controller: DashboardController = Depends(get_controller),
):
    """Adopt the position reported by the client as the 'current location' option."""

    async def _reported() -> tuple[float, float]:
        return body.lat, body.lon

    try:
        await controller.locate(_reported)
    except GeolocationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except WeatherUnavailableError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return risk_view(controller)
