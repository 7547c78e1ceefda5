"""GET /api/status - Lightweight health summary."""

from fastapi import APIRouter, Depends

from ..config import settings
from ..services.dashboard import DashboardController, get_controller

router = APIRouter()


@router.get("/status")
def get_status(controller: DashboardController = Depends(get_controller)):
    state = controller.state
    return {
        "today": controller.today().isoformat(),
        "reference_timezone": settings.reference_timezone,
        "selected_location": controller.selected_location.id,
        "has_conditions": state.snapshot is not None,
        "loading": state.is_loading,
        "error": state.error,
        "map_error": state.map_error,
        "log_count": len(state.logs),
    }
