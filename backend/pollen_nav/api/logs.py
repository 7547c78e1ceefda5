"""Symptom log endpoints."""

from fastapi import APIRouter, Depends

from ..schemas.dashboard import LogCreate
from ..services.dashboard import DashboardController, get_controller

router = APIRouter()


def _logs_view(controller: DashboardController) -> dict:
    return {
        "logs": [log.to_dict() for log in controller.state.logs],
        "weekly_average": controller.weekly_average,
        "trend": controller.trend,
    }


@router.get("/logs")
def get_logs(controller: DashboardController = Depends(get_controller)):
    """Logs newest first, with the 7-entry average and the 3-vs-3 trend (null when too few)."""
    return _logs_view(controller)


@router.post("/logs")
def submit_log(body: LogCreate, controller: DashboardController = Depends(get_controller)):
    """Record today's symptoms; resubmitting the same day replaces the entry."""
    controller.submit_log(body.severity, body.took_medicine, body.memo)
    return _logs_view(controller)
