"""Preventive-action checklist endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from ..services.dashboard import DashboardController, get_controller
from ..services.symptom_history import ACTION_ITEMS, ACTION_KEYS

router = APIRouter()


def _actions_view(controller: DashboardController) -> dict:
    actions = controller.state.actions
    return {
        "items": [
            {"key": key, "label": label, "done": actions.get(key, False)}
            for key, label in ACTION_ITEMS
        ],
        "completion_rate": controller.completion_rate,
    }


@router.get("/actions")
def get_actions(controller: DashboardController = Depends(get_controller)):
    return _actions_view(controller)


@router.post("/actions/{key}/toggle")
def toggle_action(key: str, controller: DashboardController = Depends(get_controller)):
    if key not in ACTION_KEYS:
        raise HTTPException(status_code=404, detail=f"Unknown action: {key}")
    controller.toggle_action(key)
    return _actions_view(controller)
