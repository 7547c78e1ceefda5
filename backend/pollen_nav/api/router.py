"""Top-level API router aggregation."""

from fastapi import APIRouter

from . import actions, locations, logs, regional_map, risk, status

api_router = APIRouter(prefix="/api")

api_router.include_router(locations.router)
api_router.include_router(risk.router)
api_router.include_router(regional_map.router)
api_router.include_router(logs.router)
api_router.include_router(actions.router)
api_router.include_router(status.router)
