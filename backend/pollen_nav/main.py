"""FastAPI application factory and lifespan for the pollen risk dashboard."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .models.database import init_database, SessionLocal
from .api.router import api_router
from .services.dashboard import DashboardController, set_controller
from .services.errors import WeatherUnavailableError
from .services.local_store import LocalStore

# Configure logging for our app (uvicorn only configures its own loggers)
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:     %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def _bg_refresh(controller: DashboardController):
    """Fetch the default location in the background so uvicorn starts immediately."""
    try:
        await controller.refresh()
    except WeatherUnavailableError as e:
        logger.warning("Initial refresh failed: %s", e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: open the local store and load persisted state."""

    logger.info("Database: %s", settings.db_path)
    init_database()
    logger.info("Database initialized")

    controller = DashboardController(LocalStore(SessionLocal))
    controller.start()
    set_controller(controller)

    refresh_task = asyncio.create_task(_bg_refresh(controller))

    yield

    logger.info("Shutting down...")
    if not refresh_task.done():
        refresh_task.cancel()
    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Pollen Navigator",
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API routes
    app.include_router(api_router)

    return app


# Application instance
app = create_app()

if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host=settings.host, port=settings.port)
