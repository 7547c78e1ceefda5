"""Application configuration using Pydantic Settings."""

from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings

# Resolve config: prefer system config (installed), fall back to repo .env (dev)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_SYSTEM_CONF = Path("/etc/pollen-nav/pollen-nav.conf")
_ENV_FILE = _SYSTEM_CONF if _SYSTEM_CONF.exists() else _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    # Database (local key-value store)
    db_path: str = "pollen_nav.db"

    @model_validator(mode="after")
    def _resolve_db_path(self) -> "Settings":
        """Make db_path absolute: relative to /var/lib/pollen-nav if installed, else project root."""
        if self.db_path == ":memory:":
            return self
        p = Path(self.db_path)
        if not p.is_absolute():
            if _ENV_FILE == _SYSTEM_CONF:
                self.db_path = str(Path("/var/lib/pollen-nav") / p)
            else:
                self.db_path = str(_PROJECT_ROOT / p)
        return self

    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.db_path}"

    # Calendar used for "today" and seasonal lookups
    reference_timezone: str = "Asia/Tokyo"

    # Open-Meteo
    open_meteo_forecast_url: str = "https://api.open-meteo.com/v1/forecast"
    open_meteo_air_quality_url: str = "https://air-quality-api.open-meteo.com/v1/air-quality"
    request_timeout_sec: float = 15.0
    forecast_days: int = 3
    snapshot_cache_ttl_sec: int = 600

    # Geolocation
    geolocation_timeout_sec: float = 12.0

    # Location selected on first start
    default_location: str = "tokyo"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = {"env_prefix": "POLLEN_", "env_file": str(_ENV_FILE)}


settings = Settings()
