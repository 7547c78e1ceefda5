"""Pydantic schemas for dashboard API requests."""

from pydantic import BaseModel, Field


class LocationSelect(BaseModel):
    id: str


class PositionReport(BaseModel):
    """Position obtained by the client's geolocation API."""
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class LogCreate(BaseModel):
    severity: int = Field(ge=0, le=10)
    took_medicine: bool = False
    memo: str = Field(default="", max_length=500)
