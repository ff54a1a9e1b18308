"""Healthcheck endpoint."""

from fastapi import APIRouter
from pydantic import BaseModel

from app.realtime import hub

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    realtime_channels: int


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return service status and the number of open realtime channels."""
    return HealthResponse(status="ok", realtime_channels=hub.channel_count())
