"""
Vidtube API — Healthcheck route.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from vidtube.core.config import Settings, get_settings
from vidtube.core.responses import respond
from vidtube.schemas.schemas import HealthStatus

router = APIRouter(prefix="/healthcheck", tags=["Healthcheck"])


@router.get("")
async def healthcheck(settings: Settings = Depends(get_settings)):
    return respond(200, "OK", HealthStatus(status="ok", version=settings.app_version))
