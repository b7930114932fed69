"""
Vidtube API — Dashboard routes.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.database import get_db
from vidtube.core.identifiers import parse_id
from vidtube.core.responses import respond
from vidtube.core.security import get_current_user
from vidtube.models.models import User
from vidtube.schemas.schemas import VideoSchema
from vidtube.services.dashboard.dashboard_service import dashboard_service

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats/{channel_id}")
async def get_channel_stats(
    channel_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stats = await dashboard_service.channel_stats(db, parse_id(channel_id, "channel"))
    return respond(200, "Channel stats fetched successfully", stats)


@router.get("/videos/{channel_id}")
async def get_channel_videos(
    channel_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    target_id = parse_id(channel_id, "channel")
    videos = await dashboard_service.channel_videos(
        db, target_id, include_unpublished=target_id == user.id,
    )
    return respond(
        200,
        "Channel videos fetched successfully",
        [VideoSchema.model_validate(v) for v in videos],
    )
