"""
Vidtube API — Like routes.

Each toggle endpoint flips the caller's like on one video, comment or tweet:
201 with the like row when it is added, 200 with ``{}`` when it is removed.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.database import get_db
from vidtube.core.errors import NotFoundFault
from vidtube.core.identifiers import parse_id
from vidtube.core.responses import respond
from vidtube.core.security import get_current_user
from vidtube.models.models import Comment, Like, Tweet, User, Video
from vidtube.schemas.schemas import LikeSchema, VideoSchema
from vidtube.services.toggle.toggle_service import toggle_service
from vidtube.services.videos.visibility import load_visible_video, visible_to

router = APIRouter(prefix="/likes", tags=["Likes"])


async def _toggle_like(db: AsyncSession, actor_id: uuid.UUID, kind: str, target_id: uuid.UUID):
    label = kind.capitalize()
    result = await toggle_service.toggle(
        db, Like, kind, {"liked_by": actor_id, f"{kind}_id": target_id},
    )
    if result.added:
        return respond(201, f"{label} liked successfully", LikeSchema.model_validate(result.record))
    return respond(200, f"{label} unliked successfully", {})


@router.post("/toggle/v/{video_id}")
async def toggle_video_like(
    video_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    actor_id = user.id
    video = await load_visible_video(db, parse_id(video_id, "video"), actor_id)
    return await _toggle_like(db, actor_id, "video", video.id)


@router.post("/toggle/c/{comment_id}")
async def toggle_comment_like(
    comment_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Comments under a video the caller cannot see do not exist for them."""
    actor_id = user.id
    target_id = parse_id(comment_id, "comment")
    found = await db.scalar(
        select(Comment.id)
        .join(Video, Comment.video_id == Video.id)
        .where(Comment.id == target_id, visible_to(actor_id))
    )
    if found is None:
        raise NotFoundFault(message="Comment not found")
    return await _toggle_like(db, actor_id, "comment", target_id)


@router.post("/toggle/t/{tweet_id}")
async def toggle_tweet_like(
    tweet_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    actor_id = user.id
    target_id = parse_id(tweet_id, "tweet")
    if await db.scalar(select(Tweet.id).where(Tweet.id == target_id)) is None:
        raise NotFoundFault(message="Tweet not found")
    return await _toggle_like(db, actor_id, "tweet", target_id)


@router.get("/videos")
async def get_liked_videos(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Videos the caller liked, most recently liked first."""
    result = await db.execute(
        select(Video)
        .join(Like, Like.video_id == Video.id)
        .where(Like.liked_by == user.id)
        .where(visible_to(user.id))
        .order_by(Like.created_at.desc(), Video.id)
    )
    videos = [VideoSchema.model_validate(v) for v in result.scalars().all()]
    return respond(200, "Liked videos fetched successfully", videos)
