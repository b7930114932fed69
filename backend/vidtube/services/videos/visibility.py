"""
Vidtube video visibility. An unpublished video exists only for its owner:
everyone else gets the same 404 as for a missing row.
"""
from __future__ import annotations

import uuid

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.errors import NotFoundFault
from vidtube.models.models import Video


def visible_to(actor_id: uuid.UUID):
    """WHERE clause matching the videos ``actor_id`` may see."""
    return or_(Video.is_published.is_(True), Video.owner_id == actor_id)


async def load_visible_video(db: AsyncSession, video_id: uuid.UUID, actor_id: uuid.UUID) -> Video:
    video = await db.get(Video, video_id)
    if video is None or (not video.is_published and video.owner_id != actor_id):
        raise NotFoundFault(message="Video not found")
    return video
