"""
Vidtube Dashboard Service — per-channel aggregates, recomputed on every call.
"""
from __future__ import annotations

import logging
import uuid
from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.errors import NotFoundFault
from vidtube.models.models import Like, Subscription, User, Video
from vidtube.schemas.schemas import ChannelStats

logger = logging.getLogger(__name__)


class DashboardService:

    async def _require_channel(self, db: AsyncSession, channel_id: uuid.UUID) -> None:
        exists = await db.scalar(select(User.id).where(User.id == channel_id))
        if exists is None:
            raise NotFoundFault(message="Channel not found")

    async def channel_stats(self, db: AsyncSession, channel_id: uuid.UUID) -> ChannelStats:
        """Subscribers, videos, summed views and likes on the channel's videos."""
        await self._require_channel(db, channel_id)

        total_subscribers = await db.scalar(
            select(func.count(Subscription.id)).where(Subscription.channel_id == channel_id)
        ) or 0

        video_row = (await db.execute(
            select(func.count(Video.id), func.coalesce(func.sum(Video.views), 0))
            .where(Video.owner_id == channel_id)
        )).one()

        total_likes = await db.scalar(
            select(func.count(Like.id))
            .join(Video, Like.video_id == Video.id)
            .where(Video.owner_id == channel_id)
        ) or 0

        return ChannelStats(
            total_subscribers=total_subscribers,
            total_videos=video_row[0] or 0,
            total_views=int(video_row[1] or 0),
            total_likes=total_likes,
        )

    async def channel_videos(
        self,
        db: AsyncSession,
        channel_id: uuid.UUID,
        include_unpublished: bool = False,
    ) -> List[Video]:
        """Newest first. Unpublished videos only appear for the owner."""
        await self._require_channel(db, channel_id)

        query = select(Video).where(Video.owner_id == channel_id)
        if not include_unpublished:
            query = query.where(Video.is_published.is_(True))
        result = await db.execute(query.order_by(Video.created_at.desc(), Video.id))
        return list(result.scalars().all())


dashboard_service = DashboardService()
