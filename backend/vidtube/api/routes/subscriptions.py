"""
Vidtube API — Subscription routes.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.database import get_db
from vidtube.core.errors import NotFoundFault, ValidationFault
from vidtube.core.identifiers import parse_id
from vidtube.core.responses import respond
from vidtube.core.security import get_current_user
from vidtube.models.models import Subscription, User
from vidtube.schemas.schemas import (
    ChannelSummary,
    SubscribedChannelEntry,
    SubscriberEntry,
    SubscriptionSchema,
)
from vidtube.services.toggle.toggle_service import toggle_service

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


async def _require_user(db: AsyncSession, raw_id: str, kind: str) -> uuid.UUID:
    user_id = parse_id(raw_id, kind)
    if await db.scalar(select(User.id).where(User.id == user_id)) is None:
        raise NotFoundFault(message=f"{kind.capitalize()} not found")
    return user_id


@router.post("/c/{channel_id}")
async def toggle_subscription(
    channel_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    actor_id = user.id
    target_id = parse_id(channel_id, "channel")
    if target_id == actor_id:
        raise ValidationFault(message="You cannot subscribe to your own channel")
    await _require_user(db, channel_id, "channel")

    result = await toggle_service.toggle(
        db, Subscription, "subscription", {"subscriber_id": actor_id, "channel_id": target_id},
    )
    if result.added:
        return respond(201, "Subscribed successfully", SubscriptionSchema.model_validate(result.record))
    return respond(200, "Unsubscribed successfully", {})


@router.get("/c/{channel_id}")
async def get_channel_subscribers(
    channel_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Users subscribed to the channel, newest subscription first."""
    target_id = await _require_user(db, channel_id, "channel")
    result = await db.execute(
        select(Subscription.created_at, User)
        .join(User, User.id == Subscription.subscriber_id)
        .where(Subscription.channel_id == target_id)
        .order_by(Subscription.created_at.desc(), User.id)
    )
    subscribers = [
        SubscriberEntry(subscribed_at=created_at, subscriber=ChannelSummary.model_validate(subscriber))
        for created_at, subscriber in result.all()
    ]
    return respond(200, "Subscribers fetched successfully", subscribers)


@router.get("/u/{subscriber_id}")
async def get_subscribed_channels(
    subscriber_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Channels the subscriber follows, newest subscription first."""
    follower_id = await _require_user(db, subscriber_id, "subscriber")
    result = await db.execute(
        select(Subscription.created_at, User)
        .join(User, User.id == Subscription.channel_id)
        .where(Subscription.subscriber_id == follower_id)
        .order_by(Subscription.created_at.desc(), User.id)
    )
    channels = [
        SubscribedChannelEntry(subscribed_at=created_at, channel=ChannelSummary.model_validate(channel))
        for created_at, channel in result.all()
    ]
    return respond(200, "Subscribed channels fetched successfully", channels)
