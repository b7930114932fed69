"""
Vidtube API — Tweet routes.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.database import get_db
from vidtube.core.errors import ForbiddenFault, NotFoundFault
from vidtube.core.identifiers import parse_id
from vidtube.core.responses import respond
from vidtube.core.security import get_current_user
from vidtube.models.models import Tweet, User
from vidtube.schemas.schemas import ContentBody, TweetSchema

router = APIRouter(prefix="/tweets", tags=["Tweets"])


async def _owned_tweet(db: AsyncSession, raw_id: str, actor_id: uuid.UUID) -> Tweet:
    tweet = await db.get(Tweet, parse_id(raw_id, "tweet"))
    if tweet is None:
        raise NotFoundFault(message="Tweet not found")
    if tweet.owner_id != actor_id:
        raise ForbiddenFault(message="You are not allowed to modify this tweet")
    return tweet


@router.post("")
async def create_tweet(
    body: ContentBody,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tweet = Tweet(owner_id=user.id, content=body.content.strip())
    db.add(tweet)
    await db.commit()
    return respond(201, "Tweet created successfully", TweetSchema.model_validate(tweet))


@router.get("/user/{user_id}")
async def get_user_tweets(
    user_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """All tweets of one user, newest first."""
    owner_id = parse_id(user_id, "user")
    if await db.scalar(select(User.id).where(User.id == owner_id)) is None:
        raise NotFoundFault(message="User not found")

    result = await db.execute(
        select(Tweet)
        .where(Tweet.owner_id == owner_id)
        .order_by(Tweet.created_at.desc(), Tweet.id)
    )
    tweets = [TweetSchema.model_validate(t) for t in result.scalars().all()]
    return respond(200, "Tweets fetched successfully", tweets)


@router.patch("/{tweet_id}")
async def update_tweet(
    tweet_id: str,
    body: ContentBody,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tweet = await _owned_tweet(db, tweet_id, user.id)
    tweet.content = body.content.strip()
    await db.commit()
    return respond(200, "Tweet updated successfully", TweetSchema.model_validate(tweet))


@router.delete("/{tweet_id}")
async def delete_tweet(
    tweet_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tweet = await _owned_tweet(db, tweet_id, user.id)
    await db.delete(tweet)
    await db.commit()
    return respond(200, "Tweet deleted successfully", {})
