"""
Vidtube API Schemas — Pydantic v2 models for request/response payloads.

Payloads go over the wire in camelCase; Python code uses snake_case.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _not_blank(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError("must not be blank")
    return value


# ═══════════════════════════════════════════════════════════════════════
# Pagination
# ═══════════════════════════════════════════════════════════════════════

class Page(CamelModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    limit: int


# ═══════════════════════════════════════════════════════════════════════
# Users
# ═══════════════════════════════════════════════════════════════════════

class UserSchema(CamelModel):
    id: uuid.UUID
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: Optional[str] = None
    created_at: datetime


class ChannelSummary(CamelModel):
    """Public slice of a user, embedded in subscriber/subscription listings."""
    id: uuid.UUID
    username: str
    full_name: str
    avatar: str


class LoginRequest(CamelModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: str = Field(..., min_length=1)


class LoginResponse(CamelModel):
    user: UserSchema
    access_token: str


# ═══════════════════════════════════════════════════════════════════════
# Videos
# ═══════════════════════════════════════════════════════════════════════

class VideoSchema(CamelModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    description: str
    video_file: str
    thumbnail: Optional[str] = None
    duration: float = 0.0
    views: int = 0
    is_published: bool = True
    created_at: datetime
    updated_at: datetime


# ═══════════════════════════════════════════════════════════════════════
# Tweets / Comments
# ═══════════════════════════════════════════════════════════════════════

class ContentBody(CamelModel):
    content: str = Field(..., max_length=10_000)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        return _not_blank(value)


class TweetSchema(CamelModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    content: str
    created_at: datetime
    updated_at: datetime


class CommentSchema(CamelModel):
    id: uuid.UUID
    video_id: uuid.UUID
    owner_id: uuid.UUID
    content: str
    created_at: datetime
    updated_at: datetime


# ═══════════════════════════════════════════════════════════════════════
# Likes / Subscriptions
# ═══════════════════════════════════════════════════════════════════════

class LikeSchema(CamelModel):
    id: uuid.UUID
    liked_by: uuid.UUID
    video_id: Optional[uuid.UUID] = None
    comment_id: Optional[uuid.UUID] = None
    tweet_id: Optional[uuid.UUID] = None
    created_at: datetime


class SubscriptionSchema(CamelModel):
    id: uuid.UUID
    subscriber_id: uuid.UUID
    channel_id: uuid.UUID
    created_at: datetime


class SubscriberEntry(CamelModel):
    subscribed_at: datetime
    subscriber: ChannelSummary


class SubscribedChannelEntry(CamelModel):
    subscribed_at: datetime
    channel: ChannelSummary


# ═══════════════════════════════════════════════════════════════════════
# Playlists
# ═══════════════════════════════════════════════════════════════════════

class PlaylistCreate(CamelModel):
    name: str = Field(..., max_length=256)
    description: str = ""

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        return _not_blank(value)


class PlaylistUpdate(CamelModel):
    name: Optional[str] = Field(None, max_length=256)
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        return _not_blank(value)


class PlaylistSchema(CamelModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    name: str
    description: str
    videos: List[uuid.UUID] = []
    created_at: datetime
    updated_at: datetime


# ═══════════════════════════════════════════════════════════════════════
# Dashboard
# ═══════════════════════════════════════════════════════════════════════

class ChannelStats(CamelModel):
    total_subscribers: int = 0
    total_videos: int = 0
    total_views: int = 0
    total_likes: int = 0


class HealthStatus(CamelModel):
    status: str = "ok"
    version: str
