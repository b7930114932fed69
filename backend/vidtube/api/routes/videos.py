"""
Vidtube API — Video routes.

Listing, upload, edit, delete and publish toggling. Only the owner may
change a video; unpublished videos are invisible to everyone else.
"""
from __future__ import annotations

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.config import Settings, get_settings
from vidtube.core.database import get_db
from vidtube.core.errors import ApiError, ForbiddenFault, ValidationFault
from vidtube.core.identifiers import parse_id
from vidtube.core.pagination import PageParams, page_params, paginate
from vidtube.core.responses import respond
from vidtube.core.security import get_current_user
from vidtube.models.models import User, Video
from vidtube.schemas.schemas import VideoSchema
from vidtube.services.media.media_store import MediaStore, get_media_store, has_file, store_upload
from vidtube.services.videos.visibility import load_visible_video

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/videos", tags=["Videos"])

SORT_COLUMNS = {
    "createdAt": Video.created_at,
    "views": Video.views,
    "duration": Video.duration,
    "title": Video.title,
}
SORT_TYPES = ("asc", "desc")


async def _owned_video(db: AsyncSession, raw_id: str, actor_id: uuid.UUID) -> Video:
    video = await load_visible_video(db, parse_id(raw_id, "video"), actor_id)
    if video.owner_id != actor_id:
        raise ForbiddenFault(message="You are not allowed to modify this video")
    return video


# ═══════════════════════════════════════════════════════════════════════
# Listing
# ═══════════════════════════════════════════════════════════════════════

@router.get("")
async def list_videos(
    params: PageParams = Depends(page_params),
    query: Optional[str] = None,
    user_id: Optional[str] = Query(None, alias="userId"),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_type: str = Query("desc", alias="sortType"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Published videos, plus the caller's drafts when ``userId`` is the caller."""
    if sort_by not in SORT_COLUMNS:
        raise ValidationFault(message=f"sortBy must be one of {', '.join(SORT_COLUMNS)}")
    if sort_type not in SORT_TYPES:
        raise ValidationFault(message="sortType must be 'asc' or 'desc'")

    stmt = select(Video)
    if user_id:
        owner_id = parse_id(user_id, "user")
        stmt = stmt.where(Video.owner_id == owner_id)
        if owner_id != user.id:
            stmt = stmt.where(Video.is_published.is_(True))
    else:
        stmt = stmt.where(Video.is_published.is_(True))

    if query and query.strip():
        term = query.strip()
        stmt = stmt.where(or_(
            Video.title.icontains(term, autoescape=True),
            Video.description.icontains(term, autoescape=True),
        ))

    column = SORT_COLUMNS[sort_by]
    stmt = stmt.order_by(column.asc() if sort_type == "asc" else column.desc(), Video.id)

    page = await paginate(db, stmt, params, transform=VideoSchema.model_validate)
    return respond(200, "Videos fetched successfully", page)


# ═══════════════════════════════════════════════════════════════════════
# Upload / edit
# ═══════════════════════════════════════════════════════════════════════

@router.post("")
async def publish_video(
    title: str = Form(""),
    description: str = Form(""),
    duration: float = Form(0.0, ge=0),
    video_file: Optional[UploadFile] = File(None, alias="videoFile"),
    thumbnail: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    store: MediaStore = Depends(get_media_store),
    settings: Settings = Depends(get_settings),
):
    if not title.strip() or not description.strip():
        raise ValidationFault(message="All fields are required")
    if not has_file(video_file):
        raise ValidationFault(message="Video file is required")

    owner_id = user.id
    video_media = await store_upload(store, video_file, settings, folder="videos")
    thumb_media = None
    if has_file(thumbnail):
        try:
            thumb_media = await store_upload(store, thumbnail, settings, folder="thumbnails")
        except ApiError:
            await store.delete(video_media.public_id)
            raise

    video = Video(
        owner_id=owner_id,
        title=title.strip(),
        description=description.strip(),
        video_file=video_media.url,
        media_public_id=video_media.public_id,
        thumbnail=thumb_media.url if thumb_media else None,
        thumbnail_public_id=thumb_media.public_id if thumb_media else None,
        duration=duration,
        views=0,
        is_published=True,
    )
    db.add(video)
    await db.commit()

    logger.info(f"Video {video.id} published by {owner_id}")
    return respond(201, "Video published successfully", VideoSchema.model_validate(video))


@router.get("/{video_id}")
async def get_video(
    video_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    video = await load_visible_video(db, parse_id(video_id, "video"), user.id)
    return respond(200, "Video fetched successfully", VideoSchema.model_validate(video))


@router.patch("/{video_id}")
async def update_video(
    video_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    store: MediaStore = Depends(get_media_store),
    settings: Settings = Depends(get_settings),
):
    """Change title, description or thumbnail. Omitted fields stay as they are."""
    video = await _owned_video(db, video_id, user.id)

    if title is None and description is None and not has_file(thumbnail):
        raise ValidationFault(message="Provide a title, description or thumbnail to update")
    if title is not None and not title.strip():
        raise ValidationFault(message="Title must not be blank")

    old_thumbnail_id = None
    if title is not None:
        video.title = title.strip()
    if description is not None:
        video.description = description.strip()
    if has_file(thumbnail):
        media = await store_upload(store, thumbnail, settings, folder="thumbnails")
        old_thumbnail_id = video.thumbnail_public_id
        video.thumbnail = media.url
        video.thumbnail_public_id = media.public_id

    await db.commit()

    if old_thumbnail_id:
        try:
            await store.delete(old_thumbnail_id)
        except ApiError as exc:
            logger.warning(f"Could not remove replaced thumbnail {old_thumbnail_id}: {exc.message}")

    return respond(200, "Video updated successfully", VideoSchema.model_validate(video))


@router.delete("/{video_id}")
async def delete_video(
    video_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    store: MediaStore = Depends(get_media_store),
):
    """Remote media goes first; if that fails the row is kept."""
    video = await _owned_video(db, video_id, user.id)

    for public_id in (video.media_public_id, video.thumbnail_public_id):
        if public_id:
            await store.delete(public_id)

    await db.delete(video)
    await db.commit()

    logger.info(f"Video {video.id} deleted by {user.id}")
    return respond(200, "Video deleted successfully", {})


@router.patch("/toggle/publish/{video_id}")
async def toggle_publish_status(
    video_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    video = await _owned_video(db, video_id, user.id)
    video.is_published = not video.is_published
    await db.commit()

    message = "Video published successfully" if video.is_published else "Video unpublished successfully"
    return respond(200, message, VideoSchema.model_validate(video))
