"""
Vidtube API — Comment routes.

Comments hang off a video. Listing is paginated, newest first; editing and
deleting are restricted to the comment's author.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.database import get_db
from vidtube.core.errors import ForbiddenFault, NotFoundFault
from vidtube.core.identifiers import parse_id
from vidtube.core.pagination import PageParams, page_params, paginate
from vidtube.core.responses import respond
from vidtube.core.security import get_current_user
from vidtube.models.models import Comment, User
from vidtube.schemas.schemas import CommentSchema, ContentBody
from vidtube.services.videos.visibility import load_visible_video

router = APIRouter(prefix="/comments", tags=["Comments"])


async def _require_video(db: AsyncSession, raw_id: str, actor_id: uuid.UUID) -> uuid.UUID:
    video = await load_visible_video(db, parse_id(raw_id, "video"), actor_id)
    return video.id


async def _owned_comment(db: AsyncSession, raw_id: str, actor_id: uuid.UUID) -> Comment:
    comment = await db.get(Comment, parse_id(raw_id, "comment"))
    if comment is None:
        raise NotFoundFault(message="Comment not found")
    if comment.owner_id != actor_id:
        raise ForbiddenFault(message="You are not allowed to modify this comment")
    return comment


@router.get("/{video_id}")
async def list_video_comments(
    video_id: str,
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    vid = await _require_video(db, video_id, user.id)
    query = (
        select(Comment)
        .where(Comment.video_id == vid)
        .order_by(Comment.created_at.desc(), Comment.id)
    )
    page = await paginate(db, query, params, transform=CommentSchema.model_validate)
    return respond(200, "Comments fetched successfully", page)


@router.post("/{video_id}")
async def add_comment(
    video_id: str,
    body: ContentBody,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    vid = await _require_video(db, video_id, user.id)
    comment = Comment(video_id=vid, owner_id=user.id, content=body.content.strip())
    db.add(comment)
    await db.commit()
    return respond(201, "Comment added successfully", CommentSchema.model_validate(comment))


@router.patch("/c/{comment_id}")
async def update_comment(
    comment_id: str,
    body: ContentBody,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = await _owned_comment(db, comment_id, user.id)
    comment.content = body.content.strip()
    await db.commit()
    return respond(200, "Comment updated successfully", CommentSchema.model_validate(comment))


@router.delete("/c/{comment_id}")
async def delete_comment(
    comment_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Returns the comment as it was before deletion."""
    comment = await _owned_comment(db, comment_id, user.id)
    snapshot = CommentSchema.model_validate(comment)
    await db.delete(comment)
    await db.commit()
    return respond(200, "Comment deleted successfully", snapshot)
