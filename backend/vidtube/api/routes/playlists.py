"""
Vidtube API — Playlist routes.

A playlist is an ordered list of video ids owned by one user. Items are
appended at the end; removing a video that is not in the playlist is a
no-op.
"""
from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from typing import Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.database import get_db
from vidtube.core.errors import ConflictFault, ForbiddenFault, NotFoundFault, ValidationFault
from vidtube.core.identifiers import parse_id
from vidtube.core.responses import respond
from vidtube.core.security import get_current_user
from vidtube.models.models import Playlist, PlaylistItem, User
from vidtube.schemas.schemas import PlaylistCreate, PlaylistSchema, PlaylistUpdate
from vidtube.services.videos.visibility import load_visible_video

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/playlist", tags=["Playlists"])


async def _video_ids(db: AsyncSession, playlist_ids: List[uuid.UUID]) -> Dict[uuid.UUID, List[uuid.UUID]]:
    """Batch fetch ordered video ids for several playlists."""
    grouped: Dict[uuid.UUID, List[uuid.UUID]] = defaultdict(list)
    if not playlist_ids:
        return grouped
    result = await db.execute(
        select(PlaylistItem.playlist_id, PlaylistItem.video_id)
        .where(PlaylistItem.playlist_id.in_(playlist_ids))
        .order_by(PlaylistItem.position, PlaylistItem.added_at)
    )
    for playlist_id, video_id in result:
        grouped[playlist_id].append(video_id)
    return grouped


async def _to_schema(db: AsyncSession, playlist: Playlist) -> PlaylistSchema:
    videos = await _video_ids(db, [playlist.id])
    schema = PlaylistSchema.model_validate(playlist)
    schema.videos = videos.get(playlist.id, [])
    return schema


async def _load_playlist(db: AsyncSession, raw_id: str) -> Playlist:
    playlist = await db.get(Playlist, parse_id(raw_id, "playlist"))
    if playlist is None:
        raise NotFoundFault(message="Playlist not found")
    return playlist


async def _owned_playlist(db: AsyncSession, raw_id: str, actor_id: uuid.UUID) -> Playlist:
    playlist = await _load_playlist(db, raw_id)
    if playlist.owner_id != actor_id:
        raise ForbiddenFault(message="You are not allowed to modify this playlist")
    return playlist


# ═══════════════════════════════════════════════════════════════════════
# Playlist CRUD
# ═══════════════════════════════════════════════════════════════════════

@router.post("")
async def create_playlist(
    body: PlaylistCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    playlist = Playlist(owner_id=user.id, name=body.name.strip(), description=body.description.strip())
    db.add(playlist)
    await db.commit()
    return respond(201, "Playlist created successfully", PlaylistSchema.model_validate(playlist))


@router.get("/user/{user_id}")
async def get_user_playlists(
    user_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    owner_id = parse_id(user_id, "user")
    if await db.scalar(select(User.id).where(User.id == owner_id)) is None:
        raise NotFoundFault(message="User not found")

    result = await db.execute(
        select(Playlist)
        .where(Playlist.owner_id == owner_id)
        .order_by(Playlist.created_at.desc(), Playlist.id)
    )
    playlists = result.scalars().all()
    videos = await _video_ids(db, [p.id for p in playlists])

    payload = []
    for p in playlists:
        schema = PlaylistSchema.model_validate(p)
        schema.videos = videos.get(p.id, [])
        payload.append(schema)
    return respond(200, "User playlists fetched successfully", payload)


@router.get("/{playlist_id}")
async def get_playlist(
    playlist_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    playlist = await _load_playlist(db, playlist_id)
    return respond(200, "Playlist fetched successfully", await _to_schema(db, playlist))


@router.patch("/{playlist_id}")
async def update_playlist(
    playlist_id: str,
    body: PlaylistUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if body.name is None and body.description is None:
        raise ValidationFault(message="Provide a name or description to update")

    playlist = await _owned_playlist(db, playlist_id, user.id)
    if body.name is not None:
        playlist.name = body.name.strip()
    if body.description is not None:
        playlist.description = body.description.strip()
    await db.commit()
    return respond(200, "Playlist updated successfully", await _to_schema(db, playlist))


@router.delete("/{playlist_id}")
async def delete_playlist(
    playlist_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    playlist = await _owned_playlist(db, playlist_id, user.id)
    await db.delete(playlist)
    await db.commit()
    return respond(200, "Playlist deleted successfully", None)


# ═══════════════════════════════════════════════════════════════════════
# Items
# ═══════════════════════════════════════════════════════════════════════

@router.patch("/add/{video_id}/{playlist_id}")
async def add_video_to_playlist(
    video_id: str,
    playlist_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    vid = parse_id(video_id, "video")
    playlist = await _owned_playlist(db, playlist_id, user.id)
    pid = playlist.id
    await load_visible_video(db, vid, user.id)

    already = await db.scalar(
        select(PlaylistItem.id).where(PlaylistItem.playlist_id == pid, PlaylistItem.video_id == vid)
    )
    if already is not None:
        raise ConflictFault(message="Video already exists in playlist")

    last_position = await db.scalar(
        select(func.max(PlaylistItem.position)).where(PlaylistItem.playlist_id == pid)
    )
    db.add(PlaylistItem(
        playlist_id=pid,
        video_id=vid,
        position=0 if last_position is None else last_position + 1,
    ))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictFault(message="Video already exists in playlist")

    return respond(200, "Video added to playlist successfully", await _to_schema(db, playlist))


@router.patch("/remove/{video_id}/{playlist_id}")
async def remove_video_from_playlist(
    video_id: str,
    playlist_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    vid = parse_id(video_id, "video")
    playlist = await _owned_playlist(db, playlist_id, user.id)

    result = await db.execute(
        delete(PlaylistItem).where(
            PlaylistItem.playlist_id == playlist.id, PlaylistItem.video_id == vid,
        )
    )
    await db.commit()
    if result.rowcount == 0:
        logger.debug(f"Video {vid} was not in playlist {playlist.id}")

    return respond(200, "Video removed from playlist successfully", await _to_schema(db, playlist))
