"""
Vidtube API — User routes.

Registration (multipart, with avatar upload), login, logout and the
current-user lookup. Login returns the access token in the body and as an
http-only cookie; logout bumps the user's token version so every token issued
before it is rejected.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.config import Settings, get_settings
from vidtube.core.database import get_db
from vidtube.core.errors import ApiError, AuthFault, ConflictFault, ValidationFault
from vidtube.core.responses import respond
from vidtube.core.security import (
    TokenVerifier,
    get_current_user,
    get_token_verifier,
    hash_password,
    verify_password,
)
from vidtube.models.models import User
from vidtube.schemas.schemas import LoginRequest, LoginResponse, UserSchema
from vidtube.services.media.media_store import (
    MediaStore,
    UploadedMedia,
    get_media_store,
    has_file,
    store_upload,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


async def _discard_media(store: MediaStore, *media: Optional[UploadedMedia]) -> None:
    """Best-effort removal of uploads whose database row was never written."""
    for item in media:
        if item is None:
            continue
        try:
            await store.delete(item.public_id)
        except ApiError as exc:
            logger.warning(f"Could not discard orphaned upload {item.public_id}: {exc.message}")


# ═══════════════════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════════════════

@router.post("/register")
async def register_user(
    full_name: str = Form("", alias="fullName"),
    email: str = Form(""),
    username: str = Form(""),
    password: str = Form(""),
    avatar: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    db: AsyncSession = Depends(get_db),
    store: MediaStore = Depends(get_media_store),
    settings: Settings = Depends(get_settings),
):
    """Create an account. The avatar is required, the cover image is not."""
    if any(not value.strip() for value in (full_name, email, username, password)):
        raise ValidationFault(message="All fields are required")
    if "@" not in email:
        raise ValidationFault(message="Invalid email address")
    if not has_file(avatar):
        raise ValidationFault(message="Avatar file is required")

    username = username.strip().lower()
    email = email.strip().lower()

    existing = await db.scalar(
        select(User.id).where(or_(User.username == username, User.email == email))
    )
    if existing is not None:
        raise ConflictFault(message="User with email or username already exists")

    avatar_media = await store_upload(store, avatar, settings, folder="avatars")
    cover_media = None
    if has_file(cover_image):
        try:
            cover_media = await store_upload(store, cover_image, settings, folder="covers")
        except ApiError:
            await _discard_media(store, avatar_media)
            raise

    user = User(
        username=username,
        email=email,
        full_name=full_name.strip(),
        avatar=avatar_media.url,
        avatar_public_id=avatar_media.public_id,
        cover_image=cover_media.url if cover_media else None,
        cover_image_public_id=cover_media.public_id if cover_media else None,
        hashed_password=hash_password(password),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        await _discard_media(store, avatar_media, cover_media)
        raise ConflictFault(message="User with email or username already exists")

    logger.info(f"Registered user {user.id} ({username})")
    return respond(201, "User registered successfully", UserSchema.model_validate(user))


# ═══════════════════════════════════════════════════════════════════════
# Session
# ═══════════════════════════════════════════════════════════════════════

@router.post("/login")
async def login_user(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
    verifier: TokenVerifier = Depends(get_token_verifier),
    settings: Settings = Depends(get_settings),
):
    username = (body.username or "").strip().lower()
    email = (body.email or "").strip().lower()
    if not username and not email:
        raise ValidationFault(message="Username or email is required")

    condition = User.username == username if username else User.email == email
    user = await db.scalar(select(User).where(condition))
    if user is None or not verify_password(body.password, user.hashed_password):
        raise AuthFault(message="Invalid user credentials")

    token = verifier.issue(user)
    response = respond(
        200,
        "User logged in successfully",
        LoginResponse(user=UserSchema.model_validate(user), access_token=token),
    )
    response.set_cookie(
        settings.access_cookie_name,
        token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    return response


@router.post("/logout")
async def logout_user(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user.token_version += 1
    await db.commit()
    logger.info(f"User {user.id} logged out")

    response = respond(200, "User logged out successfully", {})
    response.delete_cookie(
        settings.access_cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    return response


@router.get("/current-user")
async def current_user(user: User = Depends(get_current_user)):
    return respond(200, "Current user fetched successfully", UserSchema.model_validate(user))
