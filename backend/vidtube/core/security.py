"""
Vidtube Auth — password hashing, access tokens and the ``get_current_user``
dependency.

Tokens are HS256 JWTs carrying the user id (``sub``) and the user's token
version (``ver``). Logging out bumps the stored version, so every token
minted before the logout stops verifying.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, Request
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.config import Settings, get_settings
from vidtube.core.database import get_db
from vidtube.core.errors import AuthFault
from vidtube.models.models import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


@dataclass(frozen=True)
class TokenClaims:
    user_id: uuid.UUID
    version: int


class TokenVerifier:
    """Mints and checks access tokens with the configured secret."""

    def __init__(self, settings: Settings):
        self._secret = settings.secret_key
        self._algorithm = settings.jwt_algorithm
        self._lifetime = timedelta(minutes=settings.access_token_expire_minutes)

    def issue(self, user: User) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user.id),
            "ver": user.token_version,
            "iat": now,
            "exp": now + self._lifetime,
            "type": "access",
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthFault(message="Access token expired")
        except jwt.PyJWTError:
            raise AuthFault(message="Invalid access token")

        if payload.get("type") != "access":
            raise AuthFault(message="Invalid access token")
        try:
            return TokenClaims(user_id=uuid.UUID(str(payload["sub"])), version=int(payload.get("ver", 0)))
        except (KeyError, ValueError):
            raise AuthFault(message="Invalid access token")


def get_token_verifier(settings: Settings = Depends(get_settings)) -> TokenVerifier:
    return TokenVerifier(settings)


def extract_token(request: Request, cookie_name: str) -> Optional[str]:
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        token = auth[7:].strip()
        if token:
            return token
    return request.cookies.get(cookie_name) or None


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    verifier: TokenVerifier = Depends(get_token_verifier),
    settings: Settings = Depends(get_settings),
) -> User:
    """Resolve the authenticated actor or fail with a 401."""
    token = extract_token(request, settings.access_cookie_name)
    if not token:
        raise AuthFault(message="Unauthorized request")

    claims = verifier.verify(token)
    user = await db.get(User, claims.user_id)
    if not user:
        raise AuthFault(message="Invalid access token")
    if user.token_version != claims.version:
        logger.info(f"Rejected revoked token for user {user.id}")
        raise AuthFault(message="Access token revoked")
    return user
