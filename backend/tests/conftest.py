"""Shared fixtures: in-memory SQLite, a fake object store and an HTTP client."""
from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from typing import Dict

# Must be set before anything under ``vidtube`` reads the settings
os.environ.setdefault("VIDTUBE_DATABASE_URL_OVERRIDE", "sqlite+aiosqlite://")
os.environ.setdefault("VIDTUBE_TEMP_DIR", tempfile.mkdtemp(prefix="vidtube-tests-"))
os.environ.setdefault("VIDTUBE_SECRET_KEY", "test-secret")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fakes.fake_s3_client import FakeS3Client
from vidtube.core.config import get_settings
from vidtube.core.database import Base, get_db
from vidtube.main import create_app
from vidtube.models import models  # noqa: F401
from vidtube.services.media.media_store import MediaStore, MediaStoreConfig, get_media_store

API = "/api/v1"


@dataclass
class Actor:
    id: str
    username: str
    token: str

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def s3_client() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def media_store(s3_client) -> MediaStore:
    return MediaStore(MediaStoreConfig.from_settings(get_settings()), client=s3_client)


@pytest_asyncio.fixture
async def client(session_factory, media_store):
    app = create_app()

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except BaseException:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_store] = lambda: media_store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# ── Helpers ──────────────────────────────────────────────────────────────

def avatar_file(name: str = "avatar.png") -> tuple:
    return (name, b"\x89PNG\r\n\x1a\nfake-image-bytes", "image/png")


async def register(client: AsyncClient, username: str, password: str = "s3cret-pass", **extra_files):
    files = {"avatar": avatar_file()}
    files.update(extra_files)
    return await client.post(
        f"{API}/users/register",
        data={
            "fullName": username.title(),
            "email": f"{username}@example.com",
            "username": username,
            "password": password,
        },
        files=files,
    )


async def login(client: AsyncClient, username: str, password: str = "s3cret-pass") -> str:
    resp = await client.post(f"{API}/users/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    # Tests authenticate with explicit headers only
    client.cookies.clear()
    return resp.json()["data"]["accessToken"]


async def make_actor(client: AsyncClient, username: str) -> Actor:
    resp = await register(client, username)
    assert resp.status_code == 201, resp.text
    token = await login(client, username)
    return Actor(id=resp.json()["data"]["id"], username=username, token=token)


async def upload_video(client: AsyncClient, actor: Actor, title: str = "First video", **fields) -> dict:
    data = {"title": title, "description": f"About {title}"}
    data.update({k: str(v) for k, v in fields.items()})
    resp = await client.post(
        f"{API}/videos",
        data=data,
        files={"videoFile": ("clip.mp4", b"\x00\x00\x00\x18ftypmp42fake", "video/mp4")},
        headers=actor.headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest_asyncio.fixture
async def alice(client) -> Actor:
    return await make_actor(client, "alice")


@pytest_asyncio.fixture
async def bob(client) -> Actor:
    return await make_actor(client, "bob")
