"""
Vidtube — Main FastAPI Application

Video sharing backend: users/channels, videos, tweets, comments, likes,
playlists, subscriptions and a per-channel dashboard.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from vidtube.api.routes import (
    comments,
    dashboard,
    healthcheck,
    likes,
    playlists,
    subscriptions,
    tweets,
    users,
    videos,
)
from vidtube.core.boundary import install_boundary
from vidtube.core.config import Settings, get_settings
from vidtube.core.database import close_db, init_db
from vidtube.core.logging import configure_logging
from vidtube.core.responses import respond
from vidtube.services.media.media_store import MediaStore, MediaStoreConfig

logger = structlog.get_logger()


# ── Lifespan ─────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown hooks."""
    settings: Settings = app.state.settings
    logger.info(f"Starting {settings.app_name}", version=settings.app_version)

    await init_db()

    store = MediaStore(MediaStoreConfig.from_settings(settings))
    try:
        await store.ensure_bucket()
    except (BotoCoreError, ClientError) as e:
        logger.warning(f"Media bucket check failed (uploads will fail until the store is reachable): {e}")
    app.state.media_store = store

    logger.info(f"{settings.app_name} ready", api_prefix=settings.api_prefix)

    yield

    await close_db()
    logger.info(f"Shutting down {settings.app_name}")


# ── App ──────────────────────────────────────────────────────────────────

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Video sharing platform API",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    install_boundary(app, settings)

    # CORS (outermost, so error envelopes carry its headers)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Prometheus metrics
    app.mount("/metrics", make_asgi_app())

    # ── Routes ───────────────────────────────────────────────────────────
    for module in (healthcheck, users, videos, tweets, comments, likes, playlists, subscriptions, dashboard):
        app.include_router(module.router, prefix=settings.api_prefix)

    @app.get("/")
    async def root():
        return respond(200, "OK", {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
        })

    return app


app = create_app()
