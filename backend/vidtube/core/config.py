"""
Vidtube Core Settings.

Every tunable lives here and is read from the environment (prefix
``VIDTUBE_``) or a local ``.env`` file.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8",
        env_prefix="VIDTUBE_", case_sensitive=False,
    )

    # ── App ──────────────────────────────────────────────────────────────
    app_name: str = "Vidtube"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False
    api_prefix: str = "/api/v1"
    cors_origins: List[str] = ["http://localhost:3000"]

    # ── PostgreSQL ───────────────────────────────────────────────────────
    db_host: str = "postgres"
    db_port: int = 5432
    db_user: str = "vidtube"
    db_password: str = "vidtube_secret"
    db_name: str = "vidtube"
    db_echo: bool = False
    # Full SQLAlchemy URL; overrides the db_* parts when set
    database_url_override: Optional[str] = None

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # ── Auth ─────────────────────────────────────────────────────────────
    secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    access_cookie_name: str = "accessToken"
    cookie_secure: bool = False

    # ── MinIO / S3 (media host) ──────────────────────────────────────────
    minio_endpoint: str = "minio:9000"
    minio_access_key: str = "vidtube_minio"
    minio_secret_key: str = "vidtube_minio_secret"
    minio_bucket: str = "vidtube-media"
    minio_secure: bool = False
    # Base URL clients use to fetch objects; defaults to the endpoint itself
    media_public_base_url: Optional[str] = None

    # ── Limits ───────────────────────────────────────────────────────────
    default_page_size: int = 10
    max_page_size: int = 100
    max_upload_bytes: int = 100 * 1024 * 1024
    max_json_body_bytes: int = 1024 * 1024
    request_timeout_seconds: float = 30.0

    # ── Paths ────────────────────────────────────────────────────────────
    temp_dir: str = "/tmp/vidtube"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
