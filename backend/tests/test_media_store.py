"""Media store: uploads, deletes and staged file cleanup."""
from __future__ import annotations

import io
from pathlib import Path

import pytest
from fastapi import UploadFile

from fakes.fake_s3_client import FakeS3Client
from vidtube.core.config import Settings
from vidtube.core.errors import PayloadTooLargeFault, UpstreamFault
from vidtube.services.media.media_store import (
    MediaStore,
    MediaStoreConfig,
    stage_upload,
    store_upload,
)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(temp_dir=str(tmp_path / "staging"), max_upload_bytes=64)


def _config(**overrides) -> MediaStoreConfig:
    values = dict(
        endpoint="minio:9000",
        access_key="key",
        secret_key="secret",
        bucket="media",
        secure=False,
        public_base_url=None,
    )
    values.update(overrides)
    return MediaStoreConfig(**values)


def _upload_file(content: bytes, filename: str = "clip.MP4") -> UploadFile:
    return UploadFile(file=io.BytesIO(content), filename=filename)


def test_public_url_uses_base_url_when_configured():
    store = MediaStore(_config(public_base_url="https://cdn.example.com/"), client=FakeS3Client())

    assert store.public_url("videos/a.mp4") == "https://cdn.example.com/media/videos/a.mp4"


def test_public_url_falls_back_to_endpoint():
    store = MediaStore(_config(secure=True), client=FakeS3Client())

    assert store.public_url("x.png") == "https://minio:9000/media/x.png"


@pytest.mark.asyncio
async def test_upload_removes_local_file_on_success(tmp_path):
    client = FakeS3Client()
    store = MediaStore(_config(), client=client)
    local = tmp_path / "thumb.png"
    local.write_bytes(b"png-bytes")

    media = await store.upload(local, folder="thumbnails")

    assert not local.exists()
    assert media.public_id.startswith("thumbnails/")
    assert media.public_id.endswith(".png")
    assert client.objects[media.public_id] == b"png-bytes"
    assert client.content_types[media.public_id] == "image/png"
    assert media.url == f"http://minio:9000/media/{media.public_id}"


@pytest.mark.asyncio
async def test_upload_removes_local_file_on_failure(tmp_path):
    store = MediaStore(_config(), client=FakeS3Client(fail_uploads=True))
    local = tmp_path / "clip.mp4"
    local.write_bytes(b"video")

    with pytest.raises(UpstreamFault):
        await store.upload(local)

    assert not local.exists()


@pytest.mark.asyncio
async def test_upload_of_missing_file_is_upstream_fault(tmp_path):
    store = MediaStore(_config(), client=FakeS3Client())

    with pytest.raises(UpstreamFault):
        await store.upload(tmp_path / "gone.mp4")


@pytest.mark.asyncio
async def test_delete_failure_is_upstream_fault():
    store = MediaStore(_config(), client=FakeS3Client(fail_deletes=True))

    with pytest.raises(UpstreamFault):
        await store.delete("videos/a.mp4")


@pytest.mark.asyncio
async def test_ensure_bucket_creates_missing_bucket():
    client = FakeS3Client()
    store = MediaStore(_config(), client=client)

    await store.ensure_bucket()
    await store.ensure_bucket()

    assert client.buckets == {"media"}


@pytest.mark.asyncio
async def test_stage_upload_writes_into_temp_dir(settings):
    staged = await stage_upload(_upload_file(b"abc"), settings)

    assert staged.parent == Path(settings.temp_dir)
    assert staged.suffix == ".mp4"
    assert staged.read_bytes() == b"abc"


@pytest.mark.asyncio
async def test_stage_upload_over_limit_is_413_and_leaves_nothing(settings):
    with pytest.raises(PayloadTooLargeFault):
        await stage_upload(_upload_file(b"x" * 65), settings)

    assert list(Path(settings.temp_dir).iterdir()) == []


@pytest.mark.asyncio
async def test_store_upload_cleans_staging_dir(settings):
    client = FakeS3Client()
    store = MediaStore(_config(), client=client)

    media = await store_upload(store, _upload_file(b"abc"), settings, folder="videos")

    assert client.objects[media.public_id] == b"abc"
    assert list(Path(settings.temp_dir).iterdir()) == []


@pytest.mark.asyncio
async def test_store_upload_failure_cleans_staging_dir(settings):
    store = MediaStore(_config(), client=FakeS3Client(fail_uploads=True))

    with pytest.raises(UpstreamFault):
        await store_upload(store, _upload_file(b"abc"), settings, folder="videos")

    assert list(Path(settings.temp_dir).iterdir()) == []
