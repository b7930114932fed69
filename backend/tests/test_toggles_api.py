"""Like and subscription toggles."""
from __future__ import annotations

import uuid

import pytest
from sqlalchemy import func, select

from conftest import API, upload_video
from vidtube.models.models import Like, Subscription
from vidtube.services.toggle.toggle_service import toggle_service


async def _like_count(session_factory) -> int:
    async with session_factory() as session:
        return await session.scalar(select(func.count(Like.id)))


@pytest.mark.asyncio
async def test_video_like_alternates(client, alice, bob, session_factory):
    video = await upload_video(client, alice)
    url = f"{API}/likes/toggle/v/{video['id']}"

    first = await client.post(url, headers=bob.headers)
    assert first.status_code == 201
    assert first.json()["message"] == "Video liked successfully"
    assert first.json()["data"]["videoId"] == video["id"]
    assert first.json()["data"]["likedBy"] == bob.id
    assert await _like_count(session_factory) == 1

    second = await client.post(url, headers=bob.headers)
    assert second.status_code == 200
    assert second.json()["message"] == "Video unliked successfully"
    assert second.json()["data"] == {}
    assert await _like_count(session_factory) == 0

    third = await client.post(url, headers=bob.headers)
    assert third.status_code == 201
    assert await _like_count(session_factory) == 1


@pytest.mark.asyncio
async def test_comment_and_tweet_likes(client, alice, bob):
    video = await upload_video(client, alice)
    comment = (await client.post(
        f"{API}/comments/{video['id']}", json={"content": "nice"}, headers=alice.headers,
    )).json()["data"]
    tweet = (await client.post(f"{API}/tweets", json={"content": "hey"}, headers=alice.headers)).json()["data"]

    c = await client.post(f"{API}/likes/toggle/c/{comment['id']}", headers=bob.headers)
    t = await client.post(f"{API}/likes/toggle/t/{tweet['id']}", headers=bob.headers)

    assert c.status_code == 201 and c.json()["message"] == "Comment liked successfully"
    assert t.status_code == 201 and t.json()["message"] == "Tweet liked successfully"
    assert t.json()["data"]["videoId"] is None


@pytest.mark.asyncio
async def test_like_missing_or_malformed_target(client, alice):
    assert (await client.post(f"{API}/likes/toggle/v/{uuid.uuid4()}", headers=alice.headers)).status_code == 404
    assert (await client.post(f"{API}/likes/toggle/t/bogus", headers=alice.headers)).status_code == 400


@pytest.mark.asyncio
async def test_liked_videos_listing(client, alice, bob):
    liked = await upload_video(client, alice, title="Liked")
    await upload_video(client, alice, title="Ignored")
    await client.post(f"{API}/likes/toggle/v/{liked['id']}", headers=bob.headers)

    resp = await client.get(f"{API}/likes/videos", headers=bob.headers)

    assert resp.status_code == 200
    assert [v["title"] for v in resp.json()["data"]] == ["Liked"]


@pytest.mark.asyncio
async def test_deleting_video_removes_its_likes(client, alice, bob, session_factory):
    video = await upload_video(client, alice)
    await client.post(f"{API}/likes/toggle/v/{video['id']}", headers=bob.headers)

    await client.delete(f"{API}/videos/{video['id']}", headers=alice.headers)

    assert await _like_count(session_factory) == 0


class StaleLookupSession:
    """Session proxy whose first lookup misses, as if a concurrent insert landed right after it."""

    def __init__(self, session):
        self._session = session
        self._missed = False

    async def scalar(self, statement, *args, **kwargs):
        if not self._missed:
            self._missed = True
            return None
        return await self._session.scalar(statement, *args, **kwargs)

    def __getattr__(self, name):
        return getattr(self._session, name)


@pytest.mark.asyncio
async def test_losing_insert_race_reports_added(alice, bob, session_factory):
    key = {"subscriber_id": uuid.UUID(bob.id), "channel_id": uuid.UUID(alice.id)}
    async with session_factory() as session:
        session.add(Subscription(**key))
        await session.commit()

    async with session_factory() as session:
        result = await toggle_service.toggle(StaleLookupSession(session), Subscription, "subscription", key)

    assert result.added is True
    assert result.record.channel_id == key["channel_id"]
    async with session_factory() as session:
        assert await session.scalar(select(func.count(Subscription.id))) == 1


@pytest.mark.asyncio
async def test_subscription_toggle(client, alice, bob):
    url = f"{API}/subscriptions/c/{alice.id}"

    resp = await client.post(url, headers=bob.headers)
    assert resp.status_code == 201
    assert resp.json()["message"] == "Subscribed successfully"

    subscribers = await client.get(url, headers=alice.headers)
    assert [s["subscriber"]["username"] for s in subscribers.json()["data"]] == ["bob"]
    assert "subscribedAt" in subscribers.json()["data"][0]

    channels = await client.get(f"{API}/subscriptions/u/{bob.id}", headers=bob.headers)
    assert [c["channel"]["username"] for c in channels.json()["data"]] == ["alice"]

    resp = await client.post(url, headers=bob.headers)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Unsubscribed successfully"
    assert resp.json()["data"] == {}


@pytest.mark.asyncio
async def test_cannot_subscribe_to_self(client, alice):
    resp = await client.post(f"{API}/subscriptions/c/{alice.id}", headers=alice.headers)

    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_subscribe_to_unknown_channel_is_404(client, alice):
    resp = await client.post(f"{API}/subscriptions/c/{uuid.uuid4()}", headers=alice.headers)

    assert resp.status_code == 404


class StaleHitSession:
    """Session proxy whose first lookup returns a row id another request already deleted."""

    def __init__(self, session, stale_id):
        self._session = session
        self._stale_id = stale_id
        self._served = False

    async def scalar(self, statement, *args, **kwargs):
        if not self._served:
            self._served = True
            return self._stale_id
        return await self._session.scalar(statement, *args, **kwargs)

    def __getattr__(self, name):
        return getattr(self._session, name)


@pytest.mark.asyncio
async def test_removing_already_deleted_row_reports_removed(alice, bob, session_factory):
    key = {"subscriber_id": uuid.UUID(bob.id), "channel_id": uuid.UUID(alice.id)}
    async with session_factory() as session:
        row = Subscription(**key)
        session.add(row)
        await session.commit()
        stale_id = row.id
        await session.delete(row)
        await session.commit()

    async with session_factory() as session:
        result = await toggle_service.toggle(StaleHitSession(session, stale_id), Subscription, "subscription", key)

    assert result.added is False
    assert result.record is None
    async with session_factory() as session:
        assert await session.scalar(select(func.count(Subscription.id))) == 0


@pytest.mark.asyncio
async def test_unpublished_video_cannot_be_liked_by_others(client, alice, bob):
    video = await upload_video(client, alice)
    comment = (await client.post(
        f"{API}/comments/{video['id']}", json={"content": "draft note"}, headers=alice.headers,
    )).json()["data"]
    await client.patch(f"{API}/videos/toggle/publish/{video['id']}", headers=alice.headers)

    assert (await client.post(f"{API}/likes/toggle/v/{video['id']}", headers=bob.headers)).status_code == 404
    assert (await client.post(f"{API}/likes/toggle/c/{comment['id']}", headers=bob.headers)).status_code == 404

    own = await client.post(f"{API}/likes/toggle/v/{video['id']}", headers=alice.headers)
    assert own.status_code == 201
