from __future__ import annotations

import json

import fakeredis.aioredis as fakeredis
from fakeredis import FakeServer
import pytest

from flowrank.config import Settings
from flowrank.storage import RedisStorage


@pytest.mark.integration
@pytest.mark.asyncio
async def test_partitions_are_listed_by_prefix_within_a_version() -> None:
    redis = fakeredis.FakeRedis(server=FakeServer())
    storage = RedisStorage(redis, Settings(corpus_version="v1.5.0"))
    try:
        await storage.store_partition("github", [{"id": "a"}])
        await storage.store_partition("github-extra", [{"id": "b"}])
        await storage.store_partition("n8n.io", [{"id": "c"}])
        await storage.store_partition("github-next", [{"id": "d"}], version="v2.0.0")

        assert await storage.list_partitions("github") == ["github", "github-extra"]
        assert await storage.list_partitions("github", version="v2.0.0") == ["github-next"]
        assert await storage.list_partitions("ai-enhanced") == []
        assert await storage.get_partition("github-extra") == [{"id": "b"}]
        assert await storage.get_partition("missing") is None
        assert await redis.ttl(storage.corpus_key("github")) == -1
    finally:
        await redis.aclose()


@pytest.mark.integration
@pytest.mark.asyncio
async def test_partition_ttl_follows_settings() -> None:
    redis = fakeredis.FakeRedis(server=FakeServer())
    storage = RedisStorage(redis, Settings(corpus_ttl_hours=2))
    try:
        await storage.store_partition("github", [])
        ttl = await redis.ttl(storage.corpus_key("github"))
        assert 0 < ttl <= 2 * 3600
    finally:
        await redis.aclose()


@pytest.mark.integration
@pytest.mark.asyncio
async def test_non_list_partition_is_rejected() -> None:
    redis = fakeredis.FakeRedis(server=FakeServer())
    storage = RedisStorage(redis, Settings())
    try:
        await redis.set(storage.corpus_key("github"), json.dumps({"workflows": []}))
        with pytest.raises(ValueError):
            await storage.get_partition("github")
    finally:
        await redis.aclose()


@pytest.mark.integration
@pytest.mark.asyncio
async def test_recommendation_cache_round_trip_with_ttl() -> None:
    redis = fakeredis.FakeRedis(server=FakeServer())
    storage = RedisStorage(redis, Settings(recommendation_cache_ttl_seconds=3600))
    try:
        assert await storage.get_recommendation("abc") is None
        await storage.store_recommendation(
            "abc",
            profile={"keywords": ["slack"]},
            results=[{"id": "w1", "score": 1.3}],
        )
        payload = await storage.get_recommendation("abc")
        assert payload is not None
        assert payload["request_hash"] == "abc"
        assert payload["results"] == [{"id": "w1", "score": 1.3}]
        assert payload["profile"] == {"keywords": ["slack"]}
        assert isinstance(payload["created_at"], int)
        ttl = await redis.ttl(RedisStorage.recommendation_key("abc"))
        assert 0 < ttl <= 3600
    finally:
        await redis.aclose()


def test_key_helpers() -> None:
    storage = RedisStorage(None, Settings(corpus_version="v1.5.0"))  # type: ignore[arg-type]
    assert storage.corpus_key("github") == "wf:corpus:v1.5.0:github"
    assert storage.corpus_pattern("github") == "wf:corpus:v1.5.0:github*"
    assert storage.source_id_from_key("wf:corpus:v1.5.0:n8n.io") == "n8n.io"
    assert RedisStorage.recommendation_key("abc") == "wf:reco:abc"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_clear_recommendations_leaves_corpus_untouched() -> None:
    redis = fakeredis.FakeRedis(server=FakeServer())
    storage = RedisStorage(redis, Settings())
    try:
        assert await storage.clear_recommendations() == 0
        await storage.store_partition("github", [{"id": "a"}])
        for request_hash in ("one", "two"):
            await storage.store_recommendation(request_hash, profile={}, results=[{"id": "a"}])

        assert await storage.clear_recommendations() == 2
        assert await storage.get_recommendation("one") is None
        assert await storage.get_partition("github") == [{"id": "a"}]
    finally:
        await redis.aclose()
