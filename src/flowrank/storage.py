"""Redis persistence helpers for corpus partitions and cached recommendations."""

from __future__ import annotations

import json
import time
from typing import Any, Sequence

from redis.asyncio import Redis

from .config import Settings


def _decode(value: Any) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


class RedisStorage:
    """Typed helpers over Redis for corpus partitions + recommendation cache."""

    def __init__(self, redis: Redis, settings: Settings) -> None:
        self.redis = redis
        self.settings = settings

    # ---- Key helpers -----------------------------------------------------
    def corpus_key(self, source_id: str, version: str | None = None) -> str:
        return f"wf:corpus:{version or self.settings.corpus_version}:{source_id}"

    def corpus_pattern(self, prefix: str, version: str | None = None) -> str:
        return f"{self.corpus_key(prefix, version)}*"

    @staticmethod
    def recommendation_key(request_hash: str) -> str:
        return f"wf:reco:{request_hash}"

    def source_id_from_key(self, key: str, version: str | None = None) -> str:
        return key[len(self.corpus_key("", version)):]

    # ---- Corpus partitions -------------------------------------------------
    async def store_partition(
        self,
        source_id: str,
        workflows: Sequence[dict[str, Any]],
        *,
        version: str | None = None,
    ) -> None:
        key = self.corpus_key(source_id, version)
        payload = json.dumps(list(workflows), ensure_ascii=False)
        ttl = self.settings.corpus_ttl_hours * 3600
        if ttl > 0:
            await self.redis.set(key, payload, ex=ttl)
        else:
            await self.redis.set(key, payload)

    async def list_partitions(self, prefix: str, *, version: str | None = None) -> list[str]:
        """Source ids whose partition key starts with ``prefix`` (sorted)."""
        source_ids: set[str] = set()
        async for key in self.redis.scan_iter(match=self.corpus_pattern(prefix, version)):
            source_ids.add(self.source_id_from_key(_decode(key), version))
        return sorted(source_ids)

    async def get_partition(
        self, source_id: str, *, version: str | None = None
    ) -> list[dict[str, Any]] | None:
        raw = await self.redis.get(self.corpus_key(source_id, version))
        if raw is None:
            return None
        data = json.loads(_decode(raw))
        if not isinstance(data, list):
            raise ValueError(f"corpus partition {source_id} is not a list")
        return data

    # ---- Recommendation cache ----------------------------------------------
    async def get_recommendation(self, request_hash: str) -> dict[str, Any] | None:
        raw = await self.redis.get(self.recommendation_key(request_hash))
        if raw is None:
            return None
        return json.loads(_decode(raw))

    async def store_recommendation(
        self,
        request_hash: str,
        *,
        profile: dict[str, Any],
        results: list[dict[str, Any]],
    ) -> None:
        payload = {
            "request_hash": request_hash,
            "profile": profile,
            "results": results,
            "created_at": int(time.time()),
        }
        await self.redis.set(
            self.recommendation_key(request_hash),
            json.dumps(payload, ensure_ascii=False),
            ex=self.settings.recommendation_cache_ttl_seconds,
        )

    async def clear_recommendations(self) -> int:
        """Drop every cached recommendation; returns the number of keys removed."""
        keys = [key async for key in self.redis.scan_iter(match=self.recommendation_key("*"))]
        if not keys:
            return 0
        return await self.redis.delete(*keys)


__all__ = ["RedisStorage"]
