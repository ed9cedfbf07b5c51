"""Core business logic for the recommendation MCP service."""

from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Sequence

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from ..config import Settings
from ..engine import RankingOutcome, RecommendationEngine
from ..models import (
    RecommendedWorkflow,
    RecommendMeta,
    RecommendRequest,
    RecommendResponse,
    WorkflowCandidate,
)
from ..storage import RedisStorage
from ..utils import elapsed_ms, hash_request, normalize_label
from .sources import CorpusSourceError, CorpusSourceRegistry

logger = logging.getLogger(__name__)


def request_fingerprint(
    request: RecommendRequest,
    top_k: int,
    *,
    version: str,
    sources: Sequence[str],
) -> str:
    """Hash everything that can change the ranking for ``request``."""
    payload: dict[str, Any] = {
        "task_text": normalize_label(request.task_text),
        "subtasks": [
            {
                "name": normalize_label(subtask.name),
                "keywords": sorted(normalize_label(keyword) for keyword in subtask.keywords),
            }
            for subtask in request.subtasks
        ],
        "selected_tools": sorted({normalize_label(tool) for tool in request.selected_tools}),
        "top_k": top_k,
        "version": version,
        "sources": list(sources),
    }
    return hash_request(payload)


class RecommendService:
    def __init__(
        self,
        settings: Settings,
        *,
        redis: Redis | None = None,
        source_registry: CorpusSourceRegistry | None = None,
        engine: RecommendationEngine | None = None,
    ) -> None:
        self.settings = settings
        self.redis = redis if redis is not None else Redis.from_url(settings.redis_url)
        self.storage = RedisStorage(self.redis, settings)
        self.source_registry = source_registry or CorpusSourceRegistry(
            settings, storage=self.storage
        )
        self.engine = engine or RecommendationEngine.from_settings(settings)

    async def close(self) -> None:
        try:
            await self.source_registry.close()
        finally:
            await self.redis.aclose()

    # ------------------------------------------------------------------ #
    def resolve_top_k(self, request: RecommendRequest) -> int:
        top_k = request.top_k or self.settings.default_top_k
        return max(1, min(top_k, self.settings.max_top_k))

    async def load_corpus(self, prefixes: Sequence[str] | None = None) -> list[WorkflowCandidate]:
        """Union of every partition that loads; failed partitions are skipped."""
        corpus: list[WorkflowCandidate] = []
        for prefix in prefixes or self.settings.corpus_sources:
            source = self.source_registry.get_source(prefix)
            try:
                source_ids = await source.list_partitions(prefix)
            except CorpusSourceError as exc:
                logger.warning("corpus listing failed for %s: %s", prefix, exc)
                continue
            for source_id in source_ids:
                try:
                    corpus.extend(await source.load_partition(source_id))
                except CorpusSourceError as exc:
                    logger.warning("corpus partition %s skipped: %s", source_id, exc)
        return corpus

    async def _cached_results(self, request_hash: str) -> list[RecommendedWorkflow] | None:
        if not self.settings.recommendation_cache_enabled:
            return None
        try:
            payload = await self.storage.get_recommendation(request_hash)
            if not isinstance(payload, dict) or not payload.get("results"):
                return None
            return [RecommendedWorkflow.model_validate(item) for item in payload["results"]]
        except (RedisError, ValidationError, ValueError, TypeError) as exc:
            # Unreadable or outdated entries fall through to a fresh ranking.
            logger.warning("recommendation cache entry %s ignored: %s", request_hash, exc)
            return None

    async def _store_results(self, request_hash: str, outcome: RankingOutcome) -> None:
        if not self.settings.recommendation_cache_enabled or not outcome.results:
            return
        try:
            await self.storage.store_recommendation(
                request_hash,
                profile=outcome.profile.model_dump(mode="json"),
                results=[item.model_dump(mode="json") for item in outcome.results],
            )
        except RedisError as exc:
            logger.warning("recommendation cache write failed: %s", exc)

    async def recommend(self, request: RecommendRequest) -> RecommendResponse:
        start = perf_counter()
        top_k = self.resolve_top_k(request)
        request_hash = request_fingerprint(
            request,
            top_k,
            version=self.settings.corpus_version,
            sources=self.settings.corpus_sources,
        )

        cached = await self._cached_results(request_hash)
        if cached is not None:
            duration = elapsed_ms(start)
            logger.info(
                "recommend duration=%sms cache=true results=%s", duration, len(cached)
            )
            return RecommendResponse(
                results=cached,
                used_cache=True,
                latency_ms=duration,
                meta=RecommendMeta(cache_hit=True),
            )

        corpus = await self.load_corpus()
        if not corpus:
            duration = elapsed_ms(start)
            logger.info(
                "recommend duration=%sms corpus=0 cache=false results=0 (no workflows found)",
                duration,
            )
            return RecommendResponse(
                results=[],
                used_cache=False,
                latency_ms=duration,
                meta=RecommendMeta(),
            )

        outcome = self.engine.rank(corpus, request, top_k=top_k)
        await self._store_results(request_hash, outcome)
        duration = elapsed_ms(start)
        logger.info(
            "recommend duration=%sms corpus=%s candidates=%s kept=%s fallback=%s "
            "cache=false results=%s",
            duration,
            outcome.corpus_size,
            outcome.scored,
            outcome.diversified,
            outcome.pool_fallback,
            len(outcome.results),
        )
        return RecommendResponse(
            results=outcome.results,
            used_cache=True,
            latency_ms=duration,
            meta=RecommendMeta(
                corpus_size=outcome.corpus_size,
                pool_size=outcome.pool_size,
                pool_fallback=outcome.pool_fallback,
                scored=outcome.scored,
                diversified=outcome.diversified,
                cache_hit=False,
            ),
        )


__all__ = ["RecommendService", "request_fingerprint"]
