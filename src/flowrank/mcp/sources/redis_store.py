"""Corpus partitions persisted in Redis by the seeding job."""

from __future__ import annotations

import json

from redis.exceptions import RedisError

from ...config import Settings
from ...models import WorkflowCandidate
from ...storage import RedisStorage
from .base import CorpusSource, CorpusSourceError, parse_workflows


class RedisCorpusSource(CorpusSource):
    """Read ``wf:corpus:{version}:{source}`` partitions via :class:`RedisStorage`."""

    def __init__(self, settings: Settings, storage: RedisStorage) -> None:
        super().__init__(settings)
        self.storage = storage

    async def list_partitions(self, prefix: str) -> list[str]:
        try:
            return await self.storage.list_partitions(prefix)
        except RedisError as exc:
            raise CorpusSourceError(prefix, f"partition scan failed: {exc}") from exc

    async def load_partition(self, source_id: str) -> list[WorkflowCandidate]:
        try:
            raw = await self.storage.get_partition(source_id)
        except RedisError as exc:
            raise CorpusSourceError(source_id, f"partition read failed: {exc}") from exc
        except (json.JSONDecodeError, ValueError) as exc:
            raise CorpusSourceError(source_id, f"partition payload invalid: {exc}") from exc
        if raw is None:
            return []
        return parse_workflows(raw, source_id)
