"""Source-prefix-to-corpus-source registry."""

from __future__ import annotations

from typing import Iterable

from ...config import Settings
from ...storage import RedisStorage
from .base import CorpusSource
from .redis_store import RedisCorpusSource
from .stub import StubCorpusSource


class CorpusSourceRegistry:
    """Resolve source id prefixes to their configured adapters."""

    def __init__(
        self,
        settings: Settings,
        *,
        storage: RedisStorage | None = None,
        overrides: dict[str, CorpusSource] | None = None,
    ) -> None:
        self.settings = settings
        self._default = self._default_source(storage)
        self._sources: dict[str, CorpusSource] = dict(overrides or {})

    def _default_source(self, storage: RedisStorage | None) -> CorpusSource:
        if self.settings.corpus_backend == "http":
            return StubCorpusSource(self.settings)
        if storage is None:
            raise ValueError("redis corpus backend requires a RedisStorage")
        return RedisCorpusSource(self.settings, storage)

    def get_source(self, prefix: str) -> CorpusSource:
        return self._sources.get(prefix, self._default)

    def register_source(self, prefix: str, source: CorpusSource) -> None:
        self._sources[prefix] = source

    def prefixes(self) -> Iterable[str]:
        return tuple(self._sources.keys())

    async def close(self) -> None:
        seen_ids: set[int] = set()
        for source in (self._default, *self._sources.values()):
            source_id = id(source)
            if source_id in seen_ids:
                continue
            seen_ids.add(source_id)
            await source.close()
