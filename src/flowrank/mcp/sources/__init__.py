"""Facade over corpus source implementations."""

from __future__ import annotations

from .base import CorpusSource, CorpusSourceError, HttpCorpusSource, parse_workflows
from .redis_store import RedisCorpusSource
from .registry import CorpusSourceRegistry
from .static import StaticCorpusSource
from .stub import StubCorpusSource

__all__ = [
    "CorpusSource",
    "CorpusSourceError",
    "HttpCorpusSource",
    "parse_workflows",
    "RedisCorpusSource",
    "StaticCorpusSource",
    "StubCorpusSource",
    "CorpusSourceRegistry",
]
