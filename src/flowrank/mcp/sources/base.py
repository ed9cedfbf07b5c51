"""Base abstractions for corpus sources."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable

import httpx
from pydantic import ValidationError

from ...config import Settings
from ...models import WorkflowCandidate

logger = logging.getLogger(__name__)


class CorpusSourceError(RuntimeError):
    """A corpus partition could not be listed or loaded."""

    def __init__(self, source_id: str, message: str) -> None:
        super().__init__(f"{source_id}: {message}")
        self.source_id = source_id


def parse_workflows(raw: Iterable[Any], source_id: str) -> list[WorkflowCandidate]:
    """Validate raw workflow records, skipping the ones that do not parse."""
    workflows: list[WorkflowCandidate] = []
    skipped = 0
    for item in raw:
        if not isinstance(item, dict):
            skipped += 1
            continue
        if not item.get("source"):
            item = {**item, "source": source_id}
        try:
            workflows.append(WorkflowCandidate.model_validate(item))
        except ValidationError:
            skipped += 1
    if skipped:
        logger.warning("skipped %s malformed workflows in partition %s", skipped, source_id)
    return workflows


class CorpusSource(ABC):
    """Interface that adapters implement to serve workflow corpus partitions."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @abstractmethod
    async def list_partitions(self, prefix: str) -> list[str]:
        """Return the source ids tagged with ``prefix`` for the configured version."""

    @abstractmethod
    async def load_partition(self, source_id: str) -> list[WorkflowCandidate]:
        """Load one partition as read-only workflow candidates."""

    async def close(self) -> None:
        """Optional cleanup hook."""
        return None


class HttpCorpusSource(CorpusSource):
    """Corpus source convenience base that sends HTTP requests.

    The server resolves source prefixes itself, so each prefix is one partition.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        base_url: str,
        corpus_path: str = "/corpus",
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(settings)
        self.http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )
        self.corpus_path = corpus_path.rstrip("/") or "/"

    async def list_partitions(self, prefix: str) -> list[str]:
        return [prefix]

    async def load_partition(self, source_id: str) -> list[WorkflowCandidate]:
        payload = {"source": source_id, "version": self.settings.corpus_version}
        try:
            response = await self.http.post(self.corpus_path, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as exc:
            raise CorpusSourceError(source_id, f"corpus request failed: {exc}") from exc
        except ValueError as exc:
            raise CorpusSourceError(source_id, "corpus response is not JSON") from exc
        workflows = body.get("workflows") if isinstance(body, dict) else None
        if not isinstance(workflows, list):
            raise CorpusSourceError(source_id, "corpus response missing workflows list")
        return parse_workflows(workflows, source_id)

    async def close(self) -> None:
        await self.http.aclose()


__all__ = ["CorpusSourceError", "parse_workflows", "CorpusSource", "HttpCorpusSource"]
