"""In-memory corpus source for embedding callers and tests."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from ...config import Settings
from ...models import WorkflowCandidate
from .base import CorpusSource, CorpusSourceError, parse_workflows


class StaticCorpusSource(CorpusSource):
    """Serve partitions from a mapping of source id to workflow records.

    Partitions listed in ``failing`` raise :class:`CorpusSourceError` on load.
    """

    def __init__(
        self,
        settings: Settings,
        partitions: Mapping[str, Sequence[WorkflowCandidate | dict[str, Any]]],
        *,
        failing: Sequence[str] = (),
    ) -> None:
        super().__init__(settings)
        self._partitions: dict[str, list[WorkflowCandidate]] = {}
        for source_id, records in partitions.items():
            models = [record for record in records if isinstance(record, WorkflowCandidate)]
            raw = [record for record in records if not isinstance(record, WorkflowCandidate)]
            self._partitions[source_id] = models + parse_workflows(raw, source_id)
        self._failing = set(failing)

    async def list_partitions(self, prefix: str) -> list[str]:
        return sorted(source_id for source_id in self._partitions if source_id.startswith(prefix))

    async def load_partition(self, source_id: str) -> list[WorkflowCandidate]:
        if source_id in self._failing:
            raise CorpusSourceError(source_id, "partition unavailable")
        return list(self._partitions.get(source_id, []))
