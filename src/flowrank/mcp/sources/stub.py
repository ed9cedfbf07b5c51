"""CI stub source that mirrors the production corpus contract."""

from __future__ import annotations

import httpx

from ...config import Settings
from .base import HttpCorpusSource


class StubCorpusSource(HttpCorpusSource):
    """Corpus source pointing at the stub corpus server."""

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            settings,
            base_url=settings.corpus_stub_url,
            corpus_path=settings.corpus_path,
            timeout=settings.corpus_http_timeout,
            transport=transport,
        )
