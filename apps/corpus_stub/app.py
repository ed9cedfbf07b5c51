from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ValidationError

from flowrank.corpus_stub.generator import corpus_from_request

logger = logging.getLogger("flowrank-corpus-stub")
app = FastAPI(title="flowrank-corpus-stub", version="0.1.0")


class CorpusRequest(BaseModel):
    source: str
    version: str = ""
    count: int | None = None


@app.get("/healthz")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/corpus")
async def corpus(request_body: dict[str, object]) -> dict[str, object]:
    try:
        request = CorpusRequest.model_validate(request_body)
    except ValidationError as exc:
        logger.warning("CorpusRequest validation failed payload=%s error=%s", request_body, exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if not request.source:
        raise HTTPException(status_code=400, detail="source required")
    return corpus_from_request(request.source, request.version, request.count)
