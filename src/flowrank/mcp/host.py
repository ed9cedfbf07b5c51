from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastmcp import FastMCP
from pydantic import ValidationError
from starlette.middleware import Middleware as StarletteMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from flowrank.config import get_settings
from flowrank.mcp.service import RecommendService
from flowrank.models import RecommendRequest, Subtask

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(levelname)s:%(name)s:%(message)s",
)
_service: RecommendService | None = None
LifespanState = dict[str, Any]


@asynccontextmanager
async def _lifespan(_: FastMCP[LifespanState]) -> AsyncIterator[LifespanState]:
    global _service
    service = RecommendService(settings)
    _service = service
    try:
        yield {"service": "flowrank"}
    finally:
        await service.close()
        _service = None


class BearerAuthMiddleware(BaseHTTPMiddleware):
    """Simple bearer token authentication for FastMCP's HTTP transport."""

    def __init__(self, app, *, token: str | None):
        super().__init__(app)
        self._token = token

    async def dispatch(self, request: Request, call_next):
        if not self._token or request.scope.get("type") != "http":
            return await call_next(request)
        if request.url.path == "/healthz":
            return await call_next(request)

        auth_header = request.headers.get("authorization") or ""
        scheme, _, candidate = auth_header.partition(" ")

        if scheme.lower() != "bearer" or not candidate:
            return JSONResponse(
                {"detail": "Missing or invalid Authorization header"},
                status_code=401,
                headers={"WWW-Authenticate": "Bearer"},
            )

        if candidate != self._token:
            return JSONResponse(
                {"detail": "Invalid bearer token"},
                status_code=403,
            )

        return await call_next(request)


class FlowrankFastMCP(FastMCP):
    """FastMCP subclass that injects Starlette middleware for HTTP transports."""

    def __init__(self, *args, auth_token: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._auth_token = auth_token

    def http_app(self, *args, middleware: list[StarletteMiddleware] | None = None, **kwargs):
        http_middleware = list(middleware or [])
        if self._auth_token:
            http_middleware.insert(
                0,
                StarletteMiddleware(BearerAuthMiddleware, token=self._auth_token),
            )
        return super().http_app(*args, middleware=http_middleware, **kwargs)


mcp = FlowrankFastMCP(
    name="flowrank-mcp",
    instructions="Recommend automation workflow templates for a task description, with match rationales.",
    version="0.1.0",
    lifespan=_lifespan,
    auth_token=settings.mcp_api_token,
)


def _require_service() -> RecommendService:
    if _service is None:
        raise RuntimeError("recommendation service is not initialized")
    return _service


def _normalize_optional_list(value: Any) -> Any:
    """Coerce empty objects for optional list-typed tool arguments to None."""
    if value is None or value == {}:
        return None
    return value


def _build_request(
    task_text: str | None,
    subtasks: list[Subtask] | None,
    selected_tools: list[str] | None,
    top_k: int | None,
) -> RecommendRequest:
    return RecommendRequest(
        task_text=task_text or "",
        subtasks=_normalize_optional_list(subtasks) or [],
        selected_tools=_normalize_optional_list(selected_tools) or [],
        top_k=top_k,
    )


def _error_response(detail: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse({"detail": detail}, status_code=status_code)


# ============================
# Tools
# ============================


@mcp.tool
async def recommend_workflows(
    task_text: str = "",
    subtasks: list[Subtask] | None = None,
    selected_tools: list[str] | None = None,
    top_k: int | None = None,
) -> dict[str, Any]:
    """
    summary: Recommend a small, diverse set of automation workflow templates for a task.
    when_to_use:
      - Use when a user describes work they want to automate and needs concrete workflow templates.
    arguments:
      task_text:
        type: string
        required: false
        description: Free-text description of the task.
      subtasks:
        type: list[{name, keywords}]
        required: false
        description: Structured subtasks; names and keywords feed the keyword profile.
      selected_tools:
        type: list[string]
        required: false
        description: Tools the user explicitly wants (e.g. "Slack", "Postgres"); matched as must-haves.
      top_k:
        type: int
        required: false
        description: Number of workflows to return (default 6).
    returns:
      results:
        description: Workflows in selection order, each with a rationale naming the signals that matched.
    """
    request = _build_request(task_text, subtasks, selected_tools, top_k)
    response = await _require_service().recommend(request)
    return response.to_wire()


@mcp.custom_route("/recommend-workflows", methods=["POST"], include_in_schema=False)
async def recommend_route(request: Request) -> JSONResponse:
    """JSON endpoint for non-MCP callers: same contract as the tool, camelCase keys."""
    try:
        body = await request.json()
    except ValueError:
        return _error_response("request body must be JSON")
    try:
        payload = RecommendRequest.model_validate(body)
    except ValidationError as exc:
        return _error_response(str(exc))
    response = await _require_service().recommend(payload)
    return JSONResponse(response.to_wire())


@mcp.custom_route("/healthz", methods=["GET"], include_in_schema=False)
async def health(_: Request) -> JSONResponse:
    """Lightweight health check for load balancers hitting GET /healthz."""
    return JSONResponse({"status": "ok"})


def main() -> None:
    mcp.run(
        transport="streamable-http",
        path="/mcp",
        host=settings.mcp_host,
        port=settings.mcp_port,
    )


__all__ = ["mcp", "main"]


if __name__ == "__main__":
    main()
