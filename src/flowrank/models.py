"""Wire and corpus models for the workflow recommendation engine."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

ComplexityBand = Literal["low", "medium", "high"]
COMPLEXITY_BANDS: tuple[ComplexityBand, ...] = ("low", "medium", "high")
DEFAULT_COMPLEXITY: ComplexityBand = "medium"


class CamelModel(BaseModel):
    """Accept both camelCase (wire) and snake_case (python) keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Subtask(CamelModel):
    id: str | None = None
    name: str = ""
    keywords: list[str] = Field(default_factory=list)

    @field_validator("keywords", mode="before")
    def _drop_empty_keywords(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return [str(item) for item in value if item]
        return value


class RecommendRequest(CamelModel):
    task_text: str = ""
    subtasks: list[Subtask] = Field(default_factory=list)
    selected_tools: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("selectedTools", "selectedApplications", "selected_tools"),
    )
    top_k: int | None = Field(default=None, ge=1)

    @model_validator(mode="before")
    @classmethod
    def _lift_flags(cls, data: Any) -> Any:
        # Older callers send {"flags": {"topK": n}}.
        if not isinstance(data, dict):
            return data
        flags = data.get("flags")
        if isinstance(flags, dict) and data.get("topK") is None and data.get("top_k") is None:
            top_k = flags.get("topK")
            if top_k is not None:
                data = {**data, "topK": top_k}
        return data

    @field_validator("task_text", mode="before")
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("subtasks", "selected_tools", mode="before")
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value


class WorkflowCandidate(CamelModel):
    """One pre-indexed workflow template as delivered by a corpus source."""

    model_config = ConfigDict(frozen=True)

    id: str | int | None = None
    filename: str | None = None
    name: str | None = None
    description: str | None = None
    active: bool = True
    trigger_type: str | None = None
    complexity: str | None = None
    node_count: int | None = None
    integrations: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    author_name: str | None = None
    author_username: str | None = None
    author_avatar: str | None = None
    author_verified: bool = False
    source: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_author(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        author = data.get("author")
        if not isinstance(author, dict):
            return data
        flattened = dict(data)
        for key, target in (
            ("name", "authorName"),
            ("username", "authorUsername"),
            ("avatar", "authorAvatar"),
            ("verified", "authorVerified"),
        ):
            if key in author and target not in flattened:
                flattened[target] = author[key]
        return flattened

    @field_validator("integrations", "tags", mode="before")
    def _clean_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return [str(item) for item in value if item]
        return value

    @field_validator("author_verified", "active", mode="before")
    def _none_to_default(cls, value: Any, info) -> Any:
        if value is None:
            return info.field_name == "active"
        return value


class ProblemProfile(CamelModel):
    """Structured representation of a query used by every ranking step."""

    model_config = ConfigDict(frozen=True)

    must_have_tools: frozenset[str] = frozenset()
    nice_to_have_tools: frozenset[str] = frozenset()
    required_triggers: frozenset[str] = frozenset()
    keywords: frozenset[str] = frozenset()
    complexity_target: ComplexityBand = DEFAULT_COMPLEXITY

    @field_serializer("must_have_tools", "nice_to_have_tools", "required_triggers", "keywords")
    def _sorted(self, value: frozenset[str]) -> list[str]:
        return sorted(value)


class RecommendedWorkflow(CamelModel):
    id: str
    filename: str | None = None
    name: str
    description: str = ""
    integrations: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    trigger_type: str | None = None
    complexity: str | None = None
    node_count: int | None = None
    source: str | None = None
    author_name: str
    author_username: str | None = None
    author_avatar_url: str | None = None
    author_verified: bool = False
    active: bool = True
    rationale: str
    score: float


class RecommendMeta(CamelModel):
    corpus_size: int = 0
    pool_size: int = 0
    pool_fallback: bool = False
    scored: int = 0
    diversified: int = 0
    cache_hit: bool = False


class RecommendResponse(CamelModel):
    results: list[RecommendedWorkflow] = Field(default_factory=list)
    used_cache: bool = False
    latency_ms: int = 0
    meta: RecommendMeta | None = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


__all__ = [
    "ComplexityBand",
    "COMPLEXITY_BANDS",
    "DEFAULT_COMPLEXITY",
    "CamelModel",
    "Subtask",
    "RecommendRequest",
    "WorkflowCandidate",
    "ProblemProfile",
    "RecommendedWorkflow",
    "RecommendMeta",
    "RecommendResponse",
]
