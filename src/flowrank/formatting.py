"""Project diversified selections into response records."""

from __future__ import annotations

from typing import Iterable

from .models import RecommendedWorkflow, WorkflowCandidate
from .ranking import Selection
from .utils import stable_id

DEFAULT_WORKFLOW_NAME = "n8n Workflow"
DEFAULT_AUTHOR_NAME = "Community"
SCORE_DIGITS = 4


def candidate_id(candidate: WorkflowCandidate) -> str:
    if candidate.id is not None and str(candidate.id):
        return str(candidate.id)
    if candidate.filename:
        return candidate.filename
    if candidate.name:
        return candidate.name
    return stable_id(candidate.name, candidate.description)


def to_recommendation(selection: Selection) -> RecommendedWorkflow:
    candidate = selection.scored.candidate
    return RecommendedWorkflow(
        id=candidate_id(candidate),
        filename=candidate.filename,
        name=candidate.name or DEFAULT_WORKFLOW_NAME,
        description=candidate.description or "",
        integrations=list(candidate.integrations),
        tags=list(candidate.tags),
        trigger_type=candidate.trigger_type,
        complexity=candidate.complexity,
        node_count=candidate.node_count,
        source=candidate.source,
        author_name=candidate.author_name or candidate.author_username or DEFAULT_AUTHOR_NAME,
        author_username=candidate.author_username,
        author_avatar_url=candidate.author_avatar,
        author_verified=bool(candidate.author_verified),
        active=candidate.active,
        rationale=selection.scored.rationale,
        score=round(selection.scored.score, SCORE_DIGITS),
    )


def format_results(selections: Iterable[Selection]) -> list[RecommendedWorkflow]:
    return [to_recommendation(selection) for selection in selections]


__all__ = [
    "DEFAULT_WORKFLOW_NAME",
    "DEFAULT_AUTHOR_NAME",
    "candidate_id",
    "to_recommendation",
    "format_results",
]
