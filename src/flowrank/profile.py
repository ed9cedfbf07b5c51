"""Build a :class:`ProblemProfile` from a recommendation request."""

from __future__ import annotations

from .models import DEFAULT_COMPLEXITY, ProblemProfile, RecommendRequest
from .normalize import DEFAULT_VOCABULARY, Normalizer
from .utils import tokenize

WEBHOOK_TRIGGER = "webhook"

_DEFAULT_NORMALIZER = Normalizer(DEFAULT_VOCABULARY)


def collect_keywords(request: RecommendRequest) -> set[str]:
    keywords = tokenize(request.task_text)
    for subtask in request.subtasks:
        keywords |= tokenize(subtask.name)
        for keyword in subtask.keywords:
            keywords |= tokenize(keyword)
    return keywords


def build_profile(
    request: RecommendRequest,
    normalizer: Normalizer | None = None,
) -> ProblemProfile:
    """Derive must/nice-to-have tools, triggers, and keywords.

    Never fails: an empty request yields empty sets and the default
    complexity target, which ranks purely on complexity fit and authority.
    """
    normalizer = normalizer or _DEFAULT_NORMALIZER
    keywords = collect_keywords(request)
    must_have = normalizer.normalize_integrations(request.selected_tools)
    nice_to_have = normalizer.normalize_integrations(
        token for token in keywords if normalizer.is_known_tool(token)
    )
    triggers = {WEBHOOK_TRIGGER} if WEBHOOK_TRIGGER in keywords else set()
    # TODO: infer the complexity target from task text once labelled queries exist.
    return ProblemProfile(
        must_have_tools=frozenset(must_have),
        nice_to_have_tools=frozenset(nice_to_have),
        required_triggers=frozenset(triggers),
        keywords=frozenset(keywords),
        complexity_target=DEFAULT_COMPLEXITY,
    )


__all__ = ["WEBHOOK_TRIGGER", "collect_keywords", "build_profile"]
