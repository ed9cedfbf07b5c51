"""Candidate pooling, heuristic scoring, and greedy diversification."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .models import ProblemProfile, WorkflowCandidate
from .normalize import Normalizer

MIN_POOL_SIZE = 50
MAX_CANDIDATES = 600
DIVERSITY_PENALTY = 0.05
RATIONALE_SEPARATOR = " · "
RATIONALE_TOOL_LIMIT = 3
GENERAL_MATCH = "general match"


@dataclass(frozen=True)
class ScoreWeights:
    """Fixed heuristic weights; only their proportions matter."""

    must_have_units: float = 2.0
    nice_to_have_units: float = 1.0
    integration: float = 0.5
    trigger: float = 0.2
    lexical: float = 0.6
    complexity: float = 0.2
    authority: float = 0.1
    trigger_unconstrained: float = 0.5
    complexity_mismatch: float = 0.6
    verified_prior: float = 0.2


DEFAULT_WEIGHTS = ScoreWeights()


@dataclass(frozen=True)
class SignalBreakdown:
    must_have_matches: tuple[str, ...]
    nice_to_have_matches: tuple[str, ...]
    trigger: str | None
    trigger_fit: float
    lexical: float
    complexity_fit: float
    authority: float


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: WorkflowCandidate
    integrations: frozenset[str]
    score: float
    rationale: str
    signals: SignalBreakdown


@dataclass(frozen=True)
class Selection:
    """A diversifier pick; ``running_score`` is the score after earlier penalties."""

    scored: ScoredCandidate
    running_score: float
    round: int


def filter_pool(
    corpus: Sequence[WorkflowCandidate],
    profile: ProblemProfile,
    normalizer: Normalizer,
) -> list[WorkflowCandidate]:
    must = profile.must_have_tools
    nice = profile.nice_to_have_tools
    pool: list[WorkflowCandidate] = []
    for candidate in corpus:
        integrations = normalizer.effective_integrations(candidate)
        if not must or integrations & must or integrations & nice:
            pool.append(candidate)
    return pool


def select_pool(
    corpus: Sequence[WorkflowCandidate],
    profile: ProblemProfile,
    normalizer: Normalizer,
    *,
    min_pool_size: int = MIN_POOL_SIZE,
) -> tuple[list[WorkflowCandidate], bool]:
    """Return ``(pool, fell_back)``; a pool thinner than ``min_pool_size`` is discarded."""
    pool = filter_pool(corpus, profile, normalizer)
    if len(pool) < min_pool_size:
        return list(corpus), True
    return pool, False


def build_pool(
    corpus: Sequence[WorkflowCandidate],
    profile: ProblemProfile,
    normalizer: Normalizer,
    *,
    min_pool_size: int = MIN_POOL_SIZE,
) -> list[WorkflowCandidate]:
    """Filter by must/nice-to-have tools; fall back to the whole corpus when thin."""
    pool, _ = select_pool(corpus, profile, normalizer, min_pool_size=min_pool_size)
    return pool


def lexical_overlap(candidate: WorkflowCandidate, keywords: frozenset[str]) -> float:
    if not keywords:
        return 0.0
    text = " ".join(
        part for part in (candidate.name, candidate.description, " ".join(candidate.tags)) if part
    ).lower()
    hits = sum(1 for keyword in keywords if keyword in text)
    return hits / len(keywords)


def _rationale(signals: SignalBreakdown) -> str:
    parts: list[str] = []
    if signals.must_have_matches:
        parts.append("tools: " + ", ".join(signals.must_have_matches[:RATIONALE_TOOL_LIMIT]))
    if signals.nice_to_have_matches:
        parts.append(
            "related tools: " + ", ".join(signals.nice_to_have_matches[:RATIONALE_TOOL_LIMIT])
        )
    if signals.trigger_fit >= 1.0 and signals.trigger:
        parts.append(f"trigger: {signals.trigger}")
    if signals.lexical > 0:
        parts.append("keywords match")
    if signals.authority > 0:
        parts.append("verified author")
    return RATIONALE_SEPARATOR.join(parts) or GENERAL_MATCH


def score_candidate(
    candidate: WorkflowCandidate,
    profile: ProblemProfile,
    normalizer: Normalizer,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> ScoredCandidate:
    integrations = normalizer.effective_integrations(candidate)
    must_matches = tuple(sorted(integrations & profile.must_have_tools))
    # A tool that is both selected and inferred only earns must-have credit.
    nice_matches = tuple(
        sorted((integrations & profile.nice_to_have_tools) - profile.must_have_tools)
    )
    integration_units = (
        weights.must_have_units * len(must_matches)
        + weights.nice_to_have_units * len(nice_matches)
    )

    trigger = normalizer.candidate_trigger(candidate)
    if profile.required_triggers:
        trigger_fit = 1.0 if trigger in profile.required_triggers else 0.0
    else:
        trigger_fit = weights.trigger_unconstrained

    lexical = lexical_overlap(candidate, profile.keywords)
    if normalizer.candidate_band(candidate) == profile.complexity_target:
        complexity_fit = 1.0
    else:
        complexity_fit = weights.complexity_mismatch
    authority = weights.verified_prior if candidate.author_verified else 0.0

    score = (
        integration_units * weights.integration
        + trigger_fit * weights.trigger
        + lexical * weights.lexical
        + complexity_fit * weights.complexity
        + authority * weights.authority
    )
    signals = SignalBreakdown(
        must_have_matches=must_matches,
        nice_to_have_matches=nice_matches,
        trigger=trigger,
        trigger_fit=trigger_fit,
        lexical=lexical,
        complexity_fit=complexity_fit,
        authority=authority,
    )
    return ScoredCandidate(
        candidate=candidate,
        integrations=integrations,
        score=score,
        rationale=_rationale(signals),
        signals=signals,
    )


def score_pool(
    pool: Sequence[WorkflowCandidate],
    profile: ProblemProfile,
    normalizer: Normalizer,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
    *,
    max_candidates: int | None = MAX_CANDIDATES,
) -> list[ScoredCandidate]:
    """Score every pooled candidate and keep the best ``max_candidates``, best first.

    The cap bounds diversifier work, not scoring work: the whole pool is scored
    so the kept candidates are the highest-scoring ones rather than the first ones.
    """
    scored = [score_candidate(candidate, profile, normalizer, weights) for candidate in pool]
    scored.sort(key=lambda item: item.score, reverse=True)
    if max_candidates is not None and max_candidates >= 0:
        return scored[:max_candidates]
    return scored


def diversify(
    scored: Sequence[ScoredCandidate],
    top_k: int,
    *,
    penalty: float = DIVERSITY_PENALTY,
) -> list[Selection]:
    """Greedy MMR-style selection.

    Each round picks the highest running score, then charges every remaining
    candidate ``penalty`` per integration it shares with everything chosen so
    far. Charges accumulate round over round, so running scores never rise.
    """
    remaining: list[tuple[float, ScoredCandidate]] = [(item.score, item) for item in scored]
    chosen_integrations: set[str] = set()
    selections: list[Selection] = []
    while remaining and len(selections) < top_k:
        # Stable sort keeps earlier (higher-scored) candidates ahead on ties.
        remaining.sort(key=lambda entry: entry[0], reverse=True)
        running, pick = remaining.pop(0)
        selections.append(Selection(scored=pick, running_score=running, round=len(selections)))
        chosen_integrations |= pick.integrations
        remaining = [
            (score - penalty * len(item.integrations & chosen_integrations), item)
            for score, item in remaining
        ]
    return selections


__all__ = [
    "MIN_POOL_SIZE",
    "MAX_CANDIDATES",
    "DIVERSITY_PENALTY",
    "RATIONALE_SEPARATOR",
    "GENERAL_MATCH",
    "ScoreWeights",
    "DEFAULT_WEIGHTS",
    "SignalBreakdown",
    "ScoredCandidate",
    "Selection",
    "filter_pool",
    "select_pool",
    "build_pool",
    "lexical_overlap",
    "score_candidate",
    "score_pool",
    "diversify",
]
