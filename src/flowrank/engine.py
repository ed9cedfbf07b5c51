"""Synchronous recommendation pipeline over an in-memory corpus."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from .config import Settings
from .formatting import format_results
from .models import ProblemProfile, RecommendedWorkflow, RecommendRequest, WorkflowCandidate
from .normalize import DEFAULT_VOCABULARY, Normalizer
from .profile import build_profile
from .ranking import (
    DEFAULT_WEIGHTS,
    DIVERSITY_PENALTY,
    MAX_CANDIDATES,
    MIN_POOL_SIZE,
    ScoreWeights,
    Selection,
    diversify,
    score_pool,
    select_pool,
)

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 6


@dataclass(frozen=True)
class RankingOutcome:
    profile: ProblemProfile
    selections: list[Selection]
    results: list[RecommendedWorkflow]
    corpus_size: int
    pool_size: int
    pool_fallback: bool
    scored: int
    diversified: int


class RecommendationEngine:
    """Stateless profile -> pool -> score -> diversify -> format pipeline.

    Holds configuration only; safe to share across concurrent requests.
    """

    def __init__(
        self,
        normalizer: Normalizer | None = None,
        *,
        weights: ScoreWeights = DEFAULT_WEIGHTS,
        min_pool_size: int = MIN_POOL_SIZE,
        max_candidates: int = MAX_CANDIDATES,
        diversity_penalty: float = DIVERSITY_PENALTY,
        default_top_k: int = DEFAULT_TOP_K,
    ) -> None:
        self.normalizer = normalizer or Normalizer(DEFAULT_VOCABULARY)
        self.weights = weights
        self.min_pool_size = min_pool_size
        self.max_candidates = max_candidates
        self.diversity_penalty = diversity_penalty
        self.default_top_k = default_top_k

    @classmethod
    def from_settings(cls, settings: Settings, normalizer: Normalizer | None = None) -> "RecommendationEngine":
        return cls(
            normalizer,
            min_pool_size=settings.min_pool_size,
            max_candidates=settings.max_candidates,
            diversity_penalty=settings.diversity_penalty,
            default_top_k=settings.default_top_k,
        )

    def profile(self, request: RecommendRequest) -> ProblemProfile:
        return build_profile(request, self.normalizer)

    def rank(
        self,
        corpus: Sequence[WorkflowCandidate],
        request: RecommendRequest,
        *,
        top_k: int | None = None,
    ) -> RankingOutcome:
        profile = self.profile(request)
        limit = top_k if top_k is not None else (request.top_k or self.default_top_k)
        if not corpus:
            return RankingOutcome(profile, [], [], 0, 0, False, 0, 0)

        pool, pool_fallback = select_pool(
            corpus, profile, self.normalizer, min_pool_size=self.min_pool_size
        )
        if pool_fallback:
            logger.debug(
                "pool below minimum (%s); falling back to full corpus of %s",
                self.min_pool_size,
                len(corpus),
            )
        ranked = score_pool(
            pool, profile, self.normalizer, self.weights, max_candidates=self.max_candidates
        )
        if len(pool) > len(ranked):
            logger.debug("candidate cap kept %s of %s scored candidates", len(ranked), len(pool))
        selections = diversify(ranked, max(limit, 0), penalty=self.diversity_penalty)
        return RankingOutcome(
            profile=profile,
            selections=selections,
            results=format_results(selections),
            corpus_size=len(corpus),
            pool_size=len(pool),
            pool_fallback=pool_fallback,
            scored=len(pool),
            diversified=len(ranked),
        )


__all__ = ["DEFAULT_TOP_K", "RankingOutcome", "RecommendationEngine"]
