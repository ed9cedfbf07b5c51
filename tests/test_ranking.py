from __future__ import annotations

import pytest

from flowrank.corpus_stub.generator import generate_partition
from flowrank.models import ProblemProfile, RecommendRequest, WorkflowCandidate
from flowrank.normalize import Normalizer
from flowrank.profile import build_profile
from flowrank.ranking import (
    GENERAL_MATCH,
    RATIONALE_SEPARATOR,
    ScoredCandidate,
    SignalBreakdown,
    build_pool,
    diversify,
    lexical_overlap,
    score_candidate,
    score_pool,
    select_pool,
)

NORMALIZER = Normalizer()


def _wf(wf_id: str, integrations=(), **extra) -> WorkflowCandidate:
    extra.setdefault("name", f"Workflow {wf_id}")
    extra.setdefault("complexity", "Medium")
    return WorkflowCandidate(id=wf_id, integrations=list(integrations), **extra)


def _scored(name: str, score: float, integrations=()) -> ScoredCandidate:
    return ScoredCandidate(
        candidate=WorkflowCandidate(id=name, name=name),
        integrations=frozenset(integrations),
        score=score,
        rationale=GENERAL_MATCH,
        signals=SignalBreakdown((), (), None, 0.5, 0.0, 1.0, 0.0),
    )


# ---------------------------------------------------------------------------
# pool


def test_pool_keeps_filtered_candidates_when_large_enough() -> None:
    corpus = [_wf(f"w{i}", ["Slack"] if i < 55 else ["Notion"]) for i in range(60)]
    profile = ProblemProfile(must_have_tools=frozenset({"slack"}))
    pool, fell_back = select_pool(corpus, profile, NORMALIZER)
    assert not fell_back
    assert len(pool) == 55
    assert all("Slack" in candidate.integrations for candidate in pool)


def test_thin_pool_falls_back_to_the_entire_corpus() -> None:
    corpus = [_wf(f"w{i}", ["Slack"] if i < 10 else ["Notion"]) for i in range(60)]
    profile = ProblemProfile(must_have_tools=frozenset({"slack"}))
    pool, fell_back = select_pool(corpus, profile, NORMALIZER)
    assert fell_back
    assert pool == corpus


def test_pool_accepts_nice_to_have_matches_when_must_haves_exist() -> None:
    corpus = [_wf("a", ["Slack"]), _wf("b", ["GitHub"]), _wf("c", ["Notion"])]
    profile = ProblemProfile(
        must_have_tools=frozenset({"slack"}),
        nice_to_have_tools=frozenset({"github"}),
    )
    pool = build_pool(corpus, profile, NORMALIZER, min_pool_size=1)
    assert [candidate.id for candidate in pool] == ["a", "b"]


def test_pool_without_must_haves_admits_everything() -> None:
    corpus = [_wf("a", ["Slack"]), _wf("b", [])]
    profile = ProblemProfile(nice_to_have_tools=frozenset({"github"}))
    assert build_pool(corpus, profile, NORMALIZER, min_pool_size=1) == corpus


def test_pool_over_empty_corpus_is_empty() -> None:
    pool, fell_back = select_pool([], ProblemProfile(), NORMALIZER)
    assert pool == []
    assert fell_back


# ---------------------------------------------------------------------------
# scoring


def test_must_have_match_counts_double_a_nice_to_have_match() -> None:
    profile = ProblemProfile(
        must_have_tools=frozenset({"slack"}),
        nice_to_have_tools=frozenset({"github"}),
    )
    base = score_candidate(_wf("base", ["Notion"]), profile, NORMALIZER).score
    must = score_candidate(_wf("must", ["Slack"]), profile, NORMALIZER).score
    nice = score_candidate(_wf("nice", ["GitHub"]), profile, NORMALIZER).score
    assert must - base == pytest.approx(2 * (nice - base))
    assert must > nice > base


def test_tool_that_is_both_selected_and_inferred_only_earns_must_have_credit() -> None:
    profile = build_profile(RecommendRequest(task_text="slack alerts", selected_tools=["Slack"]))
    scored = score_candidate(_wf("a", ["Slack"]), profile, NORMALIZER)
    assert scored.signals.must_have_matches == ("slack",)
    assert scored.signals.nice_to_have_matches == ()
    assert "related tools" not in scored.rationale


def test_required_trigger_rewards_only_matching_candidates() -> None:
    profile = ProblemProfile(required_triggers=frozenset({"webhook"}))
    hooked = score_candidate(_wf("a", trigger_type="Webhook"), profile, NORMALIZER)
    manual = score_candidate(_wf("b", trigger_type="Manual"), profile, NORMALIZER)
    assert hooked.score - manual.score == pytest.approx(0.2)
    assert "trigger: webhook" in hooked.rationale
    assert "trigger" not in manual.rationale


def test_unconstrained_trigger_gives_everyone_partial_credit() -> None:
    profile = ProblemProfile()
    hooked = score_candidate(_wf("a", trigger_type="Webhook"), profile, NORMALIZER)
    untyped = score_candidate(_wf("b"), profile, NORMALIZER)
    assert hooked.score == pytest.approx(untyped.score)
    assert hooked.signals.trigger_fit == pytest.approx(0.5)


def test_lexical_overlap_covers_name_description_and_tags() -> None:
    candidate = _wf("a", name="Invoice digest", description="Weekly", tags=["report"])
    assert lexical_overlap(candidate, frozenset({"invoice", "report"})) == 1.0
    assert lexical_overlap(candidate, frozenset({"invoice", "payroll"})) == 0.5
    assert lexical_overlap(candidate, frozenset()) == 0.0


def test_complexity_mismatch_is_penalized_not_zeroed() -> None:
    profile = ProblemProfile()
    medium = score_candidate(_wf("a", complexity="Medium"), profile, NORMALIZER)
    high = score_candidate(_wf("b", complexity="High"), profile, NORMALIZER)
    assert medium.signals.complexity_fit == 1.0
    assert high.signals.complexity_fit == pytest.approx(0.6)
    assert medium.score > high.score


def test_general_match_when_no_signal_fires() -> None:
    scored = score_candidate(_wf("a"), ProblemProfile(), NORMALIZER)
    assert scored.rationale == GENERAL_MATCH


def test_rationale_limits_tool_lists_to_three() -> None:
    profile = ProblemProfile(must_have_tools=frozenset({"slack", "github", "gmail", "mysql"}))
    scored = score_candidate(
        _wf("a", ["Slack", "GitHub", "Gmail", "MySQL"]), profile, NORMALIZER
    )
    assert scored.rationale == "tools: github, gmail, mysql"
    assert len(scored.signals.must_have_matches) == 4


def test_rationale_only_names_signals_that_contributed() -> None:
    corpus = [WorkflowCandidate.model_validate(item) for item in generate_partition("github", 150)]
    profile = build_profile(
        RecommendRequest(
            task_text="Notify slack when a github invoice webhook fires",
            selected_tools=["Postgres"],
        )
    )
    for scored in score_pool(corpus, profile, NORMALIZER):
        signals = scored.signals
        parts = scored.rationale.split(RATIONALE_SEPARATOR)
        for part in parts:
            if part.startswith("tools: "):
                tools = set(part[len("tools: "):].split(", "))
                assert tools <= profile.must_have_tools & scored.integrations
            elif part.startswith("related tools: "):
                tools = set(part[len("related tools: "):].split(", "))
                assert tools <= (profile.nice_to_have_tools - profile.must_have_tools) & scored.integrations
            elif part.startswith("trigger: "):
                trigger = part[len("trigger: "):]
                assert trigger in profile.required_triggers
                assert NORMALIZER.candidate_trigger(scored.candidate) == trigger
            elif part == "keywords match":
                assert lexical_overlap(scored.candidate, profile.keywords) > 0
            elif part == "verified author":
                assert scored.candidate.author_verified
            else:
                assert part == GENERAL_MATCH
                assert parts == [GENERAL_MATCH]
                assert not signals.must_have_matches
                assert not signals.nice_to_have_matches
                assert signals.lexical == 0
                assert signals.authority == 0
        if signals.must_have_matches:
            assert parts[0].startswith("tools: ")


def test_score_pool_sorts_descending_and_applies_cap() -> None:
    corpus = [WorkflowCandidate.model_validate(item) for item in generate_partition("n8n.io", 40)]
    profile = build_profile(RecommendRequest(selected_tools=["Slack"], task_text="daily report"))
    full = score_pool(corpus, profile, NORMALIZER, max_candidates=None)
    capped = score_pool(corpus, profile, NORMALIZER, max_candidates=5)
    scores = [item.score for item in full]
    assert scores == sorted(scores, reverse=True)
    assert len(full) == 40
    assert [item.score for item in capped] == scores[:5]


def test_scoring_is_deterministic() -> None:
    corpus = [WorkflowCandidate.model_validate(item) for item in generate_partition("github", 80)]
    profile = build_profile(RecommendRequest(task_text="sync github issues to slack"))
    first = score_pool(corpus, profile, NORMALIZER)
    second = score_pool(corpus, profile, NORMALIZER)
    assert [(item.candidate.id, item.score, item.rationale) for item in first] == [
        (item.candidate.id, item.score, item.rationale) for item in second
    ]


# ---------------------------------------------------------------------------
# diversification


def test_diversify_returns_min_of_top_k_and_pool() -> None:
    scored = [_scored("a", 1.0), _scored("b", 0.9), _scored("c", 0.8)]
    assert len(diversify(scored, 10)) == 3
    assert len(diversify(scored, 2)) == 2
    assert diversify(scored, 0) == []
    assert diversify([], 5) == []


def test_diversify_never_repeats_a_candidate() -> None:
    scored = [_scored(f"w{i}", 1.0 - i * 0.01, ["slack"]) for i in range(8)]
    picks = diversify(scored, 8)
    assert len({pick.scored.candidate.id for pick in picks}) == 8


def test_diversify_penalties_accumulate_across_rounds() -> None:
    scored = [
        _scored("a", 3.0, ["x"]),
        _scored("b", 2.0, ["y"]),
        _scored("c", 1.99, ["x", "y"]),
        _scored("d", 1.9),
    ]
    picks = diversify(scored, 4)
    assert [pick.scored.candidate.id for pick in picks] == ["a", "b", "d", "c"]
    assert [pick.round for pick in picks] == [0, 1, 2, 3]
    assert picks[3].running_score == pytest.approx(1.74)
    assert picks[3].scored.score == pytest.approx(1.99)


def test_running_score_never_exceeds_base_score() -> None:
    corpus = [WorkflowCandidate.model_validate(item) for item in generate_partition("github", 60)]
    profile = build_profile(RecommendRequest(selected_tools=["GitHub"]))
    for pick in diversify(score_pool(corpus, profile, NORMALIZER), 10):
        assert pick.running_score <= pick.scored.score


def test_diversify_keeps_input_order_on_ties() -> None:
    scored = [_scored("first", 1.0), _scored("second", 1.0), _scored("third", 1.0)]
    picks = diversify(scored, 3)
    assert [pick.scored.candidate.id for pick in picks] == ["first", "second", "third"]


def test_diversify_penalty_is_configurable() -> None:
    scored = [_scored("a", 1.0, ["x"]), _scored("b", 0.93, ["x"]), _scored("c", 0.9)]
    assert [p.scored.candidate.id for p in diversify(scored, 3, penalty=0.0)] == ["a", "b", "c"]
    assert [p.scored.candidate.id for p in diversify(scored, 3)] == ["a", "c", "b"]
