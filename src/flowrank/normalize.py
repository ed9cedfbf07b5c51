"""Canonical vocabulary for integrations, triggers, and complexity labels.

The tables are immutable and injected into :class:`Normalizer`, so tests (or a
future tenant) can swap in an alternate vocabulary without touching the scorer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Protocol

from .models import ComplexityBand, WorkflowCandidate
from .utils import normalize_label

# Ordered: substring matching walks the table top-down and the first hit wins.
DEFAULT_INTEGRATION_SYNONYMS: tuple[tuple[str, str], ...] = (
    ("http", "http request"),
    ("http request", "http request"),
    ("webhook", "webhook"),
    ("gmail", "gmail"),
    ("google drive", "google drive"),
    ("drive", "google drive"),
    ("sheets", "google sheets"),
    ("google sheets", "google sheets"),
    ("postgres", "postgresql"),
    ("postgresql", "postgresql"),
    ("mysql", "mysql"),
    ("mongo", "mongodb"),
    ("mongodb", "mongodb"),
    ("openai", "openai"),
    ("slack", "slack"),
    ("github", "github"),
    ("graph ql", "graphql"),
    ("graphql", "graphql"),
)

DEFAULT_TEXT_SURFACE_FORMS: tuple[str, ...] = (
    "webhook",
    "http",
    "gmail",
    "google drive",
    "google sheets",
    "postgres",
    "mysql",
    "mongo",
    "slack",
    "github",
    "graphql",
    "openai",
)

DEFAULT_KNOWN_TOOL_TOKENS: frozenset[str] = frozenset(
    {
        "slack",
        "gmail",
        "github",
        "postgres",
        "postgresql",
        "mysql",
        "mongo",
        "mongodb",
        "graphql",
        "webhook",
        "http",
    }
)

DEFAULT_TRIGGER_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("webhook",), "webhook"),
    (("schedule", "cron"), "scheduled"),
    (("manual",), "manual"),
)


@dataclass(frozen=True)
class Vocabulary:
    integration_synonyms: tuple[tuple[str, str], ...] = DEFAULT_INTEGRATION_SYNONYMS
    text_surface_forms: tuple[str, ...] = DEFAULT_TEXT_SURFACE_FORMS
    known_tool_tokens: frozenset[str] = DEFAULT_KNOWN_TOOL_TOKENS
    trigger_rules: tuple[tuple[tuple[str, ...], str], ...] = DEFAULT_TRIGGER_RULES
    substring_synonyms: bool = True
    _exact: dict[str, str] = field(init=False, repr=False, compare=False, hash=False)

    def __post_init__(self) -> None:
        exact: dict[str, str] = {}
        for surface, canonical in self.integration_synonyms:
            exact.setdefault(normalize_label(surface), canonical)
        object.__setattr__(self, "_exact", exact)

    def lookup(self, label: str) -> str | None:
        return self._exact.get(label)


DEFAULT_VOCABULARY = Vocabulary()


class TextMatcher(Protocol):
    def __call__(self, surface: str, text: str) -> bool: ...


def substring_match(surface: str, text: str) -> bool:
    """Loose matching: "Slack" anywhere in prose counts, even inside other words."""
    return surface in text


def word_boundary_match(surface: str, text: str) -> bool:
    return re.search(rf"\b{re.escape(surface)}\b", text) is not None


class Normalizer:
    """Pure label canonicalization over an injected :class:`Vocabulary`."""

    def __init__(
        self,
        vocabulary: Vocabulary = DEFAULT_VOCABULARY,
        *,
        text_matcher: TextMatcher = substring_match,
    ) -> None:
        self.vocabulary = vocabulary
        self.text_matcher = text_matcher

    def normalize_integration(self, raw: str | None) -> str:
        label = normalize_label(raw)
        if not label:
            return ""
        exact = self.vocabulary.lookup(label)
        if exact is not None:
            return exact
        if self.vocabulary.substring_synonyms:
            for surface, canonical in self.vocabulary.integration_synonyms:
                if surface in label:
                    return canonical
        return label

    def normalize_integrations(self, raw_values: Iterable[str]) -> set[str]:
        normalized = {self.normalize_integration(value) for value in raw_values}
        normalized.discard("")
        return normalized

    def normalize_trigger(self, label: str | None) -> str | None:
        value = normalize_label(label)
        if not value:
            return None
        for needles, canonical in self.vocabulary.trigger_rules:
            if any(needle in value for needle in needles):
                return canonical
        return value

    @staticmethod
    def complexity_band(label: str | None) -> ComplexityBand:
        value = normalize_label(label)
        if "high" in value:
            return "high"
        if "low" in value:
            return "low"
        return "medium"

    def is_known_tool(self, token: str) -> bool:
        return token in self.vocabulary.known_tool_tokens

    def text_integrations(self, text: str) -> set[str]:
        lowered = text.lower()
        found: set[str] = set()
        for surface in self.vocabulary.text_surface_forms:
            if self.text_matcher(surface, lowered):
                found.add(self.normalize_integration(surface))
        found.discard("")
        return found

    def effective_integrations(self, candidate: WorkflowCandidate) -> frozenset[str]:
        """Structured integrations plus tool names recovered from free text."""
        text = " ".join(
            part for part in (candidate.filename, candidate.name, candidate.description) if part
        )
        return frozenset(
            self.normalize_integrations(candidate.integrations) | self.text_integrations(text)
        )

    def candidate_trigger(self, candidate: WorkflowCandidate) -> str | None:
        return self.normalize_trigger(candidate.trigger_type)

    def candidate_band(self, candidate: WorkflowCandidate) -> ComplexityBand:
        return self.complexity_band(candidate.complexity)


__all__ = [
    "DEFAULT_INTEGRATION_SYNONYMS",
    "DEFAULT_TEXT_SURFACE_FORMS",
    "DEFAULT_KNOWN_TOOL_TOKENS",
    "DEFAULT_TRIGGER_RULES",
    "DEFAULT_VOCABULARY",
    "Vocabulary",
    "TextMatcher",
    "substring_match",
    "word_boundary_match",
    "Normalizer",
]
