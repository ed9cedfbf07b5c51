"""Shared helpers for tokenizing text, normalizing labels, and hashing requests."""

from __future__ import annotations

import hashlib
import json
import re
from time import perf_counter
from typing import Any

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")
_WHITESPACE = re.compile(r"\s+")
MIN_TOKEN_LENGTH = 3


def tokenize(text: str | None) -> set[str]:
    """Split ``text`` into lowercase alphanumeric tokens longer than two characters.

    Examples:
        "Sync Slack -> GitHub issues" -> {"sync", "slack", "github", "issues"}
        "" -> set()
    """
    if not text:
        return set()
    return {
        token
        for token in _TOKEN_SPLIT.split(text.lower())
        if len(token) >= MIN_TOKEN_LENGTH
    }


def normalize_label(value: str | None) -> str:
    """Lowercase, trim, and collapse inner whitespace."""
    return _WHITESPACE.sub(" ", (value or "").strip().lower())


def hash_request(payload: dict[str, Any]) -> str:
    raw = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha1(raw).hexdigest()[:16]


def stable_id(*parts: str | None) -> str:
    raw = "\x1f".join(part or "" for part in parts).encode("utf-8")
    return "wf-" + hashlib.sha1(raw).hexdigest()[:12]


def elapsed_ms(start: float) -> int:
    return max(0, int((perf_counter() - start) * 1000))


__all__ = [
    "MIN_TOKEN_LENGTH",
    "tokenize",
    "normalize_label",
    "hash_request",
    "stable_id",
    "elapsed_ms",
]
