"""Deterministic synthetic workflow corpus for the stub server and tests."""

from __future__ import annotations

import hashlib
import os
import random
from typing import Any

WORDS = [
    "invoice",
    "lead",
    "report",
    "ticket",
    "backup",
    "digest",
    "alert",
    "onboarding",
    "sync",
    "summary",
    "feedback",
    "inventory",
    "newsletter",
    "calendar",
    "survey",
    "deploy",
]

VERBS = ["Sync", "Notify", "Archive", "Enrich", "Route", "Summarize", "Track", "Export"]

INTEGRATIONS = [
    "Slack",
    "GitHub",
    "Gmail",
    "Google Drive",
    "Google Sheets",
    "Postgres",
    "MySQL",
    "MongoDB",
    "HTTP Request",
    "OpenAI",
    "Notion",
    "Airtable",
    "Trello",
    "Discord",
    "Telegram",
    "HubSpot",
]

TRIGGER_TYPES = ["Webhook", "Scheduled", "Cron", "Manual", "Complex"]
COMPLEXITIES = ["Low", "Medium", "High"]
AUTHORS = [
    ("Ada Flow", "adaflow", True),
    ("n8n Team", "n8n-io", True),
    ("Max Builder", "maxb", False),
    ("Rin Ops", "rinops", False),
    ("Community Maker", "maker", False),
]

DEFAULT_PARTITION_SIZE = 200


def _resolve_partition_size() -> int:
    raw = os.getenv("STUB_PARTITION_SIZE")
    if not raw:
        return DEFAULT_PARTITION_SIZE
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_PARTITION_SIZE
    return max(1, min(10_000, value))


PARTITION_SIZE = _resolve_partition_size()


def _seed(value: str) -> random.Random:
    digest = hashlib.sha1(value.encode("utf-8")).hexdigest()
    return random.Random(int(digest[:16], 16))


def generate_workflow(source: str, index: int) -> dict[str, Any]:
    """One camelCase workflow record, stable for a given ``(source, index)``."""
    rng = _seed(f"{source}:{index}")
    integrations = rng.sample(INTEGRATIONS, k=rng.randint(1, 4))
    subject = rng.choice(WORDS)
    verb = rng.choice(VERBS)
    name = f"{verb} {subject} with {' + '.join(integrations[:2])}"
    description = (
        f"{verb} every new {subject} and hand it to {integrations[-1]}. "
        f"Keeps the {rng.choice(WORDS)} {rng.choice(WORDS)} up to date."
    )
    author_name, author_username, author_verified = rng.choice(AUTHORS)
    return {
        "id": f"{source}-{index:05d}",
        "filename": f"{source}-{index:05d}.json",
        "name": name,
        "description": description,
        "active": rng.random() > 0.05,
        "triggerType": rng.choice(TRIGGER_TYPES),
        "complexity": rng.choice(COMPLEXITIES),
        "nodeCount": rng.randint(3, 40),
        "integrations": integrations,
        "tags": sorted({subject, rng.choice(WORDS)}),
        "authorName": author_name,
        "authorUsername": author_username,
        "authorVerified": author_verified,
        "source": source,
    }


def generate_partition(source: str, count: int | None = None) -> list[dict[str, Any]]:
    size = PARTITION_SIZE if count is None else max(0, count)
    return [generate_workflow(source, index) for index in range(size)]


def corpus_from_request(source: str, version: str, count: int | None = None) -> dict[str, Any]:
    return {
        "source": source,
        "version": version,
        "workflows": generate_partition(source, count),
    }


__all__ = [
    "INTEGRATIONS",
    "TRIGGER_TYPES",
    "COMPLEXITIES",
    "generate_workflow",
    "generate_partition",
    "corpus_from_request",
]
