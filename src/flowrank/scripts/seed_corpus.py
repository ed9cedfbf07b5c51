"""Seed Redis with synthetic corpus partitions for local runs and CI."""

from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import dataclass

from redis.asyncio import Redis

from flowrank.config import get_settings
from flowrank.corpus_stub.generator import generate_partition
from flowrank.storage import RedisStorage

logger = logging.getLogger("flowrank.seed_corpus")


@dataclass
class SeedConfig:
    redis_url: str
    version: str
    sources: list[str]
    count: int


async def seed(cfg: SeedConfig) -> int:
    settings = get_settings()
    redis = Redis.from_url(cfg.redis_url)
    storage = RedisStorage(redis, settings)
    total = 0
    try:
        for source in cfg.sources:
            workflows = generate_partition(source, cfg.count)
            await storage.store_partition(source, workflows, version=cfg.version)
            logger.info(
                "seeded %s workflows into %s",
                len(workflows),
                storage.corpus_key(source, cfg.version),
            )
            total += len(workflows)
        # Cached rankings were computed against the previous partitions.
        cleared = await storage.clear_recommendations()
        if cleared:
            logger.info("cleared %s cached recommendations", cleared)
    finally:
        await redis.aclose()
    return total


def parse_args(argv: list[str] | None = None) -> SeedConfig:
    settings = get_settings()
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--redis-url", default=settings.redis_url, help="Redis connection URL")
    parser.add_argument(
        "--version",
        default=settings.corpus_version,
        help="Corpus snapshot tag the partitions are stored under",
    )
    parser.add_argument(
        "--source",
        dest="sources",
        action="append",
        help="Source id to seed (repeatable; defaults to CORPUS_SOURCES)",
    )
    parser.add_argument("--count", type=int, default=200, help="Workflows per partition")
    args = parser.parse_args(argv)
    return SeedConfig(
        redis_url=args.redis_url,
        version=args.version,
        sources=args.sources or list(settings.corpus_sources),
        count=max(0, args.count),
    )


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")
    cfg = parse_args(argv)
    try:
        total = asyncio.run(seed(cfg))
    except Exception as exc:  # pragma: no cover - CLI diagnostics
        logger.error("corpus seeding failed: %s", exc, exc_info=True)
        return 1
    logger.info("seeded %s workflows across %s partitions", total, len(cfg.sources))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
