"""Workflow recommendation engine: profile, pool, score, diversify."""

from importlib import metadata


def get_version() -> str:
    try:
        return metadata.version("flowrank")
    except metadata.PackageNotFoundError:
        return "0.0.0"


__all__ = ["get_version"]
