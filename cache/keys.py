"""
Cache key builders.

Keys are deterministic functions of the logical entity and its parameters.
Keys of one entity share a namespace prefix so a single prefix invalidation
clears all of them.
"""

TELEMETRY_PREFIX = "telemetry:"
CATALOG_PREFIX = "catalog:"
SPACE_PREFIX = "space:"


def telemetry_latest() -> str:
    return "telemetry:latest"


def telemetry_trend() -> str:
    return "telemetry:trend"


def catalog_list(limit: int) -> str:
    return f"catalog:list:{limit}"


def catalog_count() -> str:
    return "catalog:count"


def catalog_item(business_key: str) -> str:
    return f"catalog:item:{business_key}"


def source_latest(source: str) -> str:
    return f"space:{source}:latest"


def space_summary() -> str:
    return "space:summary"
