"""Market discovery and classification."""

from pendle_core.discovery.classifier import group_by_factory, is_stablecoin_market, sort_by_expiry
from pendle_core.discovery.finder import (
    blocks_for_days,
    discover_markets,
    find_creation_time,
    find_valid_markets,
)

__all__ = [
    "blocks_for_days",
    "discover_markets",
    "find_creation_time",
    "find_valid_markets",
    "group_by_factory",
    "is_stablecoin_market",
    "sort_by_expiry",
]
