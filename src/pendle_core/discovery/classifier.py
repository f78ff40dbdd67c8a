"""Market classification and ordering helpers."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from pendle_core.config.schema import DEFAULT_STABLECOIN_IDENTIFIERS
from pendle_core.models import MarketInfo


def is_stablecoin_market(
    market: MarketInfo,
    identifiers: Iterable[str] = DEFAULT_STABLECOIN_IDENTIFIERS,
) -> bool:
    """True if any SY/PT/YT symbol contains a stablecoin identifier.

    Case-insensitive substring match on both sides. This is a naming
    heuristic, not a registry lookup: "USD" alone matches any symbol
    containing those letters.
    """
    needles = [i.upper() for i in identifiers if i]
    symbols = (market.sy_symbol.upper(), market.pt_symbol.upper(), market.yt_symbol.upper())
    return any(needle in symbol for symbol in symbols for needle in needles)


def sort_by_expiry(markets: Iterable[MarketInfo]) -> list[MarketInfo]:
    """Ascending by expiry. Stable: ties keep discovery order."""
    return sorted(markets, key=lambda m: m.expiry)


def group_by_factory(markets: Sequence[MarketInfo]) -> dict[str, list[MarketInfo]]:
    """Bucket markets by factory version tag, preserving order."""
    groups: dict[str, list[MarketInfo]] = {}
    for market in markets:
        groups.setdefault(market.factory, []).append(market)
    return groups
