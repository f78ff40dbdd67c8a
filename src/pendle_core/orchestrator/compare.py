"""Cross-check on-chain discovery against the API's active market list."""

from __future__ import annotations

from collections.abc import Sequence

from pendle_core.exchange.pendle import PendleApiClient
from pendle_core.models import ApiMarket, MarketComparison, MarketInfo


def compare_markets(onchain: Sequence[MarketInfo], api: Sequence[ApiMarket]) -> MarketComparison:
    """Split both lists by normalized address. Input order is preserved."""
    normalize = PendleApiClient.normalize_address
    onchain_addresses = {normalize(m.address) for m in onchain}
    api_addresses = {normalize(m.address) for m in api}

    return MarketComparison(
        in_both=[m for m in onchain if normalize(m.address) in api_addresses],
        only_onchain=[m for m in onchain if normalize(m.address) not in api_addresses],
        only_api=[m for m in api if normalize(m.address) not in onchain_addresses],
    )
