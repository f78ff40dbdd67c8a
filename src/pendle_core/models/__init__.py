"""Pydantic domain models."""

from pendle_core.models.market import (
    ApiMarket,
    MarketComparison,
    MarketCreatedEvent,
    MarketInfo,
    MarketSnapshot,
    MarketState,
    MarketTokens,
)
from pendle_core.models.metrics import DerivedMetrics, MarketRecord, RewardApr

__all__ = [
    "ApiMarket",
    "DerivedMetrics",
    "MarketComparison",
    "MarketCreatedEvent",
    "MarketInfo",
    "MarketRecord",
    "MarketSnapshot",
    "MarketState",
    "MarketTokens",
    "RewardApr",
]
