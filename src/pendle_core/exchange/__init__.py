"""Off-chain API clients."""

from pendle_core.exchange.pendle import PendleApiClient

__all__ = ["PendleApiClient"]
