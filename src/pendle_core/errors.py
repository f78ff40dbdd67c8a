"""Exception hierarchy for chain and API reads.

Fatal kinds (EndpointError, MissingBlockData) unwind to the batch/command
boundary. ContractCallError is scoped to one market and is caught by
discovery and the pipeline, which skip that market.
"""

from __future__ import annotations

from typing import Any


class PendleCoreError(Exception):
    """Base class. ``context`` is extra key/value data for structured logs."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({details})"


class EndpointError(PendleCoreError):
    """The RPC node or HTTP API could not be reached or returned an error."""


class MissingBlockData(PendleCoreError):
    """The node returned no data for a requested block."""


class ContractCallError(PendleCoreError):
    """A view call against one market (or one of its tokens) reverted or failed."""

    def __init__(self, message: str, *, market: str | None = None, **context: Any) -> None:
        super().__init__(message, market=market, **context)
        self.market = market
