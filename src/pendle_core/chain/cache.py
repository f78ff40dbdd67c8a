"""Token symbol cache keyed by chain id and token address."""

from __future__ import annotations

import time

from pendle_core.logging import get_logger

log = get_logger(__name__)


class SymbolCache:
    """Symbols per ``(chain_id, address)``, expiring after *ttl_seconds*.

    Addresses match case-insensitively, so checksummed and lowercase forms
    share one entry. Safe to share between clients on one event loop.
    """

    def __init__(self, ttl_seconds: float = 3600.0) -> None:
        self.ttl_seconds = ttl_seconds
        self._entries: dict[tuple[int, str], tuple[float, str]] = {}

    def lookup(self, chain_id: int, token: str) -> str | None:
        key = (chain_id, token.lower())
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, symbol = entry
        if time.monotonic() - stored_at > self.ttl_seconds:
            del self._entries[key]
            log.debug("symbol_cache_expired", chain_id=chain_id, token=token)
            return None
        return symbol

    def remember(self, chain_id: int, token: str, symbol: str) -> None:
        self._entries[(chain_id, token.lower())] = (time.monotonic(), symbol)
