"""On-chain read access."""

from pendle_core.chain.cache import SymbolCache
from pendle_core.chain.client import ChainClient, block_ranges, checksum

__all__ = ["ChainClient", "SymbolCache", "block_ranges", "checksum"]
