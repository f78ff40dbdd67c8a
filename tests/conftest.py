"""Shared test helpers: an in-memory stand-in for ChainClient."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from pendle_core.errors import ContractCallError, EndpointError, MissingBlockData
from pendle_core.fixed_point import SCALE, SECONDS_PER_YEAR, to_scaled
from pendle_core.models import MarketCreatedEvent, MarketInfo, MarketState, MarketTokens

NOW = 1_750_000_000
CURRENT_BLOCK = 22_000_000
FACTORY = "0x00000000000000000000000000000000000000fa"


def addr(n: int) -> str:
    """Deterministic valid hex address."""
    return "0x" + f"{n:040x}"


def make_state(**overrides) -> MarketState:
    fields = {
        "total_pt": 1_000 * SCALE,
        "total_sy": 2_000 * SCALE,
        "total_lp": 1_500 * SCALE,
        "scalar_root": 20 * SCALE,
        "last_ln_implied_rate": to_scaled("0.05"),
        "expiry": NOW + SECONDS_PER_YEAR,
        "reserve_fee_percent": 10,
    }
    fields.update(overrides)
    return MarketState(**fields)


def make_info(n: int, **overrides) -> MarketInfo:
    fields = {
        "address": addr(n),
        "sy_symbol": f"SY-TKN{n}",
        "pt_symbol": f"PT-TKN{n}",
        "yt_symbol": f"YT-TKN{n}",
        "factory": "V5",
        "expiry": NOW + n * 86_400,
        "total_lp_supply": 1_500 * SCALE,
        "timestamp": NOW,
        "block_number": CURRENT_BLOCK,
    }
    fields.update(overrides)
    return MarketInfo(**fields)


@dataclass
class FakeMarket:
    """One market as the fake chain sees it."""

    n: int
    valid: bool = True
    state: MarketState = field(default_factory=make_state)
    symbol: str = "TKN"
    exchange_rate: int = SCALE
    created_block: int = CURRENT_BLOCK - 1_000
    factory: str = FACTORY
    rewards: dict[str, int] = field(default_factory=dict)
    # Method names that raise ContractCallError (failing) or EndpointError (broken).
    failing: set[str] = field(default_factory=set)
    broken: set[str] = field(default_factory=set)

    @property
    def address(self) -> str:
        return addr(self.n)

    @property
    def tokens(self) -> MarketTokens:
        return MarketTokens(sy=addr(1000 + self.n), pt=addr(2000 + self.n), yt=addr(3000 + self.n))


class FakeChainClient:
    """Implements the ChainClient read surface over FakeMarkets."""

    def __init__(
        self,
        markets: list[FakeMarket],
        *,
        block_number: int = CURRENT_BLOCK,
        timestamp: int = NOW,
        fail_logs: bool = False,
        fail_block_number: bool = False,
        missing_blocks: set[int] | None = None,
        block_timestamps: dict[int, int] | None = None,
    ):
        self.markets = {m.address.lower(): m for m in markets}
        self.ordered = markets
        self.block_number = block_number
        self.timestamp = timestamp
        self.fail_logs = fail_logs
        self.fail_block_number = fail_block_number
        self.missing_blocks = missing_blocks or set()
        self.block_timestamps = block_timestamps or {}
        self.log_ranges: list[tuple[int, int, int]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.reads_done = 0
        self._token_owner: dict[str, tuple[FakeMarket, str]] = {}
        for m in markets:
            self._token_owner[m.tokens.sy.lower()] = (m, "SY")
            self._token_owner[m.tokens.pt.lower()] = (m, "PT")
            self._token_owner[m.tokens.yt.lower()] = (m, "YT")

    def _market(self, address: str, method: str) -> FakeMarket:
        market = self.markets[address.lower()]
        if method in market.failing:
            raise ContractCallError(f"{method} reverted", market=address)
        if method in market.broken:
            raise EndpointError(f"RPC error during {method}", error="rate limit exceeded")
        return market

    async def get_block_number(self) -> int:
        if self.fail_block_number:
            raise EndpointError("connection refused")
        return self.block_number

    async def get_block_timestamp(self, block_number: int) -> int:
        if block_number in self.missing_blocks:
            raise MissingBlockData("block not found", block=block_number)
        if block_number == self.block_number:
            return self.timestamp
        return self.block_timestamps.get(block_number, self.timestamp - 30 * 86_400)

    async def get_market_created_events(self, factory, from_block, to_block, *, chunk_size=0):
        self.log_ranges.append((from_block, to_block, chunk_size))
        if self.fail_logs:
            raise EndpointError("eth_getLogs failed")
        return [
            MarketCreatedEvent(market=m.address, pt=m.tokens.pt, block_number=m.created_block)
            for m in self.ordered
            if m.factory.lower() == factory.lower() and from_block <= m.created_block <= to_block
        ]

    async def is_valid_market(self, factory, market) -> bool:
        return self._market(market, "is_valid_market").valid

    async def read_state(self, market) -> MarketState:
        m = self._market(market, "read_state")
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0)
        self.in_flight -= 1
        self.reads_done += 1
        return m.state

    async def read_tokens(self, market) -> MarketTokens:
        return self._market(market, "read_tokens").tokens

    async def token_symbol(self, token, *, market=None) -> str:
        owner, kind = self._token_owner[token.lower()]
        self._market(owner.address, "token_symbol")
        return f"{kind}-{owner.symbol}"

    async def sy_exchange_rate(self, sy, *, market=None) -> int:
        owner, _ = self._token_owner[sy.lower()]
        return self._market(owner.address, "sy_exchange_rate").exchange_rate

    async def get_reward_tokens(self, market) -> list[str]:
        return list(self._market(market, "get_reward_tokens").rewards)

    async def user_reward(self, market, token, user) -> int:
        return self._market(market, "user_reward").rewards[token]

    async def close(self) -> None:
        pass
