"""Read-only chain client — web3.py AsyncWeb3 over JSON-RPC.

Every method returns plain Python values or package models. Failures are
mapped onto the package's error kinds:

- block / log reads that fail        -> EndpointError (fatal for the batch)
- a block the node has no data for   -> MissingBlockData
- a view call that reverts or times out -> ContractCallError (one market)
- a JSON-RPC error, HTTP failure or dropped connection during a view call
  -> EndpointError
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Any

import aiohttp
from web3 import AsyncWeb3
from web3.exceptions import (
    BadFunctionCallOutput,
    BlockNotFound,
    ContractLogicError,
    ProviderConnectionError,
    RequestTimedOut,
    TooManyRequests,
    Web3RPCError,
)

from pendle_core.chain.abi import MARKET_ABI, MARKET_FACTORY_ABI, SY_ABI, TOKEN_ABI
from pendle_core.chain.cache import SymbolCache
from pendle_core.config.schema import ZERO_ADDRESS
from pendle_core.errors import ContractCallError, EndpointError, MissingBlockData
from pendle_core.logging import get_logger
from pendle_core.models import MarketCreatedEvent, MarketState, MarketTokens

log = get_logger(__name__)


def block_ranges(from_block: int, to_block: int, chunk_size: int = 0) -> list[tuple[int, int]]:
    """Split an inclusive block range into ``eth_getLogs``-sized pieces.

    ``chunk_size <= 0`` returns the range unsplit.
    """
    if from_block > to_block:
        return []
    if chunk_size <= 0:
        return [(from_block, to_block)]
    ranges: list[tuple[int, int]] = []
    start = from_block
    while start <= to_block:
        end = min(start + chunk_size - 1, to_block)
        ranges.append((start, end))
        start = end + 1
    return ranges


def checksum(address: str) -> str:
    return AsyncWeb3.to_checksum_address(address)


class ChainClient:
    """Async client for the factory, market and token view functions."""

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout_s: float = 30.0,
        chain_id: int = 1,
        symbol_cache_ttl_s: float = 3600.0,
        symbol_cache: SymbolCache | None = None,
        w3: AsyncWeb3 | None = None,
    ):
        self.rpc_url = rpc_url
        self._timeout_s = timeout_s
        self._w3 = w3
        self.chain_id = chain_id
        self._symbols = symbol_cache if symbol_cache is not None else SymbolCache(symbol_cache_ttl_s)

    def _get_w3(self) -> AsyncWeb3:
        if self._w3 is None:
            if not self.rpc_url:
                raise EndpointError("no RPC URL configured (set PENDLE_RPC_URL or ETH_RPC_URL)")
            self._w3 = AsyncWeb3(
                AsyncWeb3.AsyncHTTPProvider(self.rpc_url, request_kwargs={"timeout": self._timeout_s})
            )
        return self._w3

    async def close(self) -> None:
        if self._w3 is not None:
            await self._w3.provider.disconnect()

    def _contract(self, address: str, abi: list[dict]):
        return self._get_w3().eth.contract(address=checksum(address), abi=abi)

    async def _view(self, call: Awaitable[Any], what: str, market: str | None, **context: Any) -> Any:
        try:
            return await call
        except (TimeoutError, RequestTimedOut) as exc:
            raise ContractCallError(f"{what} timed out", market=market, **context) from exc
        except (ContractLogicError, BadFunctionCallOutput) as exc:
            raise ContractCallError(f"{what} reverted", market=market, error=str(exc), **context) from exc
        except (Web3RPCError, ProviderConnectionError, TooManyRequests) as exc:
            raise EndpointError(f"RPC error during {what}", rpc=self.rpc_url, error=str(exc)) from exc
        except aiohttp.ClientResponseError as exc:
            raise EndpointError(
                f"RPC endpoint returned HTTP {exc.status} during {what}", rpc=self.rpc_url, status=exc.status
            ) from exc
        except (aiohttp.ClientError, OSError) as exc:
            raise EndpointError(f"connection failed during {what}", rpc=self.rpc_url, error=str(exc)) from exc
        except Exception as exc:
            raise ContractCallError(f"{what} failed", market=market, error=str(exc), **context) from exc

    # --- blocks & logs ---

    async def get_block_number(self) -> int:
        try:
            return int(await self._get_w3().eth.block_number)
        except EndpointError:
            raise
        except Exception as exc:
            raise EndpointError("failed to read block number", rpc=self.rpc_url, error=str(exc)) from exc

    async def get_block_timestamp(self, block_number: int) -> int:
        try:
            block = await self._get_w3().eth.get_block(block_number)
        except BlockNotFound as exc:
            raise MissingBlockData("block not found", block=block_number) from exc
        except EndpointError:
            raise
        except Exception as exc:
            raise EndpointError("failed to read block", block=block_number, error=str(exc)) from exc
        if not block or block.get("timestamp") is None:
            raise MissingBlockData("node returned no block data", block=block_number)
        return int(block["timestamp"])

    async def get_market_created_events(
        self,
        factory: str,
        from_block: int,
        to_block: int,
        *,
        chunk_size: int = 0,
    ) -> list[MarketCreatedEvent]:
        """``CreateNewMarket`` logs emitted by *factory* in [from_block, to_block]."""
        event = self._contract(factory, MARKET_FACTORY_ABI).events.CreateNewMarket
        events: list[MarketCreatedEvent] = []
        for start, end in block_ranges(from_block, to_block, chunk_size):
            try:
                logs = await event.get_logs(from_block=start, to_block=end)
            except Exception as exc:
                raise EndpointError(
                    "failed to fetch market creation logs",
                    factory=factory,
                    from_block=start,
                    to_block=end,
                    error=str(exc),
                ) from exc
            for entry in logs:
                args = entry["args"]
                events.append(MarketCreatedEvent(
                    market=args["market"],
                    pt=args["PT"],
                    block_number=int(entry["blockNumber"]),
                ))
        log.debug("creation_logs_fetched", factory=factory, from_block=from_block, to_block=to_block, count=len(events))
        return events

    # --- factory / market views ---

    async def is_valid_market(self, factory: str, market: str) -> bool:
        fn = self._contract(factory, MARKET_FACTORY_ABI).functions.isValidMarket(checksum(market))
        return bool(await self._view(fn.call(), "isValidMarket", market, factory=factory))

    async def read_state(self, market: str) -> MarketState:
        fn = self._contract(market, MARKET_ABI).functions.readState(ZERO_ADDRESS)
        raw = await self._view(fn.call(), "readState", market)
        (total_pt, total_sy, total_lp, treasury, scalar_root, expiry,
         ln_fee_rate_root, reserve_fee_percent, last_ln_implied_rate) = raw
        return MarketState(
            total_pt=int(total_pt),
            total_sy=int(total_sy),
            total_lp=int(total_lp),
            treasury=treasury,
            scalar_root=int(scalar_root),
            expiry=int(expiry),
            ln_fee_rate_root=int(ln_fee_rate_root),
            reserve_fee_percent=int(reserve_fee_percent),
            last_ln_implied_rate=int(last_ln_implied_rate),
        )

    async def read_tokens(self, market: str) -> MarketTokens:
        fn = self._contract(market, MARKET_ABI).functions.readTokens()
        sy, pt, yt = await self._view(fn.call(), "readTokens", market)
        return MarketTokens(sy=sy, pt=pt, yt=yt)

    async def get_reward_tokens(self, market: str) -> list[str]:
        fn = self._contract(market, MARKET_ABI).functions.getRewardTokens()
        return list(await self._view(fn.call(), "getRewardTokens", market))

    async def user_reward(self, market: str, token: str, user: str) -> int:
        """Accrued (not yet claimed) amount of *token* for *user* on *market*."""
        fn = self._contract(market, MARKET_ABI).functions.userReward(checksum(token), checksum(user))
        _index, accrued = await self._view(fn.call(), "userReward", market, token=token)
        return int(accrued)

    # --- token views ---

    async def token_symbol(self, token: str, *, market: str | None = None) -> str:
        cached = self._symbols.lookup(self.chain_id, token)
        if cached is not None:
            return cached
        fn = self._contract(token, TOKEN_ABI).functions.symbol()
        symbol = str(await self._view(fn.call(), "symbol", market, token=token))
        self._symbols.remember(self.chain_id, token, symbol)
        return symbol

    async def sy_exchange_rate(self, sy: str, *, market: str | None = None) -> int:
        fn = self._contract(sy, SY_ABI).functions.exchangeRate()
        return int(await self._view(fn.call(), "exchangeRate", market, token=sy))
