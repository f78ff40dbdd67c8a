"""Tests for the chain client's decoding and error mapping, over a stub web3."""

from __future__ import annotations

import asyncio

import aiohttp
import pytest
from multidict import CIMultiDict, CIMultiDictProxy
from web3.exceptions import BadFunctionCallOutput, BlockNotFound, ContractLogicError, Web3RPCError
from yarl import URL

from pendle_core.chain import ChainClient, SymbolCache, block_ranges
from pendle_core.errors import ContractCallError, EndpointError, MissingBlockData

from conftest import addr

FACTORY = addr(0xFA)
MARKET = addr(1)
TOKEN = addr(2)


class _Call:
    def __init__(self, result=None, exc: Exception | None = None):
        self.result = result
        self.exc = exc
        self.calls = 0
        self.args: tuple = ()

    async def call(self):
        self.calls += 1
        if self.exc is not None:
            raise self.exc
        return self.result


class _Functions:
    def __init__(self, **calls: _Call):
        self._calls = calls

    def __getattr__(self, name):
        call = self._calls[name]

        def bind(*args):
            call.args = args
            return call

        return bind


class _Event:
    def __init__(self, logs=None, exc: Exception | None = None):
        self.logs = logs or []
        self.exc = exc
        self.ranges: list[tuple[int, int]] = []

    async def get_logs(self, from_block, to_block):
        self.ranges.append((from_block, to_block))
        if self.exc is not None:
            raise self.exc
        return [entry for entry in self.logs if from_block <= entry["blockNumber"] <= to_block]


class _Contract:
    def __init__(self, functions: _Functions | None = None, event: _Event | None = None):
        self.functions = functions or _Functions()
        self.events = type("Events", (), {"CreateNewMarket": event})()


class _Eth:
    def __init__(self, contracts: dict[str, _Contract], head=100, blocks=None):
        self.contracts = {k.lower(): v for k, v in contracts.items()}
        self.head = head
        self.blocks = blocks or {}

    @property
    def block_number(self):
        return self._block_number()

    async def _block_number(self):
        if isinstance(self.head, Exception):
            raise self.head
        return self.head

    async def get_block(self, number):
        block = self.blocks.get(number, BlockNotFound(f"block {number} not found"))
        if isinstance(block, Exception):
            raise block
        return block

    def contract(self, address, abi):
        return self.contracts[address.lower()]


class _Provider:
    def __init__(self):
        self.disconnected = False

    async def disconnect(self):
        self.disconnected = True


class _W3:
    def __init__(self, eth: _Eth):
        self.eth = eth
        self.provider = _Provider()


def _client(contracts=None, **eth_kwargs) -> ChainClient:
    return ChainClient("http://stub", w3=_W3(_Eth(contracts or {}, **eth_kwargs)))


class TestBlockRanges:
    def test_unchunked(self):
        assert block_ranges(0, 10) == [(0, 10)]

    def test_chunked(self):
        assert block_ranges(0, 10, 4) == [(0, 3), (4, 7), (8, 10)]

    def test_exact_multiple(self):
        assert block_ranges(1, 8, 4) == [(1, 4), (5, 8)]

    def test_empty(self):
        assert block_ranges(5, 4) == []

    def test_single_block(self):
        assert block_ranges(7, 7, 100) == [(7, 7)]


class TestSymbolCache:
    def test_address_case_shares_entry(self):
        cache = SymbolCache(ttl_seconds=60)
        cache.remember(1, TOKEN, "SY-sUSDe")
        assert cache.lookup(1, TOKEN.upper().replace("0X", "0x")) == "SY-sUSDe"
        assert cache.lookup(1, addr(3)) is None

    def test_keyed_by_chain(self):
        cache = SymbolCache()
        cache.remember(1, TOKEN, "PT-USDC")
        cache.remember(42161, TOKEN, "PT-USDT")
        assert cache.lookup(1, TOKEN) == "PT-USDC"
        assert cache.lookup(42161, TOKEN) == "PT-USDT"
        assert cache.lookup(8453, TOKEN) is None

    def test_expiry(self, monkeypatch):
        clock = [1000.0]
        monkeypatch.setattr("pendle_core.chain.cache.time.monotonic", lambda: clock[0])
        cache = SymbolCache(ttl_seconds=10)
        cache.remember(1, TOKEN, "YT-wstETH")
        clock[0] += 5
        assert cache.lookup(1, TOKEN) == "YT-wstETH"
        clock[0] += 10
        assert cache.lookup(1, TOKEN) is None


class TestBlocks:
    def test_block_number(self):
        assert asyncio.run(_client(head=123).get_block_number()) == 123

    def test_block_number_failure(self):
        with pytest.raises(EndpointError):
            asyncio.run(_client(head=ConnectionError("refused")).get_block_number())

    def test_no_rpc_url(self):
        with pytest.raises(EndpointError, match="RPC URL"):
            asyncio.run(ChainClient("").get_block_number())

    def test_block_timestamp(self):
        client = _client(blocks={10: {"number": 10, "timestamp": 1_700_000_000}})
        assert asyncio.run(client.get_block_timestamp(10)) == 1_700_000_000

    def test_block_not_found(self):
        with pytest.raises(MissingBlockData):
            asyncio.run(_client().get_block_timestamp(10))

    def test_empty_block(self):
        with pytest.raises(MissingBlockData):
            asyncio.run(_client(blocks={10: None}).get_block_timestamp(10))

    def test_block_read_failure(self):
        with pytest.raises(EndpointError):
            asyncio.run(_client(blocks={10: RuntimeError("boom")}).get_block_timestamp(10))

    def test_close_disconnects_provider(self):
        client = _client()
        asyncio.run(client.close())
        assert client._w3.provider.disconnected


class TestCreationLogs:
    LOGS = [
        {"args": {"market": addr(11), "PT": addr(21)}, "blockNumber": 3},
        {"args": {"market": addr(12), "PT": addr(22)}, "blockNumber": 8},
    ]

    def test_decodes_events(self):
        event = _Event(self.LOGS)
        client = _client({FACTORY: _Contract(event=event)})
        events = asyncio.run(client.get_market_created_events(FACTORY, 0, 9))
        assert [(e.market, e.pt, e.block_number) for e in events] == [
            (addr(11), addr(21), 3),
            (addr(12), addr(22), 8),
        ]
        assert event.ranges == [(0, 9)]

    def test_chunked_queries(self):
        event = _Event(self.LOGS)
        client = _client({FACTORY: _Contract(event=event)})
        events = asyncio.run(client.get_market_created_events(FACTORY, 0, 9, chunk_size=5))
        assert event.ranges == [(0, 4), (5, 9)]
        assert len(events) == 2

    def test_failure_is_endpoint_error(self):
        event = _Event(exc=ValueError("query returned more than 10000 results"))
        client = _client({FACTORY: _Contract(event=event)})
        with pytest.raises(EndpointError) as exc_info:
            asyncio.run(client.get_market_created_events(FACTORY, 0, 9))
        assert exc_info.value.context["factory"] == FACTORY


class TestViewCalls:
    def test_read_state(self):
        raw = (100, 200, 150, addr(99), 30, 1_800_000_000, 7, 10, 5 * 10**16)
        client = _client({MARKET: _Contract(_Functions(readState=_Call(raw)))})
        state = asyncio.run(client.read_state(MARKET))
        assert state.total_pt == 100
        assert state.total_sy == 200
        assert state.total_lp == 150
        assert state.treasury == addr(99)
        assert state.scalar_root == 30
        assert state.expiry == 1_800_000_000
        assert state.ln_fee_rate_root == 7
        assert state.reserve_fee_percent == 10
        assert state.last_ln_implied_rate == 5 * 10**16

    def test_read_tokens(self):
        client = _client({MARKET: _Contract(_Functions(readTokens=_Call((addr(3), addr(4), addr(5)))))})
        tokens = asyncio.run(client.read_tokens(MARKET))
        assert (tokens.sy, tokens.pt, tokens.yt) == (addr(3), addr(4), addr(5))

    def test_is_valid_market(self):
        call = _Call(True)
        client = _client({FACTORY: _Contract(_Functions(isValidMarket=call))})
        assert asyncio.run(client.is_valid_market(FACTORY, MARKET)) is True
        assert call.args[0].lower() == MARKET

    def test_revert_is_contract_call_error(self):
        client = _client({MARKET: _Contract(_Functions(readState=_Call(exc=ValueError("execution reverted"))))})
        with pytest.raises(ContractCallError) as exc_info:
            asyncio.run(client.read_state(MARKET))
        assert exc_info.value.market == MARKET

    def test_timeout_is_contract_call_error(self):
        client = _client({MARKET: _Contract(_Functions(readTokens=_Call(exc=TimeoutError())))})
        with pytest.raises(ContractCallError, match="timed out"):
            asyncio.run(client.read_tokens(MARKET))

    def test_connection_loss_is_endpoint_error(self):
        client = _client({MARKET: _Contract(_Functions(readTokens=_Call(exc=ConnectionResetError())))})
        with pytest.raises(EndpointError):
            asyncio.run(client.read_tokens(MARKET))

    def test_contract_logic_error_is_contract_call_error(self):
        exc = ContractLogicError("execution reverted: market expired")
        client = _client({MARKET: _Contract(_Functions(readState=_Call(exc=exc)))})
        with pytest.raises(ContractCallError, match="reverted"):
            asyncio.run(client.read_state(MARKET))

    def test_bad_call_output_is_contract_call_error(self):
        exc = BadFunctionCallOutput("could not decode output")
        client = _client({MARKET: _Contract(_Functions(readTokens=_Call(exc=exc)))})
        with pytest.raises(ContractCallError):
            asyncio.run(client.read_tokens(MARKET))

    def test_rpc_rate_limit_is_endpoint_error(self):
        exc = Web3RPCError("{'code': -32005, 'message': 'rate limit exceeded'}")
        client = _client({MARKET: _Contract(_Functions(readState=_Call(exc=exc)))})
        with pytest.raises(EndpointError) as exc_info:
            asyncio.run(client.read_state(MARKET))
        assert "rate limit" in exc_info.value.context["error"]

    def test_http_status_failure_is_endpoint_error(self):
        url = URL("http://stub")
        exc = aiohttp.ClientResponseError(
            aiohttp.RequestInfo(url, "POST", CIMultiDictProxy(CIMultiDict())),
            (),
            status=503,
            message="Service Unavailable",
        )
        client = _client({MARKET: _Contract(_Functions(readState=_Call(exc=exc)))})
        with pytest.raises(EndpointError) as exc_info:
            asyncio.run(client.read_state(MARKET))
        assert exc_info.value.context["status"] == 503

    def test_client_connection_error_is_endpoint_error(self):
        exc = aiohttp.ServerDisconnectedError()
        client = _client({FACTORY: _Contract(_Functions(isValidMarket=_Call(exc=exc)))})
        with pytest.raises(EndpointError):
            asyncio.run(client.is_valid_market(FACTORY, MARKET))

    def test_token_symbol_cached(self):
        call = _Call("PT-sUSDe")
        client = _client({TOKEN: _Contract(_Functions(symbol=call))})

        async def go():
            first = await client.token_symbol(TOKEN)
            second = await client.token_symbol(TOKEN.upper().replace("0X", "0x"))
            return first, second

        assert asyncio.run(go()) == ("PT-sUSDe", "PT-sUSDe")
        assert call.calls == 1

    def test_shared_symbol_cache_per_chain(self):
        cache = SymbolCache()
        mainnet_call = _Call("PT-USDC")
        arbitrum_call = _Call("PT-USDT")
        mainnet = ChainClient(
            "http://stub", chain_id=1, symbol_cache=cache,
            w3=_W3(_Eth({TOKEN: _Contract(_Functions(symbol=mainnet_call))})),
        )
        mainnet_again = ChainClient(
            "http://stub", chain_id=1, symbol_cache=cache,
            w3=_W3(_Eth({TOKEN: _Contract(_Functions(symbol=mainnet_call))})),
        )
        arbitrum = ChainClient(
            "http://stub", chain_id=42161, symbol_cache=cache,
            w3=_W3(_Eth({TOKEN: _Contract(_Functions(symbol=arbitrum_call))})),
        )

        assert asyncio.run(mainnet.token_symbol(TOKEN)) == "PT-USDC"
        assert asyncio.run(mainnet_again.token_symbol(TOKEN)) == "PT-USDC"
        assert asyncio.run(arbitrum.token_symbol(TOKEN)) == "PT-USDT"
        assert (mainnet_call.calls, arbitrum_call.calls) == (1, 1)

    def test_sy_exchange_rate(self):
        client = _client({TOKEN: _Contract(_Functions(exchangeRate=_Call(105 * 10**16)))})
        assert asyncio.run(client.sy_exchange_rate(TOKEN)) == 105 * 10**16

    def test_rewards(self):
        reward_token = addr(7)
        client = _client({
            MARKET: _Contract(_Functions(
                getRewardTokens=_Call([reward_token]),
                userReward=_Call((123, 456)),
            )),
        })
        assert asyncio.run(client.get_reward_tokens(MARKET)) == [reward_token]
        assert asyncio.run(client.user_reward(MARKET, reward_token, addr(0))) == 456
