"""Market discovery — replay factory creation logs, keep valid unexpired markets.

For each ``CreateNewMarket`` event in the lookback window:

1. ask the factory whether the market is valid,
2. read its state and drop it if ``expiry <= now`` (chain time),
3. resolve SY/PT/YT addresses, then symbols and creation time concurrently.

A failing view call only drops that market. Failing to read the current
block or the log window, or any endpoint failure during the per-market
reads, aborts the whole call and cancels the reads still in flight.
"""

from __future__ import annotations

import asyncio

from pendle_core.chain import ChainClient
from pendle_core.config.schema import DiscoveryConfig, NetworkConfig
from pendle_core.discovery.classifier import sort_by_expiry
from pendle_core.errors import ContractCallError, MissingBlockData
from pendle_core.fixed_point import SECONDS_PER_DAY
from pendle_core.logging import get_logger
from pendle_core.models import MarketCreatedEvent, MarketInfo
from pendle_core.tasks import run_all

log = get_logger(__name__)


def blocks_for_days(days: float, block_time_s: float) -> int:
    """Approximate block count for a day window at a fixed block time."""
    return int(days * SECONDS_PER_DAY / block_time_s)


async def _creation_timestamp(client: ChainClient, block_number: int) -> int | None:
    try:
        return await client.get_block_timestamp(block_number)
    except MissingBlockData:
        log.debug("creation_block_missing", block=block_number)
        return None


async def _inspect_market(
    client: ChainClient,
    factory: str,
    version: str,
    event: MarketCreatedEvent,
    current_block: int,
    current_ts: int,
) -> MarketInfo | None:
    """Return a MarketInfo if the market is valid and unexpired, else None."""
    address = event.market

    if not await client.is_valid_market(factory, address):
        log.debug("market_not_valid", market=address, factory=version)
        return None

    state = await client.read_state(address)
    if state.expiry <= current_ts:
        log.debug("market_expired", market=address, expiry=state.expiry, now=current_ts)
        return None

    tokens = await client.read_tokens(address)
    sy_symbol, pt_symbol, yt_symbol, created_at = await run_all([
        client.token_symbol(tokens.sy, market=address),
        client.token_symbol(tokens.pt, market=address),
        client.token_symbol(tokens.yt, market=address),
        _creation_timestamp(client, event.block_number),
    ])

    log.info(
        "market_found",
        market=address,
        factory=version,
        sy=sy_symbol,
        pt=pt_symbol,
        yt=yt_symbol,
        expiry=state.expiry,
    )
    return MarketInfo(
        address=address,
        sy_symbol=sy_symbol,
        pt_symbol=pt_symbol,
        yt_symbol=yt_symbol,
        factory=version,
        expiry=state.expiry,
        total_lp_supply=state.total_lp,
        timestamp=current_ts,
        block_number=current_block,
        sy_address=tokens.sy,
        pt_address=tokens.pt,
        yt_address=tokens.yt,
        created_block=event.block_number,
        created_at=created_at,
    )


async def find_valid_markets(
    client: ChainClient,
    factory: str,
    *,
    version: str = "",
    lookback_days: int = 181,
    block_time_s: float = 12.0,
    max_concurrency: int = 8,
    log_chunk_blocks: int = 0,
    from_block: int | None = None,
    to_block: int | None = None,
) -> list[MarketInfo]:
    """Valid, unexpired markets created by *factory*, sorted by expiry.

    The window defaults to the last *lookback_days* converted to blocks with
    *block_time_s*; pass *from_block* / *to_block* to scan an explicit range.
    """
    tag = version or factory
    current_block = await client.get_block_number()
    current_ts = await client.get_block_timestamp(current_block)

    end = current_block if to_block is None else to_block
    if from_block is None:
        start = max(current_block - blocks_for_days(lookback_days, block_time_s), 0)
    else:
        start = from_block

    log.info("scanning_market_creations", factory=tag, from_block=start, to_block=end)
    events = await client.get_market_created_events(factory, start, end, chunk_size=log_chunk_blocks)

    unique: dict[str, MarketCreatedEvent] = {}
    for event in events:
        unique.setdefault(event.market.lower(), event)
    log.info("market_creation_events_found", factory=tag, count=len(events), unique=len(unique))

    sem = asyncio.Semaphore(max_concurrency)

    async def _guarded(event: MarketCreatedEvent) -> MarketInfo | None:
        async with sem:
            try:
                return await _inspect_market(client, factory, tag, event, current_block, current_ts)
            except ContractCallError as exc:
                log.warning("market_skipped", market=event.market, factory=tag, error=str(exc))
                return None

    results = await run_all(_guarded(e) for e in unique.values())
    markets = [m for m in results if m is not None]

    log.info("discovery_complete", factory=tag, scanned=len(unique), valid=len(markets))
    return sort_by_expiry(markets)


async def find_creation_time(
    client: ChainClient,
    network: NetworkConfig,
    discovery: DiscoveryConfig,
    market: str,
) -> int | None:
    """Timestamp of the block in which a configured factory created *market*.

    Scans the same lookback window as discovery. None when no factory
    created *market* in that window or the node has no data for the block.
    """
    current_block = await client.get_block_number()
    start = max(current_block - blocks_for_days(discovery.lookback_days, network.block_time_s), 0)
    for version, factory in network.factories.items():
        events = await client.get_market_created_events(
            factory, start, current_block, chunk_size=discovery.log_chunk_blocks
        )
        for event in events:
            if event.market.lower() == market.lower():
                log.debug("market_creation_found", market=market, factory=version, block=event.block_number)
                return await _creation_timestamp(client, event.block_number)
    log.debug("market_creation_not_found", market=market, from_block=start)
    return None


async def discover_markets(
    client: ChainClient,
    network: NetworkConfig,
    discovery: DiscoveryConfig,
    *,
    versions: list[str] | None = None,
) -> list[MarketInfo]:
    """Run :func:`find_valid_markets` for every configured factory of *network*."""
    selected = versions or list(network.factories)
    unknown = [v for v in selected if v not in network.factories]
    if unknown:
        raise ValueError(f"unknown factory versions {unknown}; configured: {sorted(network.factories)}")

    all_markets: list[MarketInfo] = []
    for version in selected:
        all_markets.extend(
            await find_valid_markets(
                client,
                network.factories[version],
                version=version,
                lookback_days=discovery.lookback_days,
                block_time_s=network.block_time_s,
                max_concurrency=discovery.max_concurrency,
                log_chunk_blocks=discovery.log_chunk_blocks,
            )
        )
    return sort_by_expiry(all_markets)
