"""Pipeline — discovery, per-market snapshots, metrics.

Per-market work fans out under a semaphore so a long market list does not
flood the RPC endpoint. One market failing a view call is skipped; an
endpoint failure aborts the batch.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from pendle_core.chain import ChainClient
from pendle_core.config.schema import AppConfig, RewardsConfig
from pendle_core.discovery import discover_markets, is_stablecoin_market, sort_by_expiry
from pendle_core.errors import ContractCallError
from pendle_core.logging import get_logger
from pendle_core.metrics import compute_metrics
from pendle_core.models import MarketInfo, MarketRecord
from pendle_core.orchestrator.snapshot import build_snapshot
from pendle_core.tasks import run_all

log = get_logger(__name__)


async def collect_markets(
    client: ChainClient,
    config: AppConfig,
    *,
    stablecoins_only: bool = False,
    versions: list[str] | None = None,
) -> list[MarketInfo]:
    """Discover markets on the active network, optionally keeping stablecoin ones."""
    markets = await discover_markets(client, config.active_network(), config.discovery, versions=versions)
    if stablecoins_only:
        identifiers = config.discovery.stablecoin_identifiers
        markets = [m for m in markets if is_stablecoin_market(m, identifiers)]
        log.info("stablecoin_filter_applied", kept=len(markets))
    return markets


async def snapshot_markets(
    client: ChainClient,
    markets: Sequence[MarketInfo],
    *,
    max_concurrency: int = 8,
    rewards: RewardsConfig | None = None,
    now: int | None = None,
) -> list[MarketRecord]:
    """Snapshot every market and compute its metrics.

    *now* defaults to each snapshot's block timestamp. Output keeps the
    expiry order of the input.
    """
    sem = asyncio.Semaphore(max_concurrency)
    max_apr = (rewards.max_apr_pct if rewards is not None else 1000.0) / 100

    async def _one(info: MarketInfo) -> MarketRecord | None:
        async with sem:
            try:
                snap = await build_snapshot(client, info.address, rewards=rewards)
            except ContractCallError as exc:
                log.warning("market_skipped", market=info.address, error=str(exc))
                return None

        metrics = compute_metrics(
            snap.state,
            now if now is not None else snap.timestamp,
            created_at=info.created_at,
            reward_accruals=snap.reward_accruals,
            reward_max_apr=max_apr,
            market=info.address,
        )
        return MarketRecord(info=info, metrics=metrics)

    results = await run_all(_one(m) for m in markets)
    records = [r for r in results if r is not None]
    log.info("snapshots_complete", requested=len(markets), ok=len(records))
    return sorted(records, key=lambda r: r.info.expiry)


async def run_pipeline(
    client: ChainClient,
    config: AppConfig,
    *,
    stablecoins_only: bool = False,
    with_metrics: bool = True,
    versions: list[str] | None = None,
) -> list[MarketRecord] | list[MarketInfo]:
    """Discovery followed by metrics for every surviving market.

    With ``with_metrics=False`` the discovered MarketInfo list is returned as is.
    """
    markets = await collect_markets(client, config, stablecoins_only=stablecoins_only, versions=versions)
    if not with_metrics:
        return markets
    return await snapshot_markets(
        client,
        sort_by_expiry(markets),
        max_concurrency=config.discovery.max_concurrency,
        rewards=config.rewards,
    )
