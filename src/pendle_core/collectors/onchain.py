"""On-chain market collector — discover active markets and compute their metrics.

Replays CreateNewMarket logs for every configured factory, keeps valid and
unexpired markets, optionally narrows to stablecoin markets, snapshots each
one and writes the result under ``<data_dir>/onchain/``.

Run: python -m pendle_core.collectors markets [--stablecoins] [--no-metrics] [--config config.yaml]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from pendle_core.chain import ChainClient
from pendle_core.config import AppConfig, load_config
from pendle_core.discovery import group_by_factory
from pendle_core.errors import EndpointError, MissingBlockData
from pendle_core.fixed_point import format_units
from pendle_core.logging import get_logger, setup_logging
from pendle_core.models import MarketInfo, MarketRecord
from pendle_core.orchestrator import build_markets_payload, collect_markets, snapshot_markets, write_json
from pendle_core.orchestrator.persistence import format_pct, format_timestamp

log = get_logger(__name__)


def output_path(cfg: AppConfig, stablecoins_only: bool) -> Path:
    name = "onchain-active-stablecoin-markets.json" if stablecoins_only else "onchain-active-markets.json"
    return Path(cfg.output.data_dir) / "onchain" / name


def _log_summary(markets: list[MarketInfo], records: list[MarketRecord] | None) -> None:
    metrics_by_address = {r.info.address: r.metrics for r in records or []}
    for version, group in group_by_factory(markets).items():
        log.info("factory_summary", factory=version, markets=len(group))
        for index, market in enumerate(group, start=1):
            metrics = metrics_by_address.get(market.address)
            log.info(
                "market",
                index=index,
                factory=version,
                market=market.address,
                tokens=f"SY={market.sy_symbol}, PT={market.pt_symbol}, YT={market.yt_symbol}",
                expiry=format_timestamp(market.expiry),
                total_lp_supply=format_units(market.total_lp_supply),
                implied_apy=format_pct(metrics.implied_apy) if metrics else None,
            )


async def run(
    config_path: str | None = None,
    *,
    stablecoins_only: bool = False,
    with_metrics: bool = True,
    versions: list[str] | None = None,
) -> Path:
    """Discover, optionally compute metrics, write the output document."""
    cfg = load_config(config_path)
    setup_logging(level=cfg.logging.level, log_format=cfg.logging.format)
    network = cfg.active_network()

    client = ChainClient(
        network.rpc_url,
        timeout_s=cfg.chain.timeout_s,
        chain_id=network.chain_id,
        symbol_cache_ttl_s=cfg.chain.symbol_cache_ttl_s,
    )
    log.info("starting onchain collector", network=cfg.network, factories=versions or list(network.factories))

    try:
        markets = await collect_markets(client, cfg, stablecoins_only=stablecoins_only, versions=versions)
        records: list[MarketRecord] | None = None
        if with_metrics:
            records = await snapshot_markets(
                client,
                markets,
                max_concurrency=cfg.discovery.max_concurrency,
                rewards=cfg.rewards,
            )
    finally:
        await client.close()

    _log_summary(markets, records)
    factories = {v: network.factories[v] for v in (versions or network.factories)}
    payload = build_markets_payload(
        records if records is not None else markets,
        network=cfg.network,
        factories=factories,
    )
    path = write_json(output_path(cfg, stablecoins_only), payload)
    log.info("saved market data", path=str(path), markets=payload["totalMarkets"])
    return path


def main() -> None:
    parser = argparse.ArgumentParser(description="Discover active markets on-chain")
    parser.add_argument("--config", default="config.yaml", help="Path to config file")
    parser.add_argument("--stablecoins", action="store_true", help="Keep only stablecoin markets")
    parser.add_argument("--no-metrics", action="store_true", help="Skip snapshots and metrics")
    parser.add_argument("--factory", action="append", dest="versions", help="Factory version tag (repeatable)")
    args = parser.parse_args()
    try:
        asyncio.run(run(
            args.config,
            stablecoins_only=args.stablecoins,
            with_metrics=not args.no_metrics,
            versions=args.versions,
        ))
    except (EndpointError, MissingBlockData) as exc:
        log.error("collector failed", error=exc.message, context=exc.context)
        sys.exit(1)


if __name__ == "__main__":
    main()
