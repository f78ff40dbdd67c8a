"""Single-market collector — snapshot one market and write its details.

Run: python -m pendle_core.collectors market 0xMARKET [--config config.yaml]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from pendle_core.chain import ChainClient, checksum
from pendle_core.config import load_config
from pendle_core.discovery import find_creation_time
from pendle_core.errors import ContractCallError, EndpointError, MissingBlockData
from pendle_core.fixed_point import format_units
from pendle_core.logging import get_logger, setup_logging
from pendle_core.metrics import compute_metrics
from pendle_core.orchestrator import build_snapshot, write_json
from pendle_core.orchestrator.persistence import format_pct, snapshot_to_dict

log = get_logger(__name__)


async def run(address: str, config_path: str | None = None) -> Path:
    cfg = load_config(config_path)
    setup_logging(level=cfg.logging.level, log_format=cfg.logging.format)
    network = cfg.active_network()
    market = checksum(address)

    client = ChainClient(
        network.rpc_url,
        timeout_s=cfg.chain.timeout_s,
        chain_id=network.chain_id,
        symbol_cache_ttl_s=cfg.chain.symbol_cache_ttl_s,
    )
    log.info("fetching market details", market=market, network=cfg.network)
    try:
        snapshot = await build_snapshot(client, market, rewards=cfg.rewards)
        created_at = await find_creation_time(client, network, cfg.discovery, market)
    finally:
        await client.close()

    metrics = compute_metrics(
        snapshot.state,
        snapshot.timestamp,
        created_at=created_at,
        reward_accruals=snapshot.reward_accruals,
        reward_max_apr=cfg.rewards.max_apr_pct / 100,
        market=market,
    )
    payload = {
        "source": "on-chain",
        "network": cfg.network,
        "fetchTimestamp": snapshot.timestamp,
        "market": snapshot_to_dict(snapshot, metrics),
    }
    path = write_json(Path(cfg.output.data_dir) / "onchain" / f"market-{market.lower()}.json", payload)

    log.info(
        "market summary",
        tokens=f"SY={snapshot.sy_symbol}, PT={snapshot.pt_symbol}, YT={snapshot.yt_symbol}",
        expiry=payload["market"]["expiryDate"],
        balances=f"{format_units(snapshot.state.total_sy)} SY, {format_units(snapshot.state.total_pt)} PT",
        total_lp_supply=format_units(snapshot.state.total_lp),
        implied_apy=format_pct(metrics.implied_apy),
        reserve_fee=f"{snapshot.state.reserve_fee_percent}%",
    )
    log.info("saved market details", path=str(path))
    return path


def main() -> None:
    parser = argparse.ArgumentParser(description="Fetch one market's on-chain state and metrics")
    parser.add_argument("address", help="Market contract address")
    parser.add_argument("--config", default="config.yaml", help="Path to config file")
    args = parser.parse_args()
    try:
        asyncio.run(run(args.address, args.config))
    except (EndpointError, MissingBlockData, ContractCallError) as exc:
        log.error("collector failed", error=exc.message, context=exc.context)
        sys.exit(1)


if __name__ == "__main__":
    main()
