"""API collector — active market list and per-market analytics from the REST API.

Run: python -m pendle_core.collectors api [--details] [--config config.yaml]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path

from pendle_core.config import load_config
from pendle_core.errors import EndpointError
from pendle_core.exchange import PendleApiClient
from pendle_core.logging import get_logger, setup_logging
from pendle_core.models import ApiMarket
from pendle_core.orchestrator import write_json
from pendle_core.orchestrator.persistence import format_pct
from pendle_core.tasks import run_all

log = get_logger(__name__)


async def fetch_market_details(
    client: PendleApiClient,
    markets: list[ApiMarket],
    max_concurrency: int = 8,
) -> list[dict]:
    """Per-market analytics, skipping markets whose request fails."""
    sem = asyncio.Semaphore(max_concurrency)

    async def _one(market: ApiMarket) -> dict | None:
        async with sem:
            try:
                data = await client.get_market_data(market.address)
            except EndpointError as exc:
                log.warning("market data fetch failed", market=market.address, error=str(exc))
                return None
        return {**data, "name": market.name}

    results = await run_all(_one(m) for m in markets)
    return [r for r in results if r is not None]


async def run(config_path: str | None = None, *, details: bool = False) -> list[Path]:
    cfg = load_config(config_path)
    setup_logging(level=cfg.logging.level, log_format=cfg.logging.format)
    data_dir = Path(cfg.output.data_dir)

    client = PendleApiClient(
        base_url=cfg.api.base_url,
        chain_id=cfg.active_network().chain_id,
        timeout_s=cfg.api.timeout_s,
    )
    written: list[Path] = []
    try:
        log.info("fetching active markets from API", base_url=cfg.api.base_url)
        raw = await client.get_active_markets_raw()
        markets = [ApiMarket.model_validate(m) for m in raw["markets"] if isinstance(m, dict)]
        now = datetime.now(timezone.utc).isoformat()
        written.append(write_json(data_dir / "active-markets.json", {"timestamp": now, "data": raw}))
        for market in markets:
            log.info("api market", name=market.name, market=market.address, expiry=market.expiry)

        if details:
            rows = await fetch_market_details(client, markets, cfg.discovery.max_concurrency)
            written.append(write_json(
                data_dir / "market-details.json",
                {"timestamp": now, "totalMarkets": len(rows), "markets": rows},
            ))
            for row in rows:
                log.info(
                    "market apy",
                    name=row.get("name"),
                    market=row.get("address"),
                    underlying_apy=format_pct(row.get("underlyingApy")),
                    implied_apy=format_pct(row.get("impliedApy")),
                    aggregated_apy=format_pct(row.get("aggregatedApy")),
                    liquidity_usd=round((row.get("liquidity") or {}).get("usd") or 0),
                )
    finally:
        await client.close()

    log.info("saved API market data", paths=[str(p) for p in written], markets=len(markets))
    return written


def main() -> None:
    parser = argparse.ArgumentParser(description="Fetch active markets from the REST API")
    parser.add_argument("--config", default="config.yaml", help="Path to config file")
    parser.add_argument("--details", action="store_true", help="Also fetch per-market analytics")
    args = parser.parse_args()
    try:
        asyncio.run(run(args.config, details=args.details))
    except EndpointError as exc:
        log.error("collector failed", error=exc.message, context=exc.context)
        sys.exit(1)


if __name__ == "__main__":
    main()
