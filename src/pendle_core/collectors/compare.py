"""Compare the on-chain market list with the API's active markets.

Reads the documents written by the ``markets`` and ``api`` collectors.

Run: python -m pendle_core.collectors compare [--onchain PATH] [--api PATH] [--config config.yaml]
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from pydantic import ValidationError

from pendle_core.config import load_config
from pendle_core.logging import get_logger, setup_logging
from pendle_core.models import ApiMarket, MarketComparison
from pendle_core.orchestrator import compare_markets, write_json
from pendle_core.orchestrator.persistence import (
    comparison_to_dict,
    format_timestamp,
    market_info_from_dict,
    read_json,
)

log = get_logger(__name__)


def load_and_compare(onchain_path: Path, api_path: Path) -> tuple[MarketComparison, dict]:
    onchain_doc = read_json(onchain_path)
    api_doc = read_json(api_path)

    onchain = [market_info_from_dict(row) for row in onchain_doc.get("markets", [])]
    api = [ApiMarket.model_validate(row) for row in api_doc.get("data", {}).get("markets", [])]

    comparison = compare_markets(onchain, api)
    report = comparison_to_dict(
        comparison,
        onchain_timestamp=onchain_doc.get("fetchTimestamp"),
        api_timestamp=api_doc.get("timestamp"),
    )
    return comparison, report


def run(
    config_path: str | None = None,
    *,
    onchain_path: str | None = None,
    api_path: str | None = None,
) -> Path:
    cfg = load_config(config_path)
    setup_logging(level=cfg.logging.level, log_format=cfg.logging.format)
    data_dir = Path(cfg.output.data_dir)

    comparison, report = load_and_compare(
        Path(onchain_path) if onchain_path else data_dir / "onchain" / "onchain-active-markets.json",
        Path(api_path) if api_path else data_dir / "active-markets.json",
    )

    log.info("comparison summary", **comparison.summary)
    for market in comparison.only_onchain:
        log.info(
            "only on-chain",
            market=market.address,
            tokens=f"SY={market.sy_symbol}, PT={market.pt_symbol}, YT={market.yt_symbol}",
            expiry=format_timestamp(market.expiry),
        )
    for market in comparison.only_api:
        log.info("only in API", market=market.address, name=market.name, expiry=market.expiry)

    path = write_json(data_dir / "market-comparison.json", report)
    log.info("saved comparison", path=str(path))
    return path


def main() -> None:
    parser = argparse.ArgumentParser(description="Compare on-chain and API market lists")
    parser.add_argument("--config", default="config.yaml", help="Path to config file")
    parser.add_argument("--onchain", default=None, help="On-chain markets document")
    parser.add_argument("--api", default=None, help="API active markets document")
    args = parser.parse_args()
    try:
        run(args.config, onchain_path=args.onchain, api_path=args.api)
    except FileNotFoundError as exc:
        log.error("input document missing", path=exc.filename)
        sys.exit(1)
    except (json.JSONDecodeError, KeyError, ValidationError) as exc:
        log.error("input document invalid", error_type=type(exc).__name__, error=str(exc))
        sys.exit(1)


if __name__ == "__main__":
    main()
