"""Output documents — the JSON contract written for each command.

Percentages render as strings ("5.13%"), prices and amounts as numbers, and
any unavailable metric as the literal "N/A" ("Unknown" for maturity
progress). Raw on-chain integers are kept as decimal strings.
"""

from __future__ import annotations

import json
import time
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pendle_core.fixed_point import descale, format_units
from pendle_core.models import (
    ApiMarket,
    DerivedMetrics,
    MarketComparison,
    MarketInfo,
    MarketRecord,
    MarketSnapshot,
)

NA = "N/A"
UNKNOWN = "Unknown"


def format_pct(value: float | None, places: int = 2) -> str:
    if value is None:
        return NA
    return f"{value * 100:.{places}f}%"


def format_number(value: float | None, places: int = 6) -> float | str:
    if value is None:
        return NA
    return round(value, places)


def format_timestamp(ts: int | None) -> str | None:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def market_info_to_dict(info: MarketInfo) -> dict[str, Any]:
    return {
        "address": info.address,
        "factory": info.factory,
        "sySymbol": info.sy_symbol,
        "ptSymbol": info.pt_symbol,
        "ytSymbol": info.yt_symbol,
        "syAddress": info.sy_address,
        "ptAddress": info.pt_address,
        "ytAddress": info.yt_address,
        "expiry": info.expiry,
        "expiryDate": format_timestamp(info.expiry),
        "totalLpSupply": str(info.total_lp_supply),
        "totalLpSupplyFormatted": format_units(info.total_lp_supply),
        "timestamp": info.timestamp,
        "blockNumber": info.block_number,
        "createdBlock": info.created_block,
        "createdAt": info.created_at,
    }


def market_info_from_dict(row: dict[str, Any]) -> MarketInfo:
    """Inverse of :func:`market_info_to_dict` for documents read back from disk."""
    return MarketInfo(
        address=row["address"],
        factory=row.get("factory", ""),
        sy_symbol=row.get("sySymbol", ""),
        pt_symbol=row.get("ptSymbol", ""),
        yt_symbol=row.get("ytSymbol", ""),
        sy_address=row.get("syAddress"),
        pt_address=row.get("ptAddress"),
        yt_address=row.get("ytAddress"),
        expiry=int(row["expiry"]),
        total_lp_supply=int(row.get("totalLpSupply", 0)),
        timestamp=int(row.get("timestamp", 0)),
        block_number=int(row.get("blockNumber", 0)),
        created_block=row.get("createdBlock"),
        created_at=row.get("createdAt"),
    )


def metrics_to_dict(metrics: DerivedMetrics) -> dict[str, Any]:
    out: dict[str, Any] = {
        "impliedApy": format_pct(metrics.implied_apy),
        "feeAdjustedApy": format_pct(metrics.fee_adjusted_apy),
        "ytYieldRate": format_pct(metrics.yt_yield_rate),
        "ptPrice": format_number(metrics.pt_price),
        "ytPrice": format_number(metrics.yt_price),
        "utilizationRate": format_pct(metrics.utilization_rate),
        "ytBalanceEstimate": format_number(metrics.yt_balance_estimate),
        "ytBalanceIsEstimate": True,
        "tvl": format_number(metrics.tvl, 2),
        "liquidity": format_number(metrics.liquidity, 2),
        "maturityProgress": (
            UNKNOWN if metrics.maturity_progress is None else format_pct(metrics.maturity_progress)
        ),
        "timeToExpiryYears": round(metrics.time_to_expiry_years, 6),
    }
    if metrics.reward_apr is not None:
        out["rewardApr"] = {
            "total": format_pct(metrics.reward_apr.total),
            "byToken": {t: format_pct(v) for t, v in metrics.reward_apr.by_token.items()},
        }
    return out


def market_record_to_dict(record: MarketRecord) -> dict[str, Any]:
    return {**market_info_to_dict(record.info), "metrics": metrics_to_dict(record.metrics)}


def build_markets_payload(
    markets: Sequence[MarketInfo | MarketRecord],
    *,
    network: str,
    factories: dict[str, str],
    fetch_timestamp: int | None = None,
) -> dict[str, Any]:
    """Document for a discovery run (with or without metrics)."""
    rows = [
        market_record_to_dict(m) if isinstance(m, MarketRecord) else market_info_to_dict(m)
        for m in markets
    ]
    return {
        "source": "on-chain",
        "network": network,
        "factories": factories,
        "fetchTimestamp": fetch_timestamp if fetch_timestamp is not None else int(time.time()),
        "totalMarkets": len(rows),
        "markets": rows,
    }


def snapshot_to_dict(snapshot: MarketSnapshot, metrics: DerivedMetrics) -> dict[str, Any]:
    """Detail document for a single market."""
    state = snapshot.state
    return {
        "address": snapshot.address,
        "tokens": {
            "sy": {"address": snapshot.tokens.sy, "symbol": snapshot.sy_symbol},
            "pt": {"address": snapshot.tokens.pt, "symbol": snapshot.pt_symbol},
            "yt": {"address": snapshot.tokens.yt, "symbol": snapshot.yt_symbol},
        },
        "expiry": state.expiry,
        "expiryDate": format_timestamp(state.expiry),
        "balances": {
            "sy": format_units(state.total_sy),
            "pt": format_units(state.total_pt),
            "lp": format_units(state.total_lp),
        },
        "state": {
            "totalPt": str(state.total_pt),
            "totalSy": str(state.total_sy),
            "totalLp": str(state.total_lp),
            "treasury": state.treasury,
            "scalarRoot": str(state.scalar_root),
            "lnFeeRateRoot": str(state.ln_fee_rate_root),
            "reserveFeePercent": state.reserve_fee_percent,
            "lastLnImpliedRate": str(state.last_ln_implied_rate),
            "syExchangeRate": str(state.sy_exchange_rate),
        },
        "scalarRoot": descale(state.scalar_root),
        "reserveFeePercent": f"{state.reserve_fee_percent}%",
        "metrics": metrics_to_dict(metrics),
        "timestamp": snapshot.timestamp,
        "blockNumber": snapshot.block_number,
    }


def api_market_to_dict(market: ApiMarket) -> dict[str, Any]:
    return market.model_dump(by_alias=True)


def comparison_to_dict(
    comparison: MarketComparison,
    *,
    onchain_timestamp: int | None,
    api_timestamp: str | None,
) -> dict[str, Any]:
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "onchainTimestamp": format_timestamp(onchain_timestamp),
        "apiTimestamp": api_timestamp,
        "summary": comparison.summary,
        "details": {
            "marketsOnlyInOnchain": [market_info_to_dict(m) for m in comparison.only_onchain],
            "marketsOnlyInApi": [api_market_to_dict(m) for m in comparison.only_api],
        },
    }


def write_json(path: str | Path, payload: dict[str, Any]) -> Path:
    """Write *payload* as indented JSON, creating parent directories."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(payload, indent=2) + "\n")
    return p


def read_json(path: str | Path) -> dict[str, Any]:
    with open(path) as f:
        return json.load(f)
