"""Minimal JSON ABIs for the read-only calls this package makes."""

from __future__ import annotations


def _view(name: str, inputs: list[tuple[str, str]], outputs: list[dict]) -> dict:
    return {
        "type": "function",
        "name": name,
        "stateMutability": "view",
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": outputs,
    }


def _out(type_: str, name: str = "") -> dict:
    return {"name": name, "type": type_}


MARKET_FACTORY_ABI: list[dict] = [
    _view("isValidMarket", [("market", "address")], [_out("bool")]),
    {
        "type": "event",
        "name": "CreateNewMarket",
        "anonymous": False,
        "inputs": [
            {"name": "market", "type": "address", "indexed": True},
            {"name": "PT", "type": "address", "indexed": True},
            {"name": "scalarRoot", "type": "int256", "indexed": False},
            {"name": "initialAnchor", "type": "int256", "indexed": False},
            {"name": "lnFeeRateRoot", "type": "uint256", "indexed": False},
        ],
    },
]

# readState(router) returns a single MarketState struct.
MARKET_STATE_COMPONENTS: list[dict] = [
    _out("int256", "totalPt"),
    _out("int256", "totalSy"),
    _out("int256", "totalLp"),
    _out("address", "treasury"),
    _out("int256", "scalarRoot"),
    _out("uint256", "expiry"),
    _out("uint256", "lnFeeRateRoot"),
    _out("uint256", "reserveFeePercent"),
    _out("uint256", "lastLnImpliedRate"),
]

MARKET_ABI: list[dict] = [
    _view(
        "readState",
        [("router", "address")],
        [{"name": "market", "type": "tuple", "components": MARKET_STATE_COMPONENTS}],
    ),
    _view("readTokens", [], [_out("address", "_SY"), _out("address", "_PT"), _out("address", "_YT")]),
    _view("totalSupply", [], [_out("uint256")]),
    _view("isExpired", [], [_out("bool")]),
    _view("expiry", [], [_out("uint256")]),
    _view("getRewardTokens", [], [_out("address[]")]),
    _view(
        "userReward",
        [("token", "address"), ("user", "address")],
        [_out("uint128", "index"), _out("uint128", "accrued")],
    ),
]

TOKEN_ABI: list[dict] = [
    _view("symbol", [], [_out("string")]),
    _view("decimals", [], [_out("uint8")]),
    _view("totalSupply", [], [_out("uint256")]),
]

SY_ABI: list[dict] = [
    *TOKEN_ABI,
    _view("exchangeRate", [], [_out("uint256", "res")]),
]
