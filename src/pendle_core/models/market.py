"""Market data models — on-chain state, discovery records, API markets."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from pendle_core.fixed_point import SCALE


class MarketState(BaseModel):
    """Raw ``readState`` tuple of one market plus the SY exchange rate.

    Balances, ``scalar_root``, ``last_ln_implied_rate`` and
    ``sy_exchange_rate`` are integers at the shared 1e18 scale.
    """

    model_config = ConfigDict(frozen=True)

    total_pt: int
    total_sy: int
    total_lp: int
    scalar_root: int
    last_ln_implied_rate: int
    expiry: int
    reserve_fee_percent: int
    ln_fee_rate_root: int = 0
    treasury: str | None = None
    sy_exchange_rate: int = SCALE


class MarketTokens(BaseModel):
    """SY / PT / YT addresses returned by ``readTokens``."""

    model_config = ConfigDict(frozen=True)

    sy: str
    pt: str
    yt: str


class MarketCreatedEvent(BaseModel):
    """A decoded ``CreateNewMarket`` log."""

    model_config = ConfigDict(frozen=True)

    market: str
    pt: str
    block_number: int


class MarketInfo(BaseModel):
    """A valid, unexpired market found by discovery."""

    model_config = ConfigDict(frozen=True)

    address: str
    sy_symbol: str
    pt_symbol: str
    yt_symbol: str
    factory: str
    expiry: int
    total_lp_supply: int
    timestamp: int
    block_number: int
    sy_address: str | None = None
    pt_address: str | None = None
    yt_address: str | None = None
    created_block: int | None = None
    created_at: int | None = None


class MarketSnapshot(BaseModel):
    """Everything the metrics engine needs about one market at one block."""

    address: str
    state: MarketState
    tokens: MarketTokens
    sy_symbol: str
    pt_symbol: str
    yt_symbol: str
    block_number: int
    timestamp: int
    reward_accruals: dict[str, int] | None = None


class ApiMarket(BaseModel):
    """One entry of the API's ``markets`` array."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = ""
    address: str
    expiry: str = ""
    pt: str = ""
    yt: str = ""
    sy: str = ""
    underlying_asset: str = Field(default="", alias="underlyingAsset")


class MarketComparison(BaseModel):
    """On-chain vs API market sets, matched by normalized address."""

    in_both: list[MarketInfo] = []
    only_onchain: list[MarketInfo] = []
    only_api: list[ApiMarket] = []

    @property
    def summary(self) -> dict[str, int]:
        return {
            "totalOnchain": len(self.in_both) + len(self.only_onchain),
            "totalApi": len(self.in_both) + len(self.only_api),
            "inBoth": len(self.in_both),
            "onlyOnchain": len(self.only_onchain),
            "onlyApi": len(self.only_api),
        }
