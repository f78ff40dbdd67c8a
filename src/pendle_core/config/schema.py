"""Configuration schema — Pydantic models for config.yaml."""

from __future__ import annotations

from pydantic import BaseModel, Field

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

DEFAULT_STABLECOIN_IDENTIFIERS = [
    "USD",
    "USDC",
    "USDT",
    "DAI",
    "USDE",
    "USDS",
    "SUSD",
    "USUAL",
    "CRVUSD",
]


def _mainnet_factories() -> dict[str, str]:
    return {
        "V3": "0x1A6fCc85557BC4fB7B534ed835a03EF056552D52",
        "V4": "0x3d75Bd20C983edb5fD218A1b7e0024F1056c7A2F",
        "V5": "0x6fcf753f2C67b83f7B09746Bbc4FA0047b35D050",
    }


class NetworkConfig(BaseModel):
    chain_id: int = 1
    rpc_url: str = ""
    # Average seconds per block, used to turn a day window into a block range.
    block_time_s: float = Field(default=12.0, gt=0)
    # Factory version tag -> factory address
    factories: dict[str, str] = Field(default_factory=dict)


class ChainConfig(BaseModel):
    timeout_s: float = 30.0
    symbol_cache_ttl_s: float = 3600.0


class DiscoveryConfig(BaseModel):
    lookback_days: int = Field(default=181, gt=0)
    max_concurrency: int = Field(default=8, ge=1)
    # Max blocks per eth_getLogs request; 0 queries the whole window at once.
    log_chunk_blocks: int = Field(default=0, ge=0)
    stablecoin_identifiers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_STABLECOIN_IDENTIFIERS)
    )


class RewardsConfig(BaseModel):
    enabled: bool = False
    probe_account: str = ZERO_ADDRESS
    max_apr_pct: float = 1000.0


class ApiConfig(BaseModel):
    base_url: str = "https://api-v2.pendle.finance/core"
    timeout_s: float = 15.0


class OutputConfig(BaseModel):
    data_dir: str = "data"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "json"


class AppConfig(BaseModel):
    network: str = "ethereum"
    networks: dict[str, NetworkConfig] = Field(
        default_factory=lambda: {"ethereum": NetworkConfig(factories=_mainnet_factories())}
    )
    chain: ChainConfig = Field(default_factory=ChainConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    rewards: RewardsConfig = Field(default_factory=RewardsConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def active_network(self) -> NetworkConfig:
        """The NetworkConfig selected by ``network``."""
        try:
            return self.networks[self.network]
        except KeyError:
            raise ValueError(
                f"network {self.network!r} is not configured (known: {sorted(self.networks)})"
            ) from None
