"""Configuration system."""

from pendle_core.config.loader import load_config
from pendle_core.config.schema import AppConfig, DiscoveryConfig, NetworkConfig, RewardsConfig

__all__ = ["AppConfig", "DiscoveryConfig", "NetworkConfig", "RewardsConfig", "load_config"]
