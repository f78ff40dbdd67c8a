"""Config loader — reads YAML, applies PENDLE_* env var overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from pendle_core.config.schema import AppConfig


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from a YAML file, then apply env var overrides.

    If *path* is None or the file doesn't exist, returns defaults.

    Environment variable overrides:
        PENDLE_NETWORK     -> network
        PENDLE_RPC_URL     -> networks.<network>.rpc_url  (ETH_RPC_URL as fallback)
        PENDLE_LOG_LEVEL   -> logging.level
        PENDLE_LOG_FORMAT  -> logging.format
    """
    data: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p) as f:
                data = yaml.safe_load(f) or {}

    network = os.environ.get("PENDLE_NETWORK")
    if network:
        data["network"] = network

    log_level = os.environ.get("PENDLE_LOG_LEVEL")
    if log_level:
        data.setdefault("logging", {})["level"] = log_level

    log_format = os.environ.get("PENDLE_LOG_FORMAT")
    if log_format:
        data.setdefault("logging", {})["format"] = log_format

    cfg = AppConfig.model_validate(data)

    # Applied after validation so the default network table is kept.
    rpc_url = os.environ.get("PENDLE_RPC_URL") or os.environ.get("ETH_RPC_URL")
    if rpc_url:
        cfg.active_network().rpc_url = rpc_url

    return cfg
