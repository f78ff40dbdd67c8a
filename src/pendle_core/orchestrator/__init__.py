"""Pipeline — discovery, snapshots, metrics, output documents."""

from pendle_core.orchestrator.compare import compare_markets
from pendle_core.orchestrator.persistence import build_markets_payload, write_json
from pendle_core.orchestrator.runner import collect_markets, run_pipeline, snapshot_markets
from pendle_core.orchestrator.snapshot import build_snapshot

__all__ = [
    "build_markets_payload",
    "build_snapshot",
    "collect_markets",
    "compare_markets",
    "run_pipeline",
    "snapshot_markets",
    "write_json",
]
