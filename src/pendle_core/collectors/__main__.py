"""Allow running collectors as: python -m pendle_core.collectors <name>."""

import sys

COMMANDS = ("markets", "market", "api", "compare")


def main() -> None:
    if len(sys.argv) < 2 or sys.argv[1] not in COMMANDS:
        print(f"Usage: python -m pendle_core.collectors <{'|'.join(COMMANDS)}> [options]")
        sys.exit(1)

    name = sys.argv[1]
    # Remove the subcommand so the collector's argparse doesn't see it.
    sys.argv = [sys.argv[0]] + sys.argv[2:]

    if name == "markets":
        from pendle_core.collectors.onchain import main as onchain_main
        onchain_main()
    elif name == "market":
        from pendle_core.collectors.market import main as market_main
        market_main()
    elif name == "api":
        from pendle_core.collectors.api import main as api_main
        api_main()
    elif name == "compare":
        from pendle_core.collectors.compare import main as compare_main
        compare_main()


main()
