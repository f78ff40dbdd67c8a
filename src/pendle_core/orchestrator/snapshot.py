"""Snapshot reader — fetches one market's state, tokens and rates at the latest block."""

from __future__ import annotations

from pendle_core.chain import ChainClient
from pendle_core.config.schema import RewardsConfig
from pendle_core.errors import ContractCallError
from pendle_core.logging import get_logger
from pendle_core.models import MarketSnapshot
from pendle_core.tasks import run_all

log = get_logger(__name__)


async def read_reward_accruals(client: ChainClient, market: str, probe_account: str) -> dict[str, int]:
    """Reward token -> accrued amount for *probe_account*."""
    tokens = await client.get_reward_tokens(market)
    amounts = await run_all(client.user_reward(market, t, probe_account) for t in tokens)
    return dict(zip(tokens, amounts))


async def build_snapshot(
    client: ChainClient,
    market: str,
    *,
    rewards: RewardsConfig | None = None,
) -> MarketSnapshot:
    """Read a point-in-time snapshot of *market*.

    Args:
        client: Chain client.
        market: Market contract address.
        rewards: When given and enabled, also sample reward accruals. A
            failure there is logged and leaves ``reward_accruals`` unset.

    Raises:
        ContractCallError: a state, token or exchange-rate read failed.
        EndpointError / MissingBlockData: the latest block could not be read.
    """
    block_number = await client.get_block_number()
    timestamp = await client.get_block_timestamp(block_number)

    state, tokens = await run_all([
        client.read_state(market),
        client.read_tokens(market),
    ])

    sy_symbol, pt_symbol, yt_symbol, exchange_rate = await run_all([
        client.token_symbol(tokens.sy, market=market),
        client.token_symbol(tokens.pt, market=market),
        client.token_symbol(tokens.yt, market=market),
        client.sy_exchange_rate(tokens.sy, market=market),
    ])

    accruals: dict[str, int] | None = None
    if rewards is not None and rewards.enabled:
        try:
            accruals = await read_reward_accruals(client, market, rewards.probe_account)
        except ContractCallError as exc:
            log.warning("reward_read_failed", market=market, error=str(exc))

    return MarketSnapshot(
        address=market,
        state=state.model_copy(update={"sy_exchange_rate": exchange_rate}),
        tokens=tokens,
        sy_symbol=sy_symbol,
        pt_symbol=pt_symbol,
        yt_symbol=yt_symbol,
        block_number=block_number,
        timestamp=timestamp,
        reward_accruals=accruals,
    )
