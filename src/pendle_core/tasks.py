"""Concurrent fan-out that stops at the first failure."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable
from typing import Any


async def run_all(coros: Iterable[Awaitable[Any]]) -> list[Any]:
    """Await *coros* concurrently and return their results in order.

    Runs under an ``asyncio.TaskGroup``: the first exception cancels the
    remaining tasks and is re-raised as is, not wrapped in an ExceptionGroup.
    """
    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(c) for c in coros]
    except ExceptionGroup as group:
        raise group.exceptions[0]
    return [t.result() for t in tasks]
