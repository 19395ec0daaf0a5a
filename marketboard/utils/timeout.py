# marketboard/utils/timeout.py
from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from marketboard.services.errors import ProviderTimeout

T = TypeVar("T")


async def _cancel_and_wait(task: asyncio.Future) -> None:
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)


async def with_timeout(operation: Awaitable[T], seconds: float, *, label: str = "operation") -> T:
    """
    Race `operation` against a deadline.

    The losing side is always cancelled and awaited, so nothing started here
    keeps running once this returns or raises.
    """
    task = asyncio.ensure_future(operation)
    try:
        done, _ = await asyncio.wait({task}, timeout=seconds)
    except asyncio.CancelledError:
        await _cancel_and_wait(task)
        raise

    if task in done:
        return task.result()

    await _cancel_and_wait(task)
    raise ProviderTimeout(label, seconds)
