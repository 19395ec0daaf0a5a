from __future__ import annotations

import asyncio

import pytest

from marketboard.services.errors import ProviderError, ProviderTimeout
from marketboard.utils.timeout import with_timeout


@pytest.mark.asyncio
async def test_with_timeout_returns_result_when_operation_finishes_first():
    async def quick():
        await asyncio.sleep(0)
        return 42

    assert await with_timeout(quick(), 1.0) == 42


@pytest.mark.asyncio
async def test_with_timeout_propagates_operation_errors():
    async def broken():
        raise ProviderError("x", "boom")

    with pytest.raises(ProviderError, match="boom"):
        await with_timeout(broken(), 1.0)


@pytest.mark.asyncio
async def test_with_timeout_cancels_operation_that_never_completes():
    flags = {"started": False, "cancelled": False}

    async def never_completes():
        flags["started"] = True
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            flags["cancelled"] = True
            raise

    loop = asyncio.get_running_loop()
    t0 = loop.time()
    with pytest.raises(ProviderTimeout) as excinfo:
        await with_timeout(never_completes(), 0.05, label="slow")

    assert loop.time() - t0 < 1.0
    assert excinfo.value.provider == "slow"
    assert flags == {"started": True, "cancelled": True}

    leaked = [t for t in asyncio.all_tasks() if t.get_coro().__name__ == "never_completes"]
    assert leaked == []


@pytest.mark.asyncio
async def test_cancelling_caller_cancels_inner_operation():
    inner_cancelled = asyncio.Event()

    async def slow():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            inner_cancelled.set()
            raise

    outer = asyncio.create_task(with_timeout(slow(), 5.0))
    await asyncio.sleep(0.01)
    outer.cancel()

    with pytest.raises(asyncio.CancelledError):
        await outer
    assert inner_cancelled.is_set()
