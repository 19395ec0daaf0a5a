from __future__ import annotations

import asyncio

import pytest

from marketboard.models.market import CoinEntity
from marketboard.services.enrichment import EnrichmentPatch, fetch_patches, merge_patches
from marketboard.services.errors import ProviderError

PRICES = {"BTC": 27000.0, "ETH": 1600.0}
HISTORY = {"BTC": [1.0, 2.0, 3.0]}


async def fake_price(symbol):
    await asyncio.sleep(0)
    if symbol not in PRICES:
        raise ProviderError("coinbase", f"{symbol}-USD: 'data.amount' missing")
    return PRICES[symbol]


async def fake_history(symbol):
    await asyncio.sleep(0)
    if symbol not in HISTORY:
        raise ProviderError("binance", "HTTP 400")
    return HISTORY[symbol]


@pytest.mark.asyncio
async def test_patch_needs_price_history_is_optional():
    patches = await fetch_patches(["BTC", "ETH", "NOPE", "BTC"], fake_price, fake_history)

    assert set(patches) == {"BTC", "ETH"}
    assert patches["BTC"] == EnrichmentPatch("BTC", 27000.0, [1.0, 2.0, 3.0])
    assert patches["ETH"].sparkline == []


@pytest.mark.asyncio
async def test_concurrency_is_bounded():
    in_flight = 0
    peak = 0

    async def slow_price(symbol):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return 1.0

    async def no_history(symbol):
        return []

    symbols = [f"C{i}" for i in range(10)]
    patches = await fetch_patches(symbols, slow_price, no_history, max_concurrency=3)

    assert len(patches) == 10
    assert peak <= 3


def test_merge_patches_in_place_and_skips_unknown_symbols():
    coins = [
        CoinEntity(symbol="BTC", name="Bitcoin", price=1.0, sparkline=[9.0]),
        CoinEntity(symbol="ETH", name="Ethereum", price=2.0, sparkline=[8.0]),
    ]
    patches = {
        "BTC": EnrichmentPatch("BTC", 27000.0, [1.0, 2.0]),
        "ETH": EnrichmentPatch("ETH", 1600.0, []),
        "DOGE": EnrichmentPatch("DOGE", 0.07, [0.1]),
    }

    merged = merge_patches(coins, patches)

    assert merged == 2
    assert [c.symbol for c in coins] == ["BTC", "ETH"]
    assert coins[0].price == 27000.0 and coins[0].sparkline == [1.0, 2.0]
    # empty history leaves the existing sparkline alone
    assert coins[1].price == 1600.0 and coins[1].sparkline == [8.0]
