"""
Per-symbol live price + short history, merged back by symbol.

Fetching works from a snapshot of symbols; merging always targets the list
that is current at merge time, so rows replaced by a full refresh in the
meantime are skipped rather than resurrected.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from marketboard.models.market import CoinEntity

logger = logging.getLogger("marketboard.enrichment")

PriceFetcher = Callable[[str], Awaitable[float]]
HistoryFetcher = Callable[[str], Awaitable[List[float]]]


@dataclass(frozen=True)
class EnrichmentPatch:
    symbol: str
    price: float
    sparkline: List[float] = field(default_factory=list)


async def fetch_patches(
    symbols: Iterable[str],
    fetch_price: PriceFetcher,
    fetch_history: HistoryFetcher,
    *,
    max_concurrency: int = 8,
) -> Dict[str, EnrichmentPatch]:
    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def _one(symbol: str) -> Optional[EnrichmentPatch]:
        async with semaphore:
            price, history = await asyncio.gather(
                fetch_price(symbol),
                fetch_history(symbol),
                return_exceptions=True,
            )
        if isinstance(price, BaseException):
            logger.debug("no spot price for %s: %s", symbol, price)
            return None
        if isinstance(history, BaseException):
            logger.debug("no history for %s: %s", symbol, history)
            history = []
        return EnrichmentPatch(symbol=symbol, price=float(price), sparkline=list(history))

    results = await asyncio.gather(*(_one(s) for s in dict.fromkeys(symbols)))
    return {p.symbol: p for p in results if p is not None}


def merge_patches(coins: Iterable[CoinEntity], patches: Dict[str, EnrichmentPatch]) -> int:
    """Patch price (and non-empty history) in place; returns rows touched."""
    merged = 0
    for coin in coins:
        patch = patches.get(coin.symbol)
        if patch is None:
            continue
        coin.price = patch.price
        if patch.sparkline:
            coin.sparkline = list(patch.sparkline)
        merged += 1
    return merged
