"""Binance klines, reduced to closing prices for the sparkline."""

from __future__ import annotations

import logging

import httpx

from marketboard.services.errors import ProviderError
from marketboard.services.http import DEFAULT_TIMEOUT, get_json

KLINES_URL = "https://api.binance.com/api/v3/klines"

PROVIDER = "binance"

logger = logging.getLogger("marketboard.binance")


async def fetch_closes(
    symbol: str,
    interval: str = "1d",
    limit: int = 7,
    quote: str = "USDT",
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[float]:
    """Return the close of each candle, oldest first."""
    params = {"symbol": f"{symbol.upper()}{quote}", "interval": interval, "limit": limit}
    payload = await get_json(KLINES_URL, provider=PROVIDER, params=params, client=client, timeout=timeout)
    if not isinstance(payload, list):
        raise ProviderError(PROVIDER, f"{params['symbol']}: expected a JSON array of candles")

    closes: list[float] = []
    for row in payload:
        # [open_time, open, high, low, close, volume, ...]
        try:
            closes.append(float(row[4]))
        except (IndexError, TypeError, ValueError):
            logger.debug("skipping malformed candle for %s: %r", symbol, row)
    return closes
