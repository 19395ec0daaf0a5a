"""CoinPaprika tickers and global stats, used when CoinGecko is unavailable."""

from __future__ import annotations

from typing import Any

import httpx

from marketboard.services.errors import ProviderError
from marketboard.services.http import DEFAULT_TIMEOUT, get_json

COINPAPRIKA_URL = "https://api.coinpaprika.com/v1"
TICKERS_URL = f"{COINPAPRIKA_URL}/tickers"
GLOBAL_URL = f"{COINPAPRIKA_URL}/global"

PROVIDER = "coinpaprika"


async def fetch_tickers(
    limit: int = 100,
    quotes: str = "USD",
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[dict[str, Any]]:
    params = {"quotes": quotes, "limit": max(1, limit)}
    payload = await get_json(TICKERS_URL, provider=PROVIDER, params=params, client=client, timeout=timeout)
    if not isinstance(payload, list):
        raise ProviderError(PROVIDER, "expected a JSON array of tickers")
    return payload


async def fetch_global(
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict[str, Any]:
    payload = await get_json(GLOBAL_URL, provider=PROVIDER, client=client, timeout=timeout)
    if not isinstance(payload, dict):
        raise ProviderError(PROVIDER, "expected a JSON object for global stats")
    return payload
