"""Helpers for interacting with the public CoinGecko API."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from marketboard.services.errors import ProviderError
from marketboard.services.http import DEFAULT_TIMEOUT, get_json

COINGECKO_URL = "https://api.coingecko.com/api/v3"
MARKETS_URL = f"{COINGECKO_URL}/coins/markets"
GLOBAL_URL = f"{COINGECKO_URL}/global"

PROVIDER = "coingecko"


async def fetch_raw_market_data(
    vs_currency: str = "usd",
    order: str = "market_cap_desc",
    per_page: int = 100,
    page: int = 1,
    sparkline: bool = True,
    price_change_percentage: str = "1h,24h",
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[dict[str, Any]]:
    """Return one page of raw CoinGecko market rows."""

    params = {
        "vs_currency": vs_currency,
        "order": order,
        "per_page": per_page,
        "page": page,
        "sparkline": str(sparkline).lower(),
        "price_change_percentage": price_change_percentage,
    }

    payload = await get_json(MARKETS_URL, provider=PROVIDER, params=params, client=client, timeout=timeout)
    if not isinstance(payload, list):
        raise ProviderError(PROVIDER, f"page {page}: expected a JSON array")
    return payload


async def fetch_market_pages(
    pages: int = 3,
    per_page: int = 100,
    vs_currency: str = "usd",
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[dict[str, Any]]:
    """
    Fetch pages 1..N concurrently and concatenate them in page order.

    A single failed page fails the whole fetch; sibling pages still in flight
    are cancelled before the error propagates.
    """
    if client is None:
        async with httpx.AsyncClient(timeout=timeout) as own:
            return await fetch_market_pages(pages, per_page, vs_currency, client=own, timeout=timeout)

    tasks = [
        asyncio.ensure_future(
            fetch_raw_market_data(
                vs_currency=vs_currency,
                per_page=per_page,
                page=page,
                client=client,
                timeout=timeout,
            )
        )
        for page in range(1, pages + 1)
    ]

    try:
        results = await asyncio.gather(*tasks)
    except BaseException:
        for t in tasks:
            if not t.done():
                t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    records: list[dict[str, Any]] = []
    for page_records in results:
        records.extend(page_records)
    return records


async def fetch_global(
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict[str, Any]:
    payload = await get_json(GLOBAL_URL, provider=PROVIDER, client=client, timeout=timeout)
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        raise ProviderError(PROVIDER, "global payload has no 'data' object")
    return data
