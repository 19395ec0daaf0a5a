"""Coinbase spot price for a single symbol/fiat pair."""

from __future__ import annotations

import httpx

from marketboard.services.errors import ProviderError
from marketboard.services.http import DEFAULT_TIMEOUT, get_json

SPOT_URL = "https://api.coinbase.com/v2/prices/{pair}/spot"

PROVIDER = "coinbase"


async def fetch_spot_price(
    symbol: str,
    fiat: str = "USD",
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> float:
    pair = f"{symbol.upper()}-{fiat.upper()}"
    payload = await get_json(SPOT_URL.format(pair=pair), provider=PROVIDER, client=client, timeout=timeout)

    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict) or "amount" not in data:
        raise ProviderError(PROVIDER, f"{pair}: 'data.amount' missing")

    try:
        return float(data["amount"])
    except (TypeError, ValueError) as exc:
        raise ProviderError(PROVIDER, f"{pair}: bad amount {data['amount']!r}") from exc
