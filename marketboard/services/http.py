"""Shared JSON GET used by every provider client."""

from __future__ import annotations

from typing import Any, Mapping

import httpx

from marketboard.services.errors import ProviderError
from marketboard.utils.timeout import with_timeout

DEFAULT_TIMEOUT = 15.0


async def _get_json(
    client: httpx.AsyncClient,
    url: str,
    params: Mapping[str, Any] | None,
    provider: str,
    timeout: float,
) -> Any:
    async def _call() -> Any:
        response = await client.get(url, params=params)
        if response.status_code != 200:
            raise ProviderError(provider, f"HTTP {response.status_code} from {url}")
        return response.json()

    try:
        return await with_timeout(_call(), timeout, label=provider)
    except httpx.HTTPError as exc:
        raise ProviderError(provider, f"request failed: {exc!r}") from exc
    except ValueError as exc:
        raise ProviderError(provider, "response was not valid JSON") from exc


async def get_json(
    url: str,
    *,
    provider: str,
    params: Mapping[str, Any] | None = None,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """
    GET `url` and decode JSON.

    The combinator deadline is applied on top of httpx's own timeout; both
    non-200 responses and undecodable bodies surface as ProviderError.
    """
    if client is None:
        async with httpx.AsyncClient(timeout=timeout) as own:
            return await _get_json(own, url, params, provider, timeout)
    return await _get_json(client, url, params, provider, timeout)
