"""Map provider-shaped rows onto CoinEntity / GlobalSummary."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping, Sequence

from marketboard.config.coins import SEED_COINS, SYNTHETIC_NAME_MARKERS
from marketboard.models.market import CoinEntity, GlobalSummary

logger = logging.getLogger("marketboard.normalizer")

RecordAdapter = Callable[[Mapping[str, Any]], CoinEntity]

PAPRIKA_LOGO_URL = "https://static.coinpaprika.com/coin/{id}/logo.png"


def _opt_float(value: Any) -> float | None:
    if value is None:
        return None
    return float(value)


def _float(value: Any, default: float = 0.0) -> float:
    out = _opt_float(value)
    return default if out is None else out


def _required_float(raw: Mapping[str, Any], key: str) -> float:
    value = raw[key]
    if value is None:
        raise ValueError(f"{key} is null")
    return float(value)


def coin_from_coingecko(raw: Mapping[str, Any]) -> CoinEntity:
    spark = raw.get("sparkline_in_7d") or {}
    change_24h = raw.get("price_change_percentage_24h")
    if change_24h is None:
        change_24h = raw.get("price_change_percentage_24h_in_currency")

    return CoinEntity(
        symbol=raw["symbol"],
        name=raw["name"],
        price=_required_float(raw, "current_price"),
        change_24h=_float(change_24h),
        change_1h=_float(raw.get("price_change_percentage_1h_in_currency")),
        volume=_float(raw.get("total_volume")),
        market_cap=_float(raw.get("market_cap")),
        sparkline=[float(p) for p in (spark.get("price") or []) if p is not None],
        image_url=raw.get("image"),
    )


def coin_from_coinpaprika(raw: Mapping[str, Any], quote: str = "USD") -> CoinEntity:
    usd = (raw.get("quotes") or {}).get(quote) or {}
    paprika_id = raw.get("id")

    return CoinEntity(
        symbol=raw["symbol"],
        name=raw["name"],
        price=_required_float(usd, "price"),
        change_24h=_float(usd.get("percent_change_24h")),
        change_1h=_float(usd.get("percent_change_1h")),
        volume=_float(usd.get("volume_24h")),
        market_cap=_float(usd.get("market_cap")),
        sparkline=[],
        image_url=PAPRIKA_LOGO_URL.format(id=paprika_id) if paprika_id else None,
    )


def is_synthetic(name: str, markers: Sequence[str] = SYNTHETIC_NAME_MARKERS) -> bool:
    lowered = name.lower()
    return any(marker in lowered for marker in markers)


def normalize_coins(
    records: Iterable[Any],
    adapter: RecordAdapter,
    *,
    markers: Sequence[str] = SYNTHETIC_NAME_MARKERS,
) -> list[CoinEntity]:
    """
    Convert raw rows to entities, keeping provider order.

    Malformed rows and synthetic tokens are dropped; for duplicate symbols the
    first row wins.
    """
    out: list[CoinEntity] = []
    seen: set[str] = set()
    dropped = 0

    for raw in records:
        try:
            coin = adapter(raw)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            dropped += 1
            logger.debug("dropping malformed record %r: %s", raw, exc)
            continue

        if is_synthetic(coin.name, markers):
            continue
        if coin.symbol in seen:
            continue

        seen.add(coin.symbol)
        out.append(coin)

    if dropped:
        logger.info("normalizer dropped %d malformed record(s)", dropped)
    return out


def seed_coins() -> list[CoinEntity]:
    return [CoinEntity(**row) for row in SEED_COINS]


def global_from_coingecko(data: Mapping[str, Any], vs_currency: str = "usd") -> GlobalSummary:
    caps = data.get("total_market_cap") or {}
    volumes = data.get("total_volume") or {}
    total_cap = _opt_float(caps.get(vs_currency))
    if total_cap is None:
        raise ValueError(f"coingecko global payload has no total_market_cap[{vs_currency!r}]")

    return GlobalSummary(
        total_market_cap=total_cap,
        total_volume=_opt_float(volumes.get(vs_currency)),
        market_cap_percentage={str(k).lower(): float(v) for k, v in (data.get("market_cap_percentage") or {}).items()},
        market_cap_change_percentage_24h=_opt_float(data.get("market_cap_change_percentage_24h_usd")),
        active_cryptocurrencies=data.get("active_cryptocurrencies"),
        markets=data.get("markets"),
    )


def global_from_coinpaprika(data: Mapping[str, Any]) -> GlobalSummary:
    total_cap = _opt_float(data.get("market_cap_usd"))
    if total_cap is None:
        raise ValueError("coinpaprika global payload has no market_cap_usd")

    dominance = {}
    btc = _opt_float(data.get("bitcoin_dominance_percentage"))
    if btc is not None:
        dominance["btc"] = btc

    return GlobalSummary(
        total_market_cap=total_cap,
        total_volume=_opt_float(data.get("volume_24h_usd")),
        market_cap_percentage=dominance,
        market_cap_change_percentage_24h=_opt_float(data.get("market_cap_change_24h")),
        active_cryptocurrencies=data.get("cryptocurrencies_number"),
    )
