"""Filtering and ordering of the visible coin list. Pure functions only."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Iterable, List, Sequence

from marketboard.config.coins import PINNED_SYMBOLS
from marketboard.models.market import CoinEntity


class MarketSegment(str, Enum):
    ALL = "all"
    FAVORITES = "favorites"
    GAINERS = "gainers"
    LOSERS = "losers"


class SortField(str, Enum):
    COIN = "coin"
    PRICE = "price"
    DAILY_CHANGE = "daily_change"
    VOLUME = "volume"
    MARKET_CAP = "market_cap"
    NONE = "none"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class ViewSettings:
    segment: MarketSegment = MarketSegment.ALL
    search_text: str = ""
    sort_field: SortField = SortField.MARKET_CAP
    sort_direction: SortDirection = SortDirection.DESC


def toggle_sort(view: ViewSettings, field: SortField) -> ViewSettings:
    """Same field flips the direction; a new field starts ascending."""
    if view.sort_field == field:
        flipped = SortDirection.DESC if view.sort_direction == SortDirection.ASC else SortDirection.ASC
        return replace(view, sort_direction=flipped)
    return replace(view, sort_field=field, sort_direction=SortDirection.ASC)


_SORT_KEYS: Dict[SortField, Callable[[CoinEntity], object]] = {
    SortField.COIN: lambda c: c.symbol.casefold(),
    SortField.PRICE: lambda c: c.price,
    SortField.DAILY_CHANGE: lambda c: c.change_24h,
    SortField.VOLUME: lambda c: c.volume,
    SortField.MARKET_CAP: lambda c: c.market_cap,
}


def _matches_search(coin: CoinEntity, needle: str) -> bool:
    return needle in coin.symbol.lower() or needle in coin.name.lower()


def _in_segment(coin: CoinEntity, segment: MarketSegment) -> bool:
    if segment == MarketSegment.FAVORITES:
        return coin.is_favorite
    if segment == MarketSegment.GAINERS:
        return coin.change_24h > 0
    if segment == MarketSegment.LOSERS:
        return coin.change_24h < 0
    return True


def pinned_first(coins: Iterable[CoinEntity], pinned: Sequence[str] = PINNED_SYMBOLS) -> List[CoinEntity]:
    """Pinned symbols in list order, then everything else by market cap (desc)."""
    coins = list(coins)
    rank = {symbol: i for i, symbol in enumerate(pinned)}
    head = [c for c in coins if c.symbol in rank]
    tail = [c for c in coins if c.symbol not in rank]
    head.sort(key=lambda c: rank[c.symbol])
    tail.sort(key=lambda c: c.market_cap, reverse=True)
    return head + tail


def compute_visible(
    entities: Iterable[CoinEntity],
    segment: MarketSegment = MarketSegment.ALL,
    search_text: str = "",
    sort_field: SortField = SortField.MARKET_CAP,
    sort_direction: SortDirection = SortDirection.DESC,
    pinned: Sequence[str] = PINNED_SYMBOLS,
) -> List[CoinEntity]:
    result = list(entities)

    needle = search_text.lower()
    if needle:
        result = [c for c in result if _matches_search(c, needle)]

    result = [c for c in result if _in_segment(c, segment)]

    if (
        not needle
        and segment == MarketSegment.ALL
        and sort_field == SortField.MARKET_CAP
        and sort_direction == SortDirection.DESC
    ):
        return pinned_first(result, pinned)

    key = _SORT_KEYS.get(sort_field)
    if key is None:
        return result
    # sorted() is stable, so ties keep the incoming order
    return sorted(result, key=key, reverse=(sort_direction == SortDirection.DESC))


def compute_view(entities: Iterable[CoinEntity], view: ViewSettings, pinned: Sequence[str] = PINNED_SYMBOLS) -> List[CoinEntity]:
    return compute_visible(entities, view.segment, view.search_text, view.sort_field, view.sort_direction, pinned)
