"""
Market-data aggregation engine.

Owns the coin list, global summary, favourites and view settings. All state
changes happen on the event loop in synchronous sections (no await between
reading and publishing), so the published list is swapped in one step and
readers never see a half-prepared refresh.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

import httpx

from marketboard.config.coins import PINNED_SYMBOLS
from marketboard.config.settings import Settings, get_settings
from marketboard.jobs.scheduler import RefreshScheduler
from marketboard.models.market import CoinEntity, GlobalSummary
from marketboard.services import binance, coinbase, coingecko, coinpaprika
from marketboard.services.cascade import Stage, run_cascade
from marketboard.services.enrichment import fetch_patches, merge_patches
from marketboard.services.errors import CascadeExhausted, ProviderError
from marketboard.services.favorites import FavoritesStore
from marketboard.services.normalizer import (
    coin_from_coingecko,
    coin_from_coinpaprika,
    global_from_coingecko,
    global_from_coinpaprika,
    normalize_coins,
    seed_coins,
)
from marketboard.services.snapshot_cache import SnapshotCache
from marketboard.services.sorting import (
    MarketSegment,
    SortField,
    ViewSettings,
    compute_view,
    toggle_sort,
)
from marketboard.utils.time import utcnow

logger = logging.getLogger("marketboard.engine")


@dataclass(frozen=True)
class ProviderSet:
    primary_coins: Callable[[], Awaitable[List[CoinEntity]]]
    secondary_coins: Callable[[], Awaitable[List[CoinEntity]]]
    primary_global: Callable[[], Awaitable[GlobalSummary]]
    secondary_global: Callable[[], Awaitable[GlobalSummary]]
    spot_price: Callable[[str], Awaitable[float]]
    history: Callable[[str], Awaitable[List[float]]]
    primary_name: str = "coingecko"
    secondary_name: str = "coinpaprika"


def _require_rows(provider: str, coins: List[CoinEntity]) -> List[CoinEntity]:
    # an empty normalized batch must not replace good data
    if not coins:
        raise ProviderError(provider, "no usable records after normalization")
    return coins


def build_providers(settings: Settings, client: httpx.AsyncClient) -> ProviderSet:
    timeout = settings.REQUEST_TIMEOUT_SECONDS

    async def primary_coins() -> List[CoinEntity]:
        raw = await coingecko.fetch_market_pages(
            pages=settings.PRIMARY_PAGES,
            per_page=settings.PRIMARY_PER_PAGE,
            vs_currency=settings.VS_CURRENCY,
            client=client,
            timeout=timeout,
        )
        return _require_rows(coingecko.PROVIDER, normalize_coins(raw, coin_from_coingecko))

    async def secondary_coins() -> List[CoinEntity]:
        raw = await coinpaprika.fetch_tickers(
            limit=settings.SECONDARY_LIMIT,
            quotes=settings.VS_CURRENCY.upper(),
            client=client,
            timeout=timeout,
        )

        def adapter(row):
            return coin_from_coinpaprika(row, quote=settings.VS_CURRENCY.upper())

        return _require_rows(coinpaprika.PROVIDER, normalize_coins(raw, adapter))

    async def primary_global() -> GlobalSummary:
        data = await coingecko.fetch_global(client=client, timeout=timeout)
        return global_from_coingecko(data, vs_currency=settings.VS_CURRENCY)

    async def secondary_global() -> GlobalSummary:
        data = await coinpaprika.fetch_global(client=client, timeout=timeout)
        return global_from_coinpaprika(data)

    async def spot_price(symbol: str) -> float:
        return await coinbase.fetch_spot_price(symbol, settings.VS_CURRENCY, client=client, timeout=timeout)

    async def history(symbol: str) -> List[float]:
        # klines are USDT-quoted; an empty history leaves the sparkline untouched
        if settings.VS_CURRENCY.lower() != "usd":
            return []
        return await binance.fetch_closes(
            symbol,
            interval=settings.HISTORY_INTERVAL,
            limit=settings.HISTORY_LIMIT,
            client=client,
            timeout=timeout,
        )

    return ProviderSet(
        primary_coins=primary_coins,
        secondary_coins=secondary_coins,
        primary_global=primary_global,
        secondary_global=secondary_global,
        spot_price=spot_price,
        history=history,
    )


@dataclass
class MarketState:
    coins: List[CoinEntity] = field(default_factory=list)
    global_summary: Optional[GlobalSummary] = None
    view: ViewSettings = field(default_factory=ViewSettings)

    coin_error: Optional[Exception] = None
    global_error: Optional[Exception] = None

    coin_source: str = "none"
    global_source: Optional[str] = None
    coins_updated_at: Optional[datetime] = None
    global_updated_at: Optional[datetime] = None

    # ids of the newest cycles whose results were applied
    coin_cycle_applied: int = 0
    global_cycle_applied: int = 0


class MarketEngine:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        providers: Optional[ProviderSet] = None,
        cache: Optional[SnapshotCache] = None,
        favorites: Optional[FavoritesStore] = None,
        client: Optional[httpx.AsyncClient] = None,
        pinned: Sequence[str] = PINNED_SYMBOLS,
    ) -> None:
        self.settings = settings or get_settings()

        self._owned_client: Optional[httpx.AsyncClient] = None
        if providers is None:
            if client is None:
                client = httpx.AsyncClient(timeout=self.settings.REQUEST_TIMEOUT_SECONDS)
                self._owned_client = client
            providers = build_providers(self.settings, client)

        self.providers = providers
        self.cache = cache if cache is not None else SnapshotCache(self.settings.CACHE_DIR)
        self.favorites = favorites if favorites is not None else FavoritesStore()
        self.pinned: Tuple[str, ...] = tuple(s.upper() for s in pinned)
        self.scheduler = RefreshScheduler()

        self.state = MarketState()
        self._visible: Tuple[CoinEntity, ...] = ()
        self._cycle_ids = itertools.count(1)
        self._coin_inflight = 0
        self._closed = False

        self._load_cached()

    # ----------------------------
    # startup / teardown
    # ----------------------------
    def _load_cached(self) -> None:
        """Synchronous cold-start load; runs before any network attempt."""
        cached = self.cache.load_coins()
        if cached:
            self.state.coins = cached
            self.state.coin_source = "cache"
        else:
            self.state.coins = seed_coins()
            self.state.coin_source = "seed"

        self.state.global_summary = self.cache.load_global()
        if self.state.global_summary is not None:
            self.state.global_source = "cache"

        self.favorites.apply(self.state.coins)
        self._publish()
        logger.info(
            "engine primed | coins=%d | source=%s | global=%s",
            len(self.state.coins), self.state.coin_source, self.state.global_source,
        )

    async def start(self) -> None:
        await self.favorites.load()
        self.favorites.apply(self.state.coins)
        self._publish()

        if not self.settings.SCHEDULER_ENABLED:
            logger.info("ℹ️ scheduler disabled (SCHEDULER_ENABLED=false)")
            return

        self.scheduler.add_job("coins", self.refresh_coins, self.settings.COIN_REFRESH_SECONDS)
        self.scheduler.add_job("global", self.refresh_global, self.settings.GLOBAL_REFRESH_SECONDS)
        if self.settings.ENRICH_REFRESH_SECONDS > 0:
            self.scheduler.add_job(
                "enrich",
                self.enrich,
                self.settings.ENRICH_REFRESH_SECONDS,
                run_immediately=False,
            )
        self.scheduler.start()

    async def stop(self) -> None:
        await self.scheduler.stop()
        self._closed = True
        if self._owned_client is not None:
            await self._owned_client.aclose()
            self._owned_client = None

    @property
    def closed(self) -> bool:
        return self._closed

    # ----------------------------
    # read side
    # ----------------------------
    def _publish(self) -> None:
        visible = compute_view(self.state.coins, self.state.view, self.pinned)
        self._visible = tuple(c.model_copy() for c in visible)

    def current_visible_list(self) -> List[CoinEntity]:
        return [c.model_copy() for c in self._visible]

    @property
    def view(self) -> ViewSettings:
        return self.state.view

    @property
    def is_loading(self) -> bool:
        return self._coin_inflight > 0

    def global_summary(self) -> Optional[GlobalSummary]:
        return self.state.global_summary

    def last_error(self) -> Optional[Exception]:
        return self.state.coin_error or self.state.global_error

    def status(self) -> Dict[str, Any]:
        s = self.state
        return {
            "coin_source": s.coin_source,
            "global_source": s.global_source,
            "coins_updated_at": s.coins_updated_at,
            "global_updated_at": s.global_updated_at,
            "coin_error": str(s.coin_error) if s.coin_error else None,
            "global_error": str(s.global_error) if s.global_error else None,
            "is_loading": self.is_loading,
            "coin_count": len(s.coins),
            "visible_count": len(self._visible),
            "scheduler": self.scheduler.handle.info(),
        }

    # ----------------------------
    # view / favourites mutations
    # ----------------------------
    async def toggle_favorite(self, symbol: str) -> bool:
        state = await self.favorites.toggle(symbol)
        self.favorites.apply(self.state.coins)
        self._publish()
        return state

    def is_favorite(self, symbol: str) -> bool:
        return self.favorites.is_favorite(symbol)

    def update_segment(self, segment: MarketSegment) -> None:
        self.state.view = replace(self.state.view, segment=MarketSegment(segment))
        self._publish()

    def update_search_text(self, text: str) -> None:
        self.state.view = replace(self.state.view, search_text=text)
        self._publish()

    def toggle_sort(self, sort_field: SortField) -> ViewSettings:
        self.state.view = toggle_sort(self.state.view, SortField(sort_field))
        self._publish()
        return self.state.view

    # ----------------------------
    # refresh cycles
    # ----------------------------
    async def refresh_coins(self) -> bool:
        if self._closed:
            return False

        cycle = next(self._cycle_ids)
        self._coin_inflight += 1
        try:
            result = await run_cascade(
                "coins",
                Stage(self.providers.primary_name, self.providers.primary_coins),
                Stage(self.providers.secondary_name, self.providers.secondary_coins),
                retries=self.settings.PRIMARY_RETRIES,
                retry_delay=self.settings.PRIMARY_RETRY_DELAY_SECONDS,
            )
        except CascadeExhausted as e:
            return self._fail_coins(cycle, e)
        finally:
            self._coin_inflight -= 1

        return self._apply_coins(cycle, result.value, result.source)

    def _apply_coins(self, cycle: int, coins: List[CoinEntity], source: str) -> bool:
        if self._closed:
            return False
        if cycle <= self.state.coin_cycle_applied:
            logger.info("discarding stale coin cycle %d (applied=%d)", cycle, self.state.coin_cycle_applied)
            return False

        # normalized -> favourites -> cache -> sort, then one swap
        self.favorites.apply(coins)
        self.cache.save_coins(coins)

        self.state.coins = coins
        self.state.coin_source = source
        self.state.coins_updated_at = utcnow()
        self.state.coin_error = None
        self.state.coin_cycle_applied = cycle
        self._publish()

        logger.info("coins refreshed | cycle=%d | source=%s | count=%d", cycle, source, len(coins))
        return True

    def _fail_coins(self, cycle: int, error: CascadeExhausted) -> bool:
        if self._closed:
            return False
        if cycle <= self.state.coin_cycle_applied:
            logger.info("ignoring failure of stale coin cycle %d", cycle)
            return False
        self.state.coin_error = error
        logger.warning("coin refresh failed; keeping %d existing coins | err=%s", len(self.state.coins), error)
        return False

    async def refresh_global(self) -> bool:
        if self._closed:
            return False

        cycle = next(self._cycle_ids)
        try:
            result = await run_cascade(
                "global",
                Stage(self.providers.primary_name, self.providers.primary_global),
                Stage(self.providers.secondary_name, self.providers.secondary_global),
                retries=self.settings.GLOBAL_RETRIES,
                retry_delay=self.settings.PRIMARY_RETRY_DELAY_SECONDS,
            )
        except CascadeExhausted as e:
            if self._closed or cycle <= self.state.global_cycle_applied:
                return False
            self.state.global_error = e
            logger.warning("global refresh failed; keeping last summary | err=%s", e)
            return False

        if self._closed or cycle <= self.state.global_cycle_applied:
            return False

        self.cache.save_global(result.value)
        self.state.global_summary = result.value
        self.state.global_source = result.source
        self.state.global_updated_at = utcnow()
        self.state.global_error = None
        self.state.global_cycle_applied = cycle
        return True

    async def force_refresh(self) -> bool:
        coins_ok, global_ok = await asyncio.gather(self.refresh_coins(), self.refresh_global())
        return bool(coins_ok and global_ok)

    # ----------------------------
    # enrichment
    # ----------------------------
    async def enrich(self) -> int:
        if self._closed:
            return 0

        symbols = tuple(c.symbol for c in self.state.coins)
        patches = await fetch_patches(
            symbols,
            self.providers.spot_price,
            self.providers.history,
            max_concurrency=self.settings.ENRICH_MAX_CONCURRENCY,
        )

        if self._closed:
            logger.info("engine closed; dropping %d enrichment patch(es)", len(patches))
            return 0

        merged = merge_patches(self.state.coins, patches)
        if merged:
            self._publish()
        logger.info("enrichment merged | fetched=%d | merged=%d", len(patches), merged)
        return merged
