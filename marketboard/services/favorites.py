"""Durable favourite symbols, re-applied onto every fresh coin list."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Callable, FrozenSet, Iterable, Set

from sqlalchemy.exc import SQLAlchemyError

from marketboard.db.models import KeyValueEntry
from marketboard.db.session import session_factory
from marketboard.models.market import CoinEntity

logger = logging.getLogger("marketboard.favorites")

FAVORITES_KEY = "favoriteCoinSymbols"


class FavoritesStore:
    def __init__(self, session_factory_fn: Callable = session_factory, key: str = FAVORITES_KEY):
        self._session_factory = session_factory_fn
        self._key = key
        self._symbols: Set[str] = set()
        self._write_lock = asyncio.Lock()

    @property
    def symbols(self) -> FrozenSet[str]:
        return frozenset(self._symbols)

    def is_favorite(self, symbol: str) -> bool:
        return symbol.strip().upper() in self._symbols

    def apply(self, coins: Iterable[CoinEntity]) -> None:
        for coin in coins:
            coin.is_favorite = coin.symbol in self._symbols

    async def load(self) -> FrozenSet[str]:
        try:
            async with self._session_factory() as session:
                row = await session.get(KeyValueEntry, self._key)
        except SQLAlchemyError as e:
            logger.warning("⚠️ favorites load failed | err=%s", e)
            return self.symbols

        if row is None:
            return self.symbols

        try:
            saved = json.loads(row.value_json)
        except ValueError as e:
            logger.warning("⚠️ favorites entry is not valid JSON | err=%s", e)
            return self.symbols

        self._symbols = {str(s).upper() for s in saved if isinstance(s, str) and s.strip()}
        return self.symbols

    async def toggle(self, symbol: str) -> bool:
        """Flip membership, write through, and return the new state."""
        symbol = symbol.strip().upper()
        if symbol in self._symbols:
            self._symbols.discard(symbol)
            state = False
        else:
            self._symbols.add(symbol)
            state = True
        await self._persist()
        return state

    async def _persist(self) -> None:
        async with self._write_lock:
            # serialised so the last commit always carries the newest set
            payload = json.dumps(sorted(self._symbols))
            try:
                async with self._session_factory() as session:
                    row = await session.get(KeyValueEntry, self._key)
                    if row is None:
                        session.add(KeyValueEntry(key=self._key, value_json=payload))
                    else:
                        row.value_json = payload
                    await session.commit()
            except SQLAlchemyError as e:
                logger.warning("⚠️ favorites save failed | err=%s", e)
