"""Last-good coin/global snapshots on disk, for cold start and outages."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import TypeAdapter, ValidationError

from marketboard.models.market import CoinEntity, GlobalSummary

logger = logging.getLogger("marketboard.snapshot_cache")

_COINS = TypeAdapter(List[CoinEntity])
_GLOBAL = TypeAdapter(GlobalSummary)


class SnapshotCache:
    COINS_FILE = "coins.json"
    GLOBAL_FILE = "global.json"

    def __init__(self, cache_dir: str | os.PathLike):
        self.cache_dir = Path(cache_dir)

    # best-effort: failures are logged and reported as False
    def save_coins(self, coins: Sequence[CoinEntity]) -> bool:
        return self._write(self.COINS_FILE, _COINS.dump_json(list(coins)))

    def save_global(self, summary: GlobalSummary) -> bool:
        return self._write(self.GLOBAL_FILE, _GLOBAL.dump_json(summary))

    def load_coins(self) -> Optional[List[CoinEntity]]:
        return self._read(self.COINS_FILE, _COINS)

    def load_global(self) -> Optional[GlobalSummary]:
        return self._read(self.GLOBAL_FILE, _GLOBAL)

    def _write(self, name: str, data: bytes) -> bool:
        path = self.cache_dir / name
        tmp: Optional[str] = None
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.cache_dir, prefix=f".{name}.", suffix=".tmp")
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp, path)
            return True
        except OSError as e:
            logger.warning("⚠️ cache write failed | file=%s | err=%s", path, e)
            if tmp is not None:
                try:
                    os.remove(tmp)
                except OSError:
                    pass
            return False

    def _read(self, name: str, adapter: TypeAdapter):
        path = self.cache_dir / name
        if not path.exists():
            return None
        try:
            return adapter.validate_json(path.read_bytes())
        except (OSError, ValidationError) as e:
            logger.warning("⚠️ cache read failed | file=%s | err=%s", path, e)
            return None
