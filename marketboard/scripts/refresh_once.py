# marketboard/scripts/refresh_once.py
from __future__ import annotations

import argparse
import asyncio
import json
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from marketboard.config.settings import get_settings
from marketboard.db.session import create_tables
from marketboard.services.market_engine import MarketEngine
from marketboard.services.sorting import MarketSegment


async def refresh_once(*, enrich: bool = False, segment: str = "all", limit: int = 20) -> Dict[str, Any]:
    """Prime from cache, run one full cycle (plus enrichment), report the top rows."""
    settings = replace(get_settings(), SCHEDULER_ENABLED=False)

    await create_tables()
    engine = MarketEngine(settings)
    await engine.start()
    try:
        await engine.force_refresh()
        merged = await engine.enrich() if enrich else 0
        engine.update_segment(MarketSegment(segment))

        coins = engine.current_visible_list()[:limit]
        status = engine.status()
        status.pop("scheduler", None)
        return {
            **{k: (v.isoformat() if hasattr(v, "isoformat") else v) for k, v in status.items()},
            "enriched": merged,
            "top": [
                {"symbol": c.symbol, "price": c.price, "change_24h": c.change_24h, "fav": c.is_favorite}
                for c in coins
            ],
        }
    finally:
        await engine.stop()


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run one market refresh cycle and print a summary.")
    parser.add_argument("--enrich", action="store_true", help="also fetch spot prices and short history")
    parser.add_argument("--segment", default="all", choices=[s.value for s in MarketSegment])
    parser.add_argument("--limit", type=int, default=20)
    args = parser.parse_args(argv)

    logging.basicConfig(level=get_settings().LOG_LEVEL)
    result = asyncio.run(refresh_once(enrich=args.enrich, segment=args.segment, limit=args.limit))
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
