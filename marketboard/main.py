# marketboard/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI

from marketboard.api.health import router as health_router
from marketboard.api.market import router as market_router
from marketboard.config.settings import get_settings
from marketboard.db.session import create_tables
from marketboard.services.market_engine import MarketEngine

app = FastAPI(title="Marketboard API")

# Routers
app.include_router(health_router)
app.include_router(market_router)


@app.get("/")
def root() -> dict[str, str]:
    return {"message": "Marketboard"}


@app.on_event("startup")
async def on_startup() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s | %(message)s",
    )

    # favourites table
    await create_tables()

    # cached snapshot is loaded inside the constructor, before any fetch
    engine = MarketEngine(settings)
    await engine.start()
    app.state.engine = engine


@app.on_event("shutdown")
async def on_shutdown() -> None:
    engine = getattr(app.state, "engine", None)
    if engine is not None:
        await engine.stop()
    app.state.engine = None


def run() -> None:
    import uvicorn

    uvicorn.run("marketboard.main:app", host="0.0.0.0", port=8000)
