from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from marketboard.api.health import router as health_router
from marketboard.api.market import router as market_router
from marketboard.config.settings import Settings
from marketboard.db.session import Base
from marketboard.services.favorites import FavoritesStore
from marketboard.services.market_engine import MarketEngine
from marketboard.tests.fakes import coins, failing, make_providers


def build_app(tmp_path, providers) -> FastAPI:
    app = FastAPI()
    app.include_router(health_router)
    app.include_router(market_router)

    @app.on_event("startup")
    async def startup() -> None:
        db = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}")
        async with db.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        app.state.db = db

        settings = Settings(
            CACHE_DIR=str(tmp_path / "cache"),
            PRIMARY_RETRY_DELAY_SECONDS=0.0,
            SCHEDULER_ENABLED=False,
        )
        sessions = async_sessionmaker(bind=db, expire_on_commit=False, class_=AsyncSession)
        engine = MarketEngine(settings, providers=providers, favorites=FavoritesStore(sessions))
        await engine.start()
        app.state.engine = engine

    @app.on_event("shutdown")
    async def shutdown() -> None:
        await app.state.engine.stop()
        await app.state.db.dispose()

    return app


@pytest.fixture
def client(tmp_path):
    async def primary_coins():
        return coins("BTC", "ETH", "PEPE")

    app = build_app(tmp_path, make_providers(primary_coins=primary_coins))
    with TestClient(app) as c:
        yield c


@pytest.fixture
def offline_client(tmp_path):
    providers = make_providers(
        primary_coins=failing,
        secondary_coins=failing,
        primary_global=failing,
        secondary_global=failing,
    )
    with TestClient(build_app(tmp_path, providers)) as c:
        yield c


def _symbols(payload):
    return [c["symbol"] for c in payload["coins"]]


def test_coins_before_first_refresh_show_seed_list(client):
    r = client.get("/market/coins")
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 8
    assert body["error"] is None
    assert body["view"] == {
        "segment": "all",
        "search_text": "",
        "sort_field": "market_cap",
        "sort_direction": "desc",
    }


def test_refresh_then_favourite_and_filter(client):
    r = client.post("/market/refresh")
    assert r.status_code == 200
    assert _symbols(r.json()) == ["BTC", "ETH", "PEPE"]

    r = client.post("/market/favorites/pepe")
    assert r.json() == {"symbol": "PEPE", "is_favorite": True}

    r = client.put("/market/view/segment", json={"segment": "favorites"})
    assert r.status_code == 200
    assert _symbols(r.json()) == ["PEPE"]
    assert r.json()["coins"][0]["is_favorite"] is True

    r = client.post("/market/favorites/PEPE")
    assert r.json()["is_favorite"] is False
    assert client.get("/market/coins").json()["count"] == 0


def test_search_and_sort(client):
    client.post("/market/refresh")

    r = client.put("/market/view/search", json={"text": "et"})
    assert _symbols(r.json()) == ["ETH"]

    client.put("/market/view/search", json={"text": ""})
    r = client.post("/market/view/sort/coin")
    assert r.json()["view"]["sort_direction"] == "asc"
    assert _symbols(r.json()) == ["BTC", "ETH", "PEPE"]

    r = client.post("/market/view/sort/coin")
    assert r.json()["view"]["sort_direction"] == "desc"
    assert _symbols(r.json()) == ["PEPE", "ETH", "BTC"]


def test_bad_view_input_is_rejected(client):
    assert client.post("/market/view/sort/colour").status_code == 422
    assert client.put("/market/view/segment", json={"segment": "trending"}).status_code == 422
    assert client.put("/market/view/search", json={"text": "x" * 101}).status_code == 422


def test_global_and_status(client):
    client.post("/market/refresh")

    body = client.get("/market/global").json()
    assert body["source"] == "coingecko"
    assert body["summary"]["market_cap_percentage"] == {"btc": 50.0}

    status = client.get("/market/status").json()
    assert status["coin_source"] == "coingecko"
    assert status["coin_count"] == 3
    assert status["is_loading"] is False


def test_enrich_route_reports_merged_rows(client):
    client.post("/market/refresh")

    assert client.post("/market/enrich").json() == {"merged": 3}
    prices = {c["symbol"]: c["price"] for c in client.get("/market/coins").json()["coins"]}
    assert prices == {"BTC": 42.0, "ETH": 42.0, "PEPE": 42.0}


def test_ready_ok_after_successful_refresh(client):
    client.post("/market/refresh")

    r = client.get("/ready")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert client.get("/live").json() == {"status": "ok"}


def test_refresh_failure_is_soft_and_marks_not_ready(offline_client):
    r = offline_client.post("/market/refresh")
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 8
    assert "all providers failed" in body["error"]

    r = offline_client.get("/ready")
    assert r.status_code == 503
    assert set(r.json()["degraded_reasons"]) == {"coin_fetch_failed", "global_fetch_failed"}


def test_routes_answer_503_without_engine():
    app = FastAPI()
    app.include_router(health_router)
    app.include_router(market_router)
    with TestClient(app) as c:
        assert c.get("/market/coins").status_code == 503
        r = c.get("/ready")
        assert r.status_code == 503
        assert r.json()["degraded_reasons"] == ["engine_missing"]
