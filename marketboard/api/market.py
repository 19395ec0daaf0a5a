from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from marketboard.schemas.market import (
    CoinListOut,
    CoinOut,
    FavoriteOut,
    GlobalOut,
    MarketStatusOut,
    SearchIn,
    SegmentIn,
    ViewStateOut,
)
from marketboard.services.market_engine import MarketEngine
from marketboard.services.sorting import SortField

router = APIRouter(prefix="/market", tags=["market"])


def _engine(request: Request) -> MarketEngine:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="market engine not started")
    return engine


def _coin_list(engine: MarketEngine) -> CoinListOut:
    coins = engine.current_visible_list()
    error = engine.last_error()
    return CoinListOut(
        view=ViewStateOut.from_view(engine.view),
        count=len(coins),
        coins=[CoinOut.from_entity(c) for c in coins],
        error=str(error) if error else None,
        is_loading=engine.is_loading,
    )


@router.get("/coins", response_model=CoinListOut)
async def list_coins(request: Request):
    return _coin_list(_engine(request))


@router.get("/global", response_model=GlobalOut)
async def get_global(request: Request):
    engine = _engine(request)
    err = engine.state.global_error
    return GlobalOut(
        summary=engine.global_summary(),
        source=engine.state.global_source,
        error=str(err) if err else None,
    )


@router.get("/status", response_model=MarketStatusOut)
async def get_status(request: Request):
    return MarketStatusOut(**_engine(request).status())


@router.post("/favorites/{symbol}", response_model=FavoriteOut)
async def toggle_favorite(symbol: str, request: Request):
    """Flip the favourite flag for `symbol` and return the new state."""
    state = await _engine(request).toggle_favorite(symbol)
    return FavoriteOut(symbol=symbol.upper(), is_favorite=state)


@router.put("/view/segment", response_model=CoinListOut)
async def update_segment(body: SegmentIn, request: Request):
    engine = _engine(request)
    engine.update_segment(body.segment)
    return _coin_list(engine)


@router.put("/view/search", response_model=CoinListOut)
async def update_search(body: SearchIn, request: Request):
    engine = _engine(request)
    engine.update_search_text(body.text)
    return _coin_list(engine)


@router.post("/view/sort/{field}", response_model=CoinListOut)
async def toggle_sort(field: SortField, request: Request):
    """Same field flips direction; a different field starts ascending."""
    engine = _engine(request)
    engine.toggle_sort(field)
    return _coin_list(engine)


@router.post("/refresh", response_model=CoinListOut)
async def force_refresh(request: Request):
    # failures are soft: the list is returned as-is with `error` set
    engine = _engine(request)
    await engine.force_refresh()
    return _coin_list(engine)


@router.post("/enrich")
async def enrich(request: Request):
    merged = await _engine(request).enrich()
    return {"merged": merged}
