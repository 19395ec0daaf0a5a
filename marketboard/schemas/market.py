"""Pydantic request/response contracts for the /market routes."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from marketboard.models.market import CoinEntity, GlobalSummary
from marketboard.services.sorting import MarketSegment, SortDirection, SortField, ViewSettings


class CoinOut(BaseModel):
    id: str
    symbol: str
    name: str
    price: float
    change_24h: float
    change_1h: float
    volume: float
    market_cap: float
    sparkline: List[float]
    image_url: Optional[str] = None
    is_favorite: bool

    @classmethod
    def from_entity(cls, coin: CoinEntity) -> "CoinOut":
        return cls(**coin.model_dump())


class ViewStateOut(BaseModel):
    segment: MarketSegment
    search_text: str
    sort_field: SortField
    sort_direction: SortDirection

    @classmethod
    def from_view(cls, view: ViewSettings) -> "ViewStateOut":
        return cls(
            segment=view.segment,
            search_text=view.search_text,
            sort_field=view.sort_field,
            sort_direction=view.sort_direction,
        )


class CoinListOut(BaseModel):
    view: ViewStateOut
    count: int
    coins: List[CoinOut]
    error: Optional[str] = None
    is_loading: bool = False


class GlobalOut(BaseModel):
    summary: Optional[GlobalSummary] = None
    source: Optional[str] = None
    error: Optional[str] = None


class FavoriteOut(BaseModel):
    symbol: str
    is_favorite: bool


class MarketStatusOut(BaseModel):
    coin_source: str
    global_source: Optional[str] = None
    coins_updated_at: Optional[datetime] = None
    global_updated_at: Optional[datetime] = None
    coin_error: Optional[str] = None
    global_error: Optional[str] = None
    is_loading: bool
    coin_count: int
    visible_count: int
    scheduler: Dict[str, Any] = Field(default_factory=dict)


class SegmentIn(BaseModel):
    segment: MarketSegment


class SearchIn(BaseModel):
    text: str = Field("", max_length=100)
