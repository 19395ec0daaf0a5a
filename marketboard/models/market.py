"""Pydantic models for the unified market entities."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from marketboard.utils.time import utcnow


class CoinEntity(BaseModel):
    """One asset row, whichever provider it came from."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    symbol: str
    name: str
    price: float = 0.0
    change_24h: float = 0.0
    change_1h: float = 0.0
    volume: float = 0.0
    market_cap: float = 0.0
    sparkline: List[float] = Field(default_factory=list)
    image_url: Optional[str] = None
    is_favorite: bool = False

    @field_validator("symbol")
    @classmethod
    def upper_symbol(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("symbol must not be empty")
        return value


class GlobalSummary(BaseModel):
    """Aggregate market stats. Replaced wholesale, never merged."""

    total_market_cap: Optional[float] = None
    total_volume: Optional[float] = None
    market_cap_percentage: Dict[str, float] = Field(default_factory=dict)
    market_cap_change_percentage_24h: Optional[float] = None
    active_cryptocurrencies: Optional[int] = None
    markets: Optional[int] = None
    updated_at: datetime = Field(default_factory=utcnow)
