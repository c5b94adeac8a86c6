from __future__ import annotations

import datetime as dt
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


Signal = Literal["BUY", "HOLD", "SELL"]
TimeRange = Literal["1D", "5D", "1M", "6M", "1Y"]


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class StockQuote(WireModel):
    symbol: str
    price: float
    change: float
    change_percent: float = Field(alias="changePercent")
    volume: str


class QuoteRequest(WireModel):
    symbols: Optional[list[str]] = None
    search: Optional[str] = None
    limit: int = Field(default=20, ge=1, le=100)


class QuoteResponse(WireModel):
    stocks: list[StockQuote]
    total_requested: int
    total_retrieved: int


class SearchResult(WireModel):
    symbol: str
    description: str = ""
    display_symbol: str = Field(default="", alias="displaySymbol")
    type: str = ""


class SearchResponse(WireModel):
    search_results: list[SearchResult] = Field(alias="searchResults")


class HistoricalRequest(WireModel):
    symbol: str = ""
    time_range: str = Field(default="1M", alias="timeRange")


class HistoricalPoint(BaseModel):
    date: str
    price: float
    volume: float


class HistoricalResponse(WireModel):
    symbol: str
    time_range: str = Field(alias="timeRange")
    data: list[HistoricalPoint]


class PredictionRequest(WireModel):
    symbol: str = Field(min_length=1)
    name: Optional[str] = None
    price: float = 0.0
    change: float = 0.0
    change_percent: float = Field(default=0.0, alias="changePercent")
    volume: Union[str, float, None] = None


class Indicator(BaseModel):
    label: str
    value: str
    status: str

    @field_validator("value", "status", mode="before")
    @classmethod
    def _stringify(cls, value):
        return value if isinstance(value, str) else str(value)


class PredictionResponse(WireModel):
    signal: Signal
    confidence: float
    reasoning: str
    key_factors: list[str] = Field(alias="keyFactors")
    indicators: list[Indicator]
    model_used: str = Field(alias="modelUsed")
    error: Optional[str] = None


class ChatTurn(BaseModel):
    role: str
    content: str


class ChatRequest(WireModel):
    message: str = Field(min_length=1)
    conversation_history: list[ChatTurn] = Field(default_factory=list, alias="conversationHistory")
    stream: bool = False


class ChatResponse(BaseModel):
    message: str
    error: Optional[str] = None


class TranscriptionRequest(BaseModel):
    audio: str = ""


class TranscriptionResponse(BaseModel):
    text: str


class HoldingCreate(BaseModel):
    symbol: str = Field(min_length=1, max_length=20)
    name: str = ""
    shares: float = Field(gt=0)
    avg_price: float = Field(ge=0)

    @field_validator("symbol")
    @classmethod
    def _clean_symbol(cls, value: str) -> str:
        clean = value.strip().upper()
        if not clean:
            raise ValueError("Symbol is required")
        return clean


class HoldingItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    symbol: str
    name: str
    shares: float
    avg_price: float
    created_at: dt.datetime


class WatchlistCreate(BaseModel):
    symbol: str = Field(min_length=1, max_length=20)
    name: str = ""

    @field_validator("symbol")
    @classmethod
    def _clean_symbol(cls, value: str) -> str:
        clean = value.strip().upper()
        if not clean:
            raise ValueError("Symbol is required")
        return clean


class WatchlistItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    symbol: str
    name: str
    created_at: dt.datetime


class FeedbackCreate(BaseModel):
    subject: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    email: Optional[str] = None


class FeedbackItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    subject: str
    created_at: dt.datetime
