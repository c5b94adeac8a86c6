from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from stock_dashboard.dashboard.backend import BackendClient
from stock_dashboard.dashboard.catalog import StockRow
from stock_dashboard.errors import BackendError

logger = logging.getLogger(__name__)

CHART_RANGE = "1M"


@dataclass
class ComparedStock:
    stock: StockRow
    insights: dict | None = None
    chart: list[dict] = field(default_factory=list)

    @property
    def symbol(self) -> str:
        return self.stock.symbol


class StockComparison:
    """Side-by-side stocks, each with AI insights and a one-month price chart."""

    def __init__(self, backend: BackendClient) -> None:
        self.backend = backend
        self.items: list[ComparedStock] = []

    @property
    def symbols(self) -> list[str]:
        return [item.symbol for item in self.items]

    def get(self, symbol: str) -> ComparedStock | None:
        return next((item for item in self.items if item.symbol == symbol), None)

    async def add(self, stock: StockRow) -> ComparedStock | None:
        if self.get(stock.symbol) is not None:
            return None
        item = ComparedStock(stock=stock)
        self.items.append(item)
        await self._load(item)
        return item

    def remove(self, symbol: str) -> bool:
        before = len(self.items)
        self.items = [item for item in self.items if item.symbol != symbol]
        return len(self.items) < before

    async def refresh(self, symbol: str) -> ComparedStock | None:
        item = self.get(symbol)
        if item is None:
            return None
        await self._load(item)
        return item

    async def _load(self, item: ComparedStock) -> None:
        item.insights, item.chart = await asyncio.gather(
            self._insights(item.stock),
            self._chart(item.symbol),
        )

    async def _insights(self, stock: StockRow) -> dict | None:
        try:
            return await self.backend.invoke("stock-ai-prediction", stock.as_quote())
        except BackendError as exc:
            logger.warning("AI insights unavailable", extra={"symbol": stock.symbol, "error": str(exc)})
            return None

    async def _chart(self, symbol: str) -> list[dict]:
        try:
            data = await self.backend.invoke("fetch-historical-data", {"symbol": symbol, "timeRange": CHART_RANGE})
        except BackendError as exc:
            logger.warning("Chart data unavailable", extra={"symbol": symbol, "error": str(exc)})
            return []
        points = data.get("data")
        return points if isinstance(points, list) else []
