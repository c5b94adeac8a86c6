import asyncio

from stock_dashboard.dashboard.catalog import StockRow
from stock_dashboard.dashboard.comparison import StockComparison
from tests.fakes import mock_backend

PREDICT = "/api/functions/stock-ai-prediction"
HISTORY = "/api/functions/fetch-historical-data"
INSIGHTS = {
    "signal": "BUY",
    "confidence": 80,
    "reasoning": "Strong.",
    "keyFactors": ["a"],
    "indicators": [],
    "modelUsed": "Gemini",
}
CHART = {"symbol": "AAPL", "timeRange": "1M", "data": [{"date": "2026-01-01T00:00:00.000Z", "price": 1.0, "volume": 1.0}]}


def _row(symbol: str) -> StockRow:
    return StockRow(symbol=symbol, name=symbol, price=10.0, change=1.0, change_percent=2.0, volume="5")


def test_add_loads_insights_and_chart() -> None:
    async def scenario():
        backend, handler = mock_backend({("POST", PREDICT): (200, INSIGHTS), ("POST", HISTORY): (200, CHART)})
        async with backend:
            comparison = StockComparison(backend)
            item = await comparison.add(_row("AAPL"))
            duplicate = await comparison.add(_row("AAPL"))
            return comparison, item, duplicate, handler

    comparison, item, duplicate, handler = asyncio.run(scenario())

    assert item.insights["signal"] == "BUY"
    assert len(item.chart) == 1
    assert duplicate is None
    assert comparison.symbols == ["AAPL"]
    assert handler.bodies(HISTORY) == [{"symbol": "AAPL", "timeRange": "1M"}]
    assert handler.bodies(PREDICT)[0]["changePercent"] == 2.0


def test_failures_leave_empty_panels() -> None:
    async def scenario():
        backend, _ = mock_backend({("POST", PREDICT): (429, {"error": "Rate limit exceeded."}), ("POST", HISTORY): (400, {"error": "x"})})
        async with backend:
            comparison = StockComparison(backend)
            item = await comparison.add(_row("TSLA"))
            refreshed = await comparison.refresh("TSLA")
            missing = await comparison.refresh("NOPE")
            removed = comparison.remove("TSLA")
            return comparison, item, refreshed, missing, removed

    comparison, item, refreshed, missing, removed = asyncio.run(scenario())
    assert item.insights is None
    assert item.chart == []
    assert refreshed is item
    assert missing is None
    assert removed is True
    assert comparison.items == []
