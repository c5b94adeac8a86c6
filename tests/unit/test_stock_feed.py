import asyncio

import numpy as np

from stock_dashboard.dashboard.catalog import CATEGORIES, DEFAULT_SYMBOLS, placeholder_rows
from stock_dashboard.dashboard.settings_store import SettingsStore
from stock_dashboard.dashboard.stock_feed import StockFeed
from tests.fakes import mock_backend

QUOTES = "/api/functions/fetch-stock-data"


def _quote(symbol: str, price: float = 100.0) -> dict:
    return {"symbol": symbol, "price": price, "change": 1.0, "changePercent": 1.0, "volume": "1,000"}


def test_provider_failure_yields_placeholders() -> None:
    async def scenario():
        backend, _ = mock_backend({("POST", QUOTES): (400, {"error": "ALPHA_VANTAGE_API_KEY is not configured"})})
        async with backend:
            feed = StockFeed(backend, refresh_seconds=None, rng=np.random.default_rng(7))
            await feed.fetch()
            return feed

    feed = asyncio.run(scenario())

    assert len(feed.rows) == len(DEFAULT_SYMBOLS)
    assert feed.error
    assert feed.is_sample
    for index, row in enumerate(feed.rows):
        assert row.symbol == DEFAULT_SYMBOLS[index]
        assert 150 <= row.price <= 250
        assert row.category == CATEGORIES[index % 5]


def test_empty_response_yields_placeholders() -> None:
    async def scenario():
        backend, _ = mock_backend({("POST", QUOTES): (200, {"stocks": [], "total_requested": 3, "total_retrieved": 0})})
        async with backend:
            feed = StockFeed(backend, symbols=["AAPL", "MSFT", "V"], refresh_seconds=None)
            return await feed.fetch()

    rows = asyncio.run(scenario())
    assert [r.symbol for r in rows] == ["AAPL", "MSFT", "V"]
    assert all(r.is_sample for r in rows)


def test_live_quotes_replace_rows_and_flag_partial() -> None:
    async def scenario():
        payload = {"stocks": [_quote("AAPL"), _quote("JPM", 150.5)], "total_requested": 3, "total_retrieved": 2}
        backend, handler = mock_backend({("POST", QUOTES): (200, payload)})
        async with backend:
            feed = StockFeed(backend, symbols=["AAPL", "XYZ", "JPM"], refresh_seconds=None)
            await feed.fetch()
            return feed, handler

    feed, handler = asyncio.run(scenario())

    assert handler.bodies(QUOTES) == [{"symbols": ["AAPL", "XYZ", "JPM"]}]
    assert [r.name for r in feed.rows] == ["Apple Inc.", "JPMorgan Chase"]
    assert [r.category for r in feed.rows] == ["technology", "finance"]
    assert feed.partial is True
    assert feed.error is None
    assert not feed.is_sample


def test_practice_mode_skips_network() -> None:
    async def scenario():
        store = SettingsStore()
        store.set_practice_mode(True)
        backend, handler = mock_backend({})
        async with backend:
            feed = StockFeed(backend, settings_store=store, refresh_seconds=None)
            await feed.fetch()
            return feed, handler

    feed, handler = asyncio.run(scenario())
    assert handler.requests == []
    assert len(feed.rows) == len(DEFAULT_SYMBOLS)


def test_polling_refetches_until_closed() -> None:
    async def scenario():
        backend, handler = mock_backend({("POST", QUOTES): (200, {"stocks": [_quote("AAPL")]})})
        async with backend:
            async with StockFeed(backend, symbols=["AAPL"], refresh_seconds=0.01) as feed:
                while len(handler.requests) < 3:
                    await asyncio.sleep(0.01)
            count = len(handler.requests)
            await asyncio.sleep(0.05)
            return feed, count, len(handler.requests)

    feed, at_close, later = asyncio.run(scenario())
    assert at_close == later
    assert feed.rows[0].symbol == "AAPL"


def test_row_display_shape_uses_symbol_as_id() -> None:
    row = placeholder_rows(["NVDA"], np.random.default_rng(0))[0]

    shape = row.as_dict()

    assert shape["id"] == "NVDA"
    assert shape["name"] == "NVIDIA Corp."
    assert shape["category"] == "technology"
    assert row.as_quote()["changePercent"] == row.change_percent
