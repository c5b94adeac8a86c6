from __future__ import annotations

import asyncio
import logging

from stock_dashboard.dashboard.backend import BackendClient
from stock_dashboard.dashboard.catalog import StockRow, row_from_quote
from stock_dashboard.dashboard.tasks import TaskScope
from stock_dashboard.errors import BackendError

logger = logging.getLogger(__name__)

SEARCH_FAILED = "Failed to search stocks. Please try again."
SEARCHED_STOCK_CATEGORY = "finance"


class DebouncedSearch:
    """Symbol search that waits for typing to pause before calling the backend.

    Only the idle timer is restarted by a keystroke. Requests already sent are
    left running and whichever response arrives last replaces the results.
    """

    def __init__(self, backend: BackendClient, debounce_seconds: float = 0.5, limit: int = 20) -> None:
        self.backend = backend
        self.debounce_seconds = debounce_seconds
        self.limit = limit
        self.query = ""
        self.results: list[dict] = []
        self.searched_stocks: list[StockRow] = []
        self.show_results = False
        self.is_searching = False
        self.error: str | None = None
        self._timer: asyncio.Task | None = None
        self._scope = TaskScope("search")

    async def __aenter__(self) -> DebouncedSearch:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._scope.aclose()

    def on_query_change(self, text: str) -> None:
        self.query = text
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = self._scope.spawn(self._settle(text), name="debounce")

    async def _settle(self, text: str) -> None:
        await asyncio.sleep(self.debounce_seconds)
        query = text.strip()
        if not query:
            self.clear_results()
            return
        self._scope.spawn(self.search(query), name="request")

    async def wait_idle(self) -> None:
        await self._scope.wait()

    async def search(self, query: str) -> list[dict]:
        self.is_searching = True
        try:
            data = await self.backend.invoke("fetch-stock-data", {"search": query, "limit": self.limit})
        except BackendError as exc:
            logger.warning("Stock search failed", extra={"query": query, "error": str(exc)})
            self.error = SEARCH_FAILED
            self.results = []
            self.show_results = False
            return self.results
        finally:
            self.is_searching = False

        self.error = None
        results = data.get("searchResults")
        if isinstance(results, list):
            self.results = results
            self.show_results = True
        else:
            self.results = []
            self.show_results = False
        return self.results

    def clear_results(self) -> None:
        self.results = []
        self.searched_stocks = []
        self.show_results = False

    def clear(self) -> None:
        self.query = ""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self.clear_results()

    async def select(self, result: dict) -> StockRow | None:
        symbol = result["symbol"]
        self.is_searching = True
        try:
            data = await self.backend.invoke("fetch-stock-data", {"symbols": [symbol]})
        except BackendError as exc:
            logger.warning("Failed to fetch searched stock", extra={"symbol": symbol, "error": str(exc)})
            self.error = f"Failed to fetch data for {symbol}"
            return None
        finally:
            self.is_searching = False

        stocks = data.get("stocks") or []
        if not stocks:
            self.error = f"No data available for {symbol}"
            return None

        row = row_from_quote(stocks[0], 0, name=result.get("description") or symbol)
        row.category = SEARCHED_STOCK_CATEGORY
        self.searched_stocks = [row]
        self.query = symbol
        self.show_results = False
        self.error = None
        return row

    def visible_stocks(self, default_rows: list[StockRow]) -> list[StockRow]:
        if self.query and self.searched_stocks:
            return self.searched_stocks
        return default_rows
