from __future__ import annotations

import logging
from datetime import datetime

import numpy as np

from stock_dashboard.dashboard.backend import BackendClient
from stock_dashboard.dashboard.catalog import DEFAULT_SYMBOLS, StockRow, placeholder_rows, row_from_quote
from stock_dashboard.dashboard.settings_store import SettingsStore
from stock_dashboard.dashboard.tasks import TaskScope, poll_forever
from stock_dashboard.errors import BackendError
from stock_dashboard.utils.time import utc_now

logger = logging.getLogger(__name__)


class StockFeed:
    """Stock listing kept fresh by polling the quote function.

    The collection is replaced wholesale on every fetch. When quotes cannot be
    obtained, or practice mode is on, the feed shows placeholder rows instead of
    an empty list.
    """

    def __init__(
        self,
        backend: BackendClient,
        settings_store: SettingsStore | None = None,
        symbols: list[str] | None = None,
        refresh_seconds: float | None = 300,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.backend = backend
        self.settings_store = settings_store
        self.symbols = list(symbols or DEFAULT_SYMBOLS)
        self.refresh_seconds = refresh_seconds
        self.rng = rng or np.random.default_rng()
        self.rows: list[StockRow] = []
        self.loading = True
        self.partial = False
        self.error: str | None = None
        self.last_update: datetime = utc_now()
        self._scope = TaskScope("stock-feed")

    @property
    def enabled(self) -> bool:
        return self.settings_store is None or not self.settings_store.practice_mode

    @property
    def is_sample(self) -> bool:
        return any(row.is_sample for row in self.rows)

    async def __aenter__(self) -> StockFeed:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def start(self) -> None:
        await self.fetch()
        if self.refresh_seconds:
            self._scope.spawn(poll_forever(self.fetch, self.refresh_seconds, "stock-feed"), name="poll")

    async def aclose(self) -> None:
        await self._scope.aclose()

    async def refetch(self) -> list[StockRow]:
        return await self.fetch()

    async def fetch(self) -> list[StockRow]:
        if not self.enabled:
            self._replace(placeholder_rows(self.symbols, self.rng))
            return self.rows

        self.loading = True
        try:
            data = await self.backend.invoke("fetch-stock-data", {"symbols": self.symbols})
        except BackendError as exc:
            logger.warning("Quote fetch failed, showing sample data", extra={"error": str(exc)})
            self.error = str(exc)
            self._replace(placeholder_rows(self.symbols, self.rng))
            return self.rows
        finally:
            self.loading = False

        stocks = data.get("stocks") or []
        if not stocks:
            logger.warning("No stock data returned, showing sample data")
            self.error = "No stock data returned; quote provider may be rate limited"
            self._replace(placeholder_rows(self.symbols, self.rng))
            return self.rows

        self.error = None
        self._replace([row_from_quote(quote, index) for index, quote in enumerate(stocks)])
        requested = data.get("total_requested") or len(self.symbols)
        retrieved = data.get("total_retrieved") or len(stocks)
        self.partial = retrieved < requested
        logger.info("Loaded stock quotes", extra={"retrieved": retrieved, "requested": requested})
        return self.rows

    def _replace(self, rows: list[StockRow]) -> None:
        self.rows = rows
        self.partial = False
        self.last_update = utc_now()
        self.loading = False
