from __future__ import annotations

import logging
from dataclasses import dataclass

from stock_dashboard.dashboard.backend import BackendClient
from stock_dashboard.dashboard.tasks import TaskScope, poll_forever
from stock_dashboard.errors import BackendError
from stock_dashboard.utils.validation import validate_holding, validate_symbol
from stock_dashboard.utils.valuation import Valuation, summarize, value_holding

logger = logging.getLogger(__name__)


@dataclass
class HoldingView:
    id: int
    symbol: str
    name: str
    shares: float
    avg_price: float
    valuation: Valuation

    @property
    def current_price(self) -> float:
        return self.valuation.current_price

    @property
    def value(self) -> float:
        return self.valuation.value

    @property
    def gain(self) -> float:
        return self.valuation.gain

    @property
    def gain_percent(self) -> float:
        return self.valuation.gain_percent


class PortfolioView:
    def __init__(self, backend: BackendClient, refresh_seconds: float | None = None) -> None:
        self.backend = backend
        self.refresh_seconds = refresh_seconds
        self.holdings: list[HoldingView] = []
        self.watchlist: list[dict] = []
        self.prices: dict[str, float] = {}
        self.loading = True
        self.error: str | None = None
        self._scope = TaskScope("portfolio")

    async def __aenter__(self) -> PortfolioView:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def start(self) -> None:
        await self.load()
        if self.refresh_seconds:
            self._scope.spawn(poll_forever(self.refresh_prices, self.refresh_seconds, "portfolio"), name="poll")

    async def aclose(self) -> None:
        await self._scope.aclose()

    async def load(self) -> None:
        await self.fetch_holdings()
        await self.fetch_watchlist()

    async def fetch_holdings(self) -> list[HoldingView]:
        try:
            rows = await self.backend.list_rows("portfolio_holdings")
            self.error = None
        except BackendError as exc:
            logger.warning("Failed to load portfolio", extra={"error": str(exc)})
            self.error = str(exc)
            rows = []
        finally:
            self.loading = False
        self.holdings = [self._view(row) for row in rows]
        return self.holdings

    async def fetch_watchlist(self) -> list[dict]:
        try:
            self.watchlist = await self.backend.list_rows("watchlist")
        except BackendError as exc:
            logger.warning("Failed to load watchlist", extra={"error": str(exc)})
            self.watchlist = []
        return self.watchlist

    def _view(self, row: dict) -> HoldingView:
        shares = float(row["shares"])
        avg_price = float(row["avg_price"])
        current = self.prices.get(row["symbol"], avg_price)
        return HoldingView(
            id=int(row["id"]),
            symbol=row["symbol"],
            name=row.get("name") or row["symbol"],
            shares=shares,
            avg_price=avg_price,
            valuation=value_holding(shares, avg_price, current),
        )

    async def add_holding(self, symbol: str, name: str, shares: float, avg_price: float) -> bool:
        clean = validate_holding(symbol, shares, avg_price)
        try:
            await self.backend.insert_row(
                "portfolio_holdings",
                {"symbol": clean, "name": name or clean, "shares": shares, "avg_price": avg_price},
            )
        except BackendError as exc:
            logger.warning("Failed to add holding", extra={"symbol": clean, "error": str(exc)})
            self.error = f"Failed to add holding: {exc}"
            return False
        await self.fetch_holdings()
        return True

    async def delete_holding(self, holding_id: int) -> bool:
        try:
            await self.backend.delete_row("portfolio_holdings", holding_id)
        except BackendError as exc:
            logger.warning("Failed to remove holding", extra={"holding_id": holding_id, "error": str(exc)})
            self.error = f"Failed to remove holding: {exc}"
            return False
        await self.fetch_holdings()
        return True

    async def add_to_watchlist(self, symbol: str, name: str = "") -> bool:
        clean = validate_symbol(symbol)
        try:
            await self.backend.insert_row("watchlist", {"symbol": clean, "name": name or clean})
        except BackendError as exc:
            logger.warning("Failed to add to watchlist", extra={"symbol": clean, "error": str(exc)})
            self.error = f"Failed to add to watchlist: {exc}"
            return False
        await self.fetch_watchlist()
        return True

    async def remove_from_watchlist(self, entry_id: int) -> bool:
        try:
            await self.backend.delete_row("watchlist", entry_id)
        except BackendError as exc:
            logger.warning("Failed to remove from watchlist", extra={"entry_id": entry_id, "error": str(exc)})
            self.error = f"Failed to remove from watchlist: {exc}"
            return False
        await self.fetch_watchlist()
        return True

    async def refresh_prices(self) -> dict[str, float]:
        symbols = sorted({h.symbol for h in self.holdings})
        if not symbols:
            return self.prices
        try:
            data = await self.backend.invoke("fetch-stock-data", {"symbols": symbols})
        except BackendError as exc:
            logger.warning("Failed to refresh portfolio prices", extra={"error": str(exc)})
            return self.prices
        for quote in data.get("stocks") or []:
            self.prices[quote["symbol"]] = float(quote["price"])
        self.holdings = [
            HoldingView(
                id=h.id,
                symbol=h.symbol,
                name=h.name,
                shares=h.shares,
                avg_price=h.avg_price,
                valuation=value_holding(h.shares, h.avg_price, self.prices.get(h.symbol, h.avg_price)),
            )
            for h in self.holdings
        ]
        return self.prices

    def totals(self) -> dict:
        return summarize(h.valuation for h in self.holdings)
