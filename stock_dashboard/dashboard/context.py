from __future__ import annotations

import logging

import httpx
import numpy as np

from stock_dashboard.config import Settings, get_settings
from stock_dashboard.dashboard.backend import BackendClient
from stock_dashboard.dashboard.catalog import ALL_CATEGORIES, CATEGORIES, StockRow, filter_by_category
from stock_dashboard.dashboard.chat import ChatSession
from stock_dashboard.dashboard.comparison import StockComparison
from stock_dashboard.dashboard.portfolio import PortfolioView
from stock_dashboard.dashboard.practice import PracticeSimulator
from stock_dashboard.dashboard.search import DebouncedSearch
from stock_dashboard.dashboard.session import Session
from stock_dashboard.dashboard.settings_store import SettingsStore
from stock_dashboard.dashboard.stock_feed import StockFeed
from stock_dashboard.errors import BackendError

logger = logging.getLogger(__name__)


class Dashboard:
    """Wires the dashboard components to one backend client, session and settings store.

    Usage::

        async with Dashboard(session=Session("user-1")) as dash:
            rows = dash.visible_stocks()
    """

    def __init__(
        self,
        session: Session | None = None,
        settings: Settings | None = None,
        settings_store: SettingsStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.session = session
        self.settings_store = settings_store or SettingsStore(self.settings.dashboard_settings_path or None)
        self.backend = BackendClient(
            self.settings.backend_url,
            session=session,
            public_key=self.settings.backend_public_key,
            timeout=self.settings.http_timeout_seconds,
            transport=transport,
        )
        rng = rng or np.random.default_rng()
        self.feed = StockFeed(
            self.backend,
            settings_store=self.settings_store,
            refresh_seconds=self.settings.stock_refresh_seconds,
            rng=rng,
        )
        self.practice = PracticeSimulator(
            settings_store=self.settings_store,
            tick_seconds=self.settings.practice_tick_seconds,
            rng=rng,
        )
        self.search = DebouncedSearch(
            self.backend,
            debounce_seconds=self.settings.search_debounce_seconds,
            limit=self.settings.search_result_limit,
        )
        self.comparison = StockComparison(self.backend)
        self.chat = ChatSession(self.backend)
        self._portfolio: PortfolioView | None = None
        self.active_category = ALL_CATEGORIES

    async def __aenter__(self) -> Dashboard:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def start(self) -> None:
        await self.feed.start()
        self.practice.load(self.feed.rows)
        self.practice.start()

    async def aclose(self) -> None:
        if self._portfolio is not None:
            await self._portfolio.aclose()
        await self.search.aclose()
        await self.practice.aclose()
        await self.feed.aclose()
        await self.backend.aclose()

    @property
    def portfolio(self) -> PortfolioView:
        if self.session is None:
            raise BackendError("An authenticated session is required", status_code=401)
        if self._portfolio is None:
            self._portfolio = PortfolioView(self.backend)
        return self._portfolio

    @property
    def practice_mode(self) -> bool:
        return self.settings_store.practice_mode

    async def toggle_practice_mode(self) -> bool:
        enabled = self.settings_store.toggle_practice_mode()
        await self.feed.refetch()
        self.practice.load(self.feed.rows)
        return enabled

    def stock_rows(self) -> list[StockRow]:
        return self.practice.rows if self.practice_mode else self.feed.rows

    def set_category(self, category: str) -> None:
        if category != ALL_CATEGORIES and category not in CATEGORIES:
            raise ValueError(f"Unknown category: {category}")
        self.active_category = category

    def visible_stocks(self) -> list[StockRow]:
        return filter_by_category(self.search.visible_stocks(self.stock_rows()), self.active_category)

    async def submit_feedback(self, subject: str, description: str) -> dict:
        email = self.session.email if self.session else None
        return await self.backend.insert_row(
            "feedback",
            {"subject": subject, "description": description, "email": email},
        )
