from __future__ import annotations

import logging
import time

from stock_dashboard.config import Settings, get_settings
from stock_dashboard.errors import NotConfiguredError, UpstreamError, ValidationError
from stock_dashboard.integrations.alpha_vantage_client import AlphaVantageClient
from stock_dashboard.integrations.finnhub_client import FinnhubClient
from stock_dashboard.storage.cache import TTLCache

logger = logging.getLogger(__name__)


class QuoteService:
    def __init__(
        self,
        client: AlphaVantageClient | None = None,
        search_client: FinnhubClient | None = None,
        cache: TTLCache | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.client = client or AlphaVantageClient(
            self.settings.alpha_vantage_api_key,
            timeout=self.settings.http_timeout_seconds,
        )
        self.search_client = search_client or FinnhubClient(
            self.settings.finnhub_api_key,
            timeout=self.settings.http_timeout_seconds,
        )
        self.cache = cache or TTLCache(ttl_seconds=self.settings.quote_cache_ttl_seconds)

    def fetch_quotes(self, symbols) -> dict:
        if not self.client.api_key:
            raise NotConfiguredError("ALPHA_VANTAGE_API_KEY")
        if not symbols or not isinstance(symbols, list):
            raise ValidationError("Symbols array is required")

        logger.info("Fetching quotes", extra={"count": len(symbols)})
        stocks: list[dict] = []
        for index, raw_symbol in enumerate(symbols):
            symbol = str(raw_symbol).strip().upper()
            if not symbol:
                continue
            cached = self.cache.get(symbol)
            if cached is not None:
                stocks.append(cached)
                continue
            if index > 0 and self.settings.quote_call_spacing_seconds > 0:
                time.sleep(self.settings.quote_call_spacing_seconds)

            quote = self._fetch_one(symbol)
            if quote is None:
                continue
            self.cache.set(symbol, quote)
            stocks.append(quote)

        if not stocks:
            logger.warning("No valid stock data retrieved", extra={"requested": len(symbols)})
        return {
            "stocks": stocks,
            "total_requested": len(symbols),
            "total_retrieved": len(stocks),
        }

    def _fetch_one(self, symbol: str) -> dict | None:
        try:
            return self.client.fetch_global_quote(symbol)
        except UpstreamError as exc:
            logger.warning("Quote fetch failed", extra={"symbol": symbol, "error": str(exc)})
            return None

    def search(self, query: str, limit: int = 20) -> list[dict]:
        clean = (query or "").strip()
        if not clean:
            return []
        results = self.search_client.search(clean, limit=limit)
        logger.info("Symbol search completed", extra={"query": clean, "results": len(results)})
        return results
