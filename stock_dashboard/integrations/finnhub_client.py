from __future__ import annotations

import logging

import pandas as pd
import requests

from stock_dashboard.errors import NotConfiguredError, RateLimitedError, UpstreamError, UpstreamPayloadError

logger = logging.getLogger(__name__)

PROVIDER = "finnhub"


class FinnhubClient:
    BASE_URL = "https://finnhub.io/api/v1"

    def __init__(self, api_key: str, timeout: float = 15.0, session: requests.Session | None = None) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, path: str, params: dict) -> dict:
        if not self.api_key:
            raise NotConfiguredError("FINNHUB_API_KEY")
        try:
            response = self.session.get(
                f"{self.BASE_URL}{path}",
                params={**params, "token": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise UpstreamError(PROVIDER, f"Finnhub request failed: {exc}") from exc

        if response.status_code == 429:
            raise RateLimitedError(PROVIDER, "Finnhub rate limit reached", status_code=429)
        if not response.ok:
            raise UpstreamError(PROVIDER, f"Finnhub API error: {response.status_code}", status_code=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamPayloadError(PROVIDER, "Malformed Finnhub payload") from exc

    def search(self, query: str, limit: int = 20) -> list[dict]:
        data = self._get("/search", {"q": query})
        results = data.get("result") or []
        out: list[dict] = []
        for item in results[:limit]:
            out.append(
                {
                    "symbol": str(item.get("symbol", "")),
                    "description": str(item.get("description", "")),
                    "displaySymbol": str(item.get("displaySymbol", "")),
                    "type": str(item.get("type", "")),
                }
            )
        return out

    def fetch_candles(self, symbol: str, resolution: str, start: int, end: int) -> pd.DataFrame:
        logger.info(
            "Fetching Finnhub candles",
            extra={"symbol": symbol, "resolution": resolution, "from": start, "to": end},
        )
        data = self._get(
            "/stock/candle",
            {"symbol": symbol, "resolution": resolution, "from": start, "to": end},
        )
        if data.get("s") == "no_data":
            raise ValueError("No historical data available for this symbol")

        timestamps = data.get("t") or []
        closes = data.get("c") or []
        volumes = data.get("v") or [0] * len(timestamps)
        if len(timestamps) != len(closes):
            raise UpstreamPayloadError(PROVIDER, f"Mismatched candle arrays for {symbol}")

        return pd.DataFrame(
            {
                "timestamp": pd.to_datetime(timestamps, unit="s", utc=True),
                "close": pd.to_numeric(pd.Series(closes), errors="coerce"),
                "volume": pd.to_numeric(pd.Series(volumes), errors="coerce").fillna(0),
            }
        )
