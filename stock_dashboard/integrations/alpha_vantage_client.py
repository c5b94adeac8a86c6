from __future__ import annotations

import logging

import requests

from stock_dashboard.errors import NotConfiguredError, RateLimitedError, UpstreamError, UpstreamPayloadError

logger = logging.getLogger(__name__)

PROVIDER = "alpha_vantage"


def _parse_float(raw: str | None) -> float:
    if raw is None:
        return 0.0
    try:
        return float(str(raw).replace("%", "").strip())
    except ValueError:
        return 0.0


def format_volume(raw) -> str:
    try:
        return f"{int(float(raw)):,}"
    except (TypeError, ValueError):
        return "0"


class AlphaVantageClient:
    BASE_URL = "https://www.alphavantage.co/query"

    def __init__(self, api_key: str, timeout: float = 15.0, session: requests.Session | None = None) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_global_quote(self, symbol: str) -> dict | None:
        """Return a quote snapshot for ``symbol`` or ``None`` when the provider has no data.

        Raises ``RateLimitedError`` when the provider answers with its throttling
        ``Note`` and ``UpstreamError`` for transport failures or ``Information`` notices.
        """
        if not self.api_key:
            raise NotConfiguredError("ALPHA_VANTAGE_API_KEY")

        try:
            response = self.session.get(
                self.BASE_URL,
                params={"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self.api_key},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as exc:
            raise UpstreamError(PROVIDER, f"Quote provider error for {symbol}: {exc}") from exc
        except ValueError as exc:
            raise UpstreamPayloadError(PROVIDER, f"Malformed quote payload for {symbol}") from exc

        if data.get("Note"):
            raise RateLimitedError(PROVIDER, f"API rate limit reached for {symbol}", status_code=429)
        if data.get("Information"):
            raise UpstreamError(PROVIDER, f"Provider notice for {symbol}: {data['Information']}")

        quote = data.get("Global Quote") or {}
        if not quote.get("05. price"):
            logger.warning("No quote data available", extra={"symbol": symbol})
            return None

        return {
            "symbol": symbol,
            "price": _parse_float(quote.get("05. price")),
            "change": _parse_float(quote.get("09. change")),
            "changePercent": _parse_float(quote.get("10. change percent")),
            "volume": format_volume(quote.get("06. volume")),
        }
