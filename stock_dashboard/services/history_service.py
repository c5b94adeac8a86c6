from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd

from stock_dashboard.config import Settings, get_settings
from stock_dashboard.integrations.finnhub_client import FinnhubClient
from stock_dashboard.integrations.market_data.yfinance_client import YFinanceClient
from stock_dashboard.utils.time import to_iso_z, unix_now
from stock_dashboard.utils.validation import validate_symbol

logger = logging.getLogger(__name__)

DAY_SECONDS = 24 * 60 * 60


@dataclass(frozen=True)
class TimeWindow:
    resolution: str
    lookback_days: int
    yf_interval: str
    yf_period: str


TIME_RANGES: dict[str, TimeWindow] = {
    "1D": TimeWindow(resolution="5", lookback_days=1, yf_interval="5m", yf_period="1d"),
    "5D": TimeWindow(resolution="15", lookback_days=5, yf_interval="15m", yf_period="5d"),
    "1M": TimeWindow(resolution="D", lookback_days=30, yf_interval="1d", yf_period="1mo"),
    "6M": TimeWindow(resolution="D", lookback_days=180, yf_interval="1d", yf_period="6mo"),
    "1Y": TimeWindow(resolution="W", lookback_days=365, yf_interval="1wk", yf_period="1y"),
}
DEFAULT_RANGE = TIME_RANGES["1M"]


def time_range_params(time_range: str, now: int | None = None) -> dict:
    window = TIME_RANGES.get(time_range, DEFAULT_RANGE)
    to = unix_now() if now is None else now
    return {"resolution": window.resolution, "from": to - window.lookback_days * DAY_SECONDS, "to": to}


def frame_to_points(df: pd.DataFrame) -> list[dict]:
    clean = df.dropna(subset=["close"]).sort_values("timestamp")
    points: list[dict] = []
    for row in clean.itertuples(index=False):
        points.append(
            {
                "date": to_iso_z(pd.Timestamp(row.timestamp).to_pydatetime()),
                "price": round(float(row.close), 2),
                "volume": float(row.volume),
            }
        )
    return points


class HistoryService:
    def __init__(
        self,
        finnhub: FinnhubClient | None = None,
        yfinance: YFinanceClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.finnhub = finnhub or FinnhubClient(self.settings.finnhub_api_key, timeout=self.settings.http_timeout_seconds)
        self.yfinance = yfinance or YFinanceClient()

    def fetch(self, symbol: str, time_range: str = "1M") -> dict:
        clean = validate_symbol(symbol)
        time_range = time_range or "1M"
        provider = self.settings.resolved_history_provider
        logger.info("Fetching historical data", extra={"symbol": clean, "time_range": time_range, "provider": provider})

        if provider == "finnhub":
            params = time_range_params(time_range)
            df = self.finnhub.fetch_candles(clean, params["resolution"], params["from"], params["to"])
        else:
            window = TIME_RANGES.get(time_range, DEFAULT_RANGE)
            df = self.yfinance.fetch_history(clean, interval=window.yf_interval, period=window.yf_period)

        return {"symbol": clean, "timeRange": time_range, "data": frame_to_points(df)}
