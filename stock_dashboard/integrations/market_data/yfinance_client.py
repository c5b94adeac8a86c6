from __future__ import annotations

import logging

import pandas as pd
import yfinance as yf

logger = logging.getLogger(__name__)


class YFinanceClient:
    def fetch_history(self, symbol: str, interval: str = "1d", period: str = "1mo") -> pd.DataFrame:
        logger.info("Fetching yfinance history", extra={"symbol": symbol, "interval": interval, "period": period})
        df = yf.Ticker(symbol).history(interval=interval, period=period, auto_adjust=False)
        if df.empty:
            raise ValueError(f"No historical data available for {symbol}")

        out = (
            df.rename(columns={"Close": "close", "Volume": "volume"})
            .reset_index()
            .rename(columns={"Datetime": "timestamp", "Date": "timestamp"})
        )
        if "close" not in out.columns or "timestamp" not in out.columns:
            raise ValueError(f"Missing close prices for {symbol}")
        if "volume" not in out.columns:
            out["volume"] = 0

        out["timestamp"] = pd.to_datetime(out["timestamp"], utc=True)
        out["close"] = pd.to_numeric(out["close"], errors="coerce")
        out["volume"] = pd.to_numeric(out["volume"], errors="coerce").fillna(0)
        return out[["timestamp", "close", "volume"]]
