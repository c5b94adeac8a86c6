from __future__ import annotations

from dataclasses import asdict, dataclass

import numpy as np

DEFAULT_SYMBOLS = [
    "AAPL", "MSFT", "GOOGL", "AMZN", "TSLA",
    "META", "NVDA", "JPM", "V", "WMT",
    "JNJ", "PG", "UNH", "HD", "DIS",
]

STOCK_NAMES = {
    "AAPL": "Apple Inc.",
    "MSFT": "Microsoft Corp.",
    "GOOGL": "Alphabet Inc.",
    "AMZN": "Amazon.com Inc.",
    "TSLA": "Tesla Inc.",
    "META": "Meta Platforms",
    "NVDA": "NVIDIA Corp.",
    "JPM": "JPMorgan Chase",
    "V": "Visa Inc.",
    "WMT": "Walmart Inc.",
    "JNJ": "Johnson & Johnson",
    "PG": "Procter & Gamble",
    "UNH": "UnitedHealth Group",
    "HD": "Home Depot",
    "DIS": "Walt Disney Co.",
}

CATEGORIES = ["technology", "finance", "healthcare", "consumer", "energy"]
ALL_CATEGORIES = "All"


@dataclass
class StockRow:
    symbol: str
    name: str
    price: float
    change: float
    change_percent: float
    volume: str = ""
    category: str = ""
    is_sample: bool = False

    @property
    def id(self) -> str:
        return self.symbol

    def as_quote(self) -> dict:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "price": self.price,
            "change": self.change,
            "changePercent": self.change_percent,
            "volume": self.volume,
        }

    def as_dict(self) -> dict:
        return {"id": self.id, **asdict(self)}


def stock_name(symbol: str) -> str:
    return STOCK_NAMES.get(symbol, symbol)


def category_for(index: int) -> str:
    return CATEGORIES[index % len(CATEGORIES)]


def row_from_quote(quote: dict, index: int, name: str | None = None) -> StockRow:
    symbol = str(quote["symbol"])
    return StockRow(
        symbol=symbol,
        name=name or stock_name(symbol),
        price=float(quote.get("price") or 0.0),
        change=float(quote.get("change") or 0.0),
        change_percent=float(quote.get("changePercent") or 0.0),
        volume=str(quote.get("volume") or ""),
        category=category_for(index),
    )


def placeholder_rows(symbols: list[str], rng: np.random.Generator | None = None) -> list[StockRow]:
    """Randomized sample rows, one per symbol, used whenever live quotes are unavailable."""
    rng = rng or np.random.default_rng()
    rows: list[StockRow] = []
    for index, symbol in enumerate(symbols):
        rows.append(
            StockRow(
                symbol=symbol,
                name=stock_name(symbol),
                price=round(float(rng.uniform(150, 250)), 2),
                change=round(float(rng.uniform(-5, 5)), 2),
                change_percent=round(float(rng.uniform(-2.5, 2.5)), 2),
                volume=f"{int(rng.integers(1_000_000, 11_000_000)):,}",
                category=category_for(index),
                is_sample=True,
            )
        )
    return rows


def filter_by_category(rows: list[StockRow], category: str = ALL_CATEGORIES) -> list[StockRow]:
    if category == ALL_CATEGORIES:
        return rows
    return [row for row in rows if row.category == category]
