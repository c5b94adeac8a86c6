from __future__ import annotations

from stock_dashboard.errors import ValidationError


def validate_symbol(symbol: str | None) -> str:
    clean = (symbol or "").strip().upper()
    if not clean:
        raise ValidationError("Symbol is required")
    return clean


def validate_holding(symbol: str | None, shares: float, avg_price: float) -> str:
    clean = validate_symbol(symbol)
    if shares is None or shares <= 0:
        raise ValidationError("Shares must be greater than zero")
    if avg_price is None or avg_price < 0:
        raise ValidationError("Average price cannot be negative")
    return clean
