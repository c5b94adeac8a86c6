from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class Valuation:
    current_price: float
    value: float
    cost: float
    gain: float
    gain_percent: float


def value_holding(shares: float, avg_price: float, current_price: float) -> Valuation:
    value = shares * current_price
    cost = shares * avg_price
    gain = value - cost
    gain_percent = (gain / cost) * 100 if cost else 0.0
    return Valuation(
        current_price=current_price,
        value=value,
        cost=cost,
        gain=gain,
        gain_percent=gain_percent,
    )


def summarize(valuations: Iterable[Valuation]) -> dict:
    items = list(valuations)
    total_value = sum(v.value for v in items)
    total_cost = sum(v.cost for v in items)
    total_gain = total_value - total_cost
    return {
        "total_value": round(total_value, 2),
        "total_gain": round(total_gain, 2),
        "total_gain_percent": round((total_gain / total_cost) * 100, 2) if total_cost else 0.0,
    }
