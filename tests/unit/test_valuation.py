import pytest

from stock_dashboard.errors import ValidationError
from stock_dashboard.utils.validation import validate_holding, validate_symbol
from stock_dashboard.utils.valuation import summarize, value_holding


@pytest.mark.parametrize(
    "shares,avg_price,current",
    [(10, 100.0, 110.0), (2.5, 40.0, 31.2), (1, 0.0, 12.0), (100, 250.0, 250.0)],
)
def test_value_and_gain_follow_holding_arithmetic(shares, avg_price, current) -> None:
    valuation = value_holding(shares, avg_price, current)

    assert valuation.value == pytest.approx(shares * current)
    assert valuation.gain == pytest.approx(valuation.value - shares * avg_price)


def test_gain_percent_is_zero_for_zero_cost_basis() -> None:
    assert value_holding(5, 0.0, 10.0).gain_percent == 0.0
    assert value_holding(10, 100.0, 110.0).gain_percent == pytest.approx(10.0)


def test_summarize_totals_across_holdings() -> None:
    totals = summarize([value_holding(10, 100.0, 110.0), value_holding(5, 20.0, 10.0)])

    assert totals["total_value"] == 1150.0
    assert totals["total_gain"] == 50.0
    assert totals["total_gain_percent"] == pytest.approx(4.55)
    assert summarize([]) == {"total_value": 0, "total_gain": 0, "total_gain_percent": 0.0}


def test_holding_validation_rejects_bad_input() -> None:
    assert validate_symbol(" aapl ") == "AAPL"
    with pytest.raises(ValidationError):
        validate_symbol("   ")
    with pytest.raises(ValidationError, match="Shares"):
        validate_holding("AAPL", 0, 10)
    with pytest.raises(ValidationError, match="Shares"):
        validate_holding("AAPL", -1, 10)
    with pytest.raises(ValidationError, match="Average price"):
        validate_holding("AAPL", 1, -0.01)
    assert validate_holding("msft", 1, 0) == "MSFT"
