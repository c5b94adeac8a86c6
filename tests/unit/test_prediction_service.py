import json

import pytest

from stock_dashboard.config import Settings
from stock_dashboard.services.prediction_service import (
    PredictionService,
    build_prompt,
    heuristic_insights,
    parse_insights,
    unavailable_insights,
)

QUOTE = {"symbol": "AAPL", "name": "Apple Inc.", "price": 200.0, "change": 3.0, "changePercent": 1.5, "volume": "1,000"}


def test_prompt_carries_quote_fields() -> None:
    prompt = build_prompt(QUOTE)
    assert "Apple Inc. (AAPL)" in prompt
    assert "Change: +3.0 (+1.5%)" in prompt


def test_parse_fenced_json_reply() -> None:
    body = {
        "signal": "buy",
        "confidence": 80,
        "reasoning": "Momentum is strong.",
        "keyFactors": ["a", "b"],
    }
    insights = parse_insights(f"```json\n{json.dumps(body)}\n```", QUOTE)

    assert insights["signal"] == "BUY"
    assert insights["modelUsed"] == "Gemini"
    assert [i["label"] for i in insights["indicators"]] == ["RSI (14)", "MACD", "50-Day MA", "200-Day MA"]


def test_unparseable_reply_uses_change_heuristic() -> None:
    insights = parse_insights("The stock looks fine to me.", {**QUOTE, "changePercent": -3.0})

    assert insights["signal"] == "SELL"
    assert insights["confidence"] == 95.0
    assert insights["reasoning"].startswith("The stock looks fine")
    assert heuristic_insights({**QUOTE, "changePercent": 0.5}, "x")["signal"] == "HOLD"


def test_incomplete_reply_is_rejected() -> None:
    with pytest.raises(ValueError):
        parse_insights('{"signal": "BUY"}', QUOTE)


def test_unavailable_insights_shape() -> None:
    insights = unavailable_insights("boom")
    assert insights["signal"] == "HOLD"
    assert insights["confidence"] == 65
    assert all(i["value"] == "N/A" for i in insights["indicators"])


class StubGemini:
    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.calls: list[tuple] = []

    def generate(self, model, contents):
        self.calls.append((model, contents))
        return self.reply


def test_predict_uses_prediction_model() -> None:
    client = StubGemini('{"signal": "HOLD", "confidence": 70, "reasoning": "Flat.", "keyFactors": ["x"]}')
    service = PredictionService(client, Settings(gemini_prediction_model="model-p"))

    assert service.predict(QUOTE)["signal"] == "HOLD"
    assert client.calls[0][0] == "model-p"
