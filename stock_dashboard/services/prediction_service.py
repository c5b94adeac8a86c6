from __future__ import annotations

import json
import logging
import re

from stock_dashboard.config import Settings, get_settings
from stock_dashboard.integrations.gemini_client import GeminiClient

logger = logging.getLogger(__name__)

MODEL_LABEL = "Gemini"
SYSTEM_PREAMBLE = "You are a professional stock analyst. Always respond with valid JSON only."
JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")
REQUIRED_FIELDS = ("signal", "confidence", "reasoning", "keyFactors")
UNAVAILABLE_REASONING = "Unable to generate AI prediction at this time. Please try again later."


def build_prompt(quote: dict) -> str:
    change = quote.get("change") or 0
    change_percent = quote.get("changePercent") or 0
    return f"""You are a professional stock market analyst. Analyze the following stock and provide investment insights:

Stock: {quote.get("name") or quote["symbol"]} ({quote["symbol"]})
Current Price: ${quote.get("price")}
Change: {"+" if change > 0 else ""}{change} ({"+" if change_percent > 0 else ""}{change_percent}%)
Volume: {quote.get("volume") or "N/A"}

Provide a comprehensive analysis in the following JSON format:
{{
  "signal": "BUY" or "SELL" or "HOLD",
  "confidence": number between 60-95,
  "reasoning": "2-3 sentences explaining your recommendation",
  "keyFactors": ["factor 1", "factor 2", "factor 3", "factor 4"],
  "indicators": [
    {{"label": "RSI (14)", "value": "realistic number", "status": "Bullish/Bearish/Neutral"}},
    {{"label": "MACD", "value": "realistic value", "status": "Bullish/Bearish/Neutral"}},
    {{"label": "50-Day MA", "value": "price value", "status": "Above/Below"}},
    {{"label": "200-Day MA", "value": "price value", "status": "Above/Below"}}
  ],
  "modelUsed": "{MODEL_LABEL}"
}}

Base your analysis on:
- Current price movement and momentum
- Technical indicators (provide realistic values)
- Market sentiment
- Risk factors

Be specific and actionable. Return ONLY the JSON object, no additional text."""


def placeholder_indicators(price: float) -> list[dict]:
    return [
        {"label": "RSI (14)", "value": "62.3", "status": "Bullish"},
        {"label": "MACD", "value": "+1.24", "status": "Bullish"},
        {"label": "50-Day MA", "value": f"${price * 0.98:.2f}", "status": "Above"},
        {"label": "200-Day MA", "value": f"${price * 0.95:.2f}", "status": "Above"},
    ]


def heuristic_insights(quote: dict, raw_reply: str) -> dict:
    """Rule-of-thumb answer used when the model reply cannot be parsed as JSON."""
    change_percent = float(quote.get("changePercent") or 0)
    price = float(quote.get("price") or 0)
    if change_percent > 2:
        signal = "BUY"
    elif change_percent < -2:
        signal = "SELL"
    else:
        signal = "HOLD"
    direction = "increased" if change_percent > 0 else "decreased"
    return {
        "signal": signal,
        "confidence": min(95.0, abs(change_percent) * 10 + 65),
        "reasoning": raw_reply[:200] + "...",
        "keyFactors": [
            f"Price {direction} by {abs(change_percent)}%",
            "Technical analysis in progress",
            "Market sentiment under review",
            "Volume analysis pending",
        ],
        "indicators": placeholder_indicators(price),
        "modelUsed": MODEL_LABEL,
    }


def unavailable_insights(error: str) -> dict:
    return {
        "error": error,
        "signal": "HOLD",
        "confidence": 65,
        "reasoning": UNAVAILABLE_REASONING,
        "keyFactors": [
            "AI analysis temporarily unavailable",
            "Manual review recommended",
            "Check back later",
            "Consider current market conditions",
        ],
        "indicators": [
            {"label": label, "value": "N/A", "status": "Neutral"}
            for label in ("RSI (14)", "MACD", "50-Day MA", "200-Day MA")
        ],
        "modelUsed": "GEMINI",
    }


def parse_insights(raw_reply: str, quote: dict) -> dict:
    match = JSON_OBJECT_PATTERN.search(raw_reply)
    try:
        insights = json.loads(match.group(0) if match else raw_reply)
    except ValueError:
        logger.warning("Failed to parse AI response", extra={"symbol": quote.get("symbol")})
        return heuristic_insights(quote, raw_reply)
    if not isinstance(insights, dict):
        return heuristic_insights(quote, raw_reply)

    if any(not insights.get(field) for field in REQUIRED_FIELDS):
        raise ValueError("Invalid response structure from AI")
    if str(insights["signal"]).upper() not in {"BUY", "HOLD", "SELL"}:
        raise ValueError(f"Unknown signal from AI: {insights['signal']}")
    insights["signal"] = str(insights["signal"]).upper()

    if not insights.get("indicators"):
        insights["indicators"] = placeholder_indicators(float(quote.get("price") or 0))
    if not insights.get("modelUsed"):
        insights["modelUsed"] = MODEL_LABEL
    return insights


class PredictionService:
    def __init__(self, client: GeminiClient | None = None, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.client = client or GeminiClient(self.settings.gemini_api_key, timeout=self.settings.http_timeout_seconds * 2)

    def predict(self, quote: dict) -> dict:
        logger.info("Generating AI prediction", extra={"symbol": quote.get("symbol")})
        contents = [{"role": "user", "parts": [{"text": f"{SYSTEM_PREAMBLE}\n\n{build_prompt(quote)}"}]}]
        reply = self.client.generate(self.settings.gemini_prediction_model, contents)
        return parse_insights(reply, quote)
