from __future__ import annotations

import base64
import json

import pytest
import requests

from stock_dashboard.api import routes
from stock_dashboard.config import Settings
from stock_dashboard.errors import NotConfiguredError, RateLimitedError
from stock_dashboard.integrations.gemini_client import GeminiClient
from stock_dashboard.services.chat_service import FALLBACK_MESSAGE
from stock_dashboard.services.quote_service import QuoteService
from stock_dashboard.services.transcription_service import TranscriptionService
from stock_dashboard.storage.cache import TTLCache
from tests.fakes import FakeResponse, FakeSession


class StubQuotes:
    api_key = "key"

    def fetch_global_quote(self, symbol):
        if symbol == "BAD":
            return None
        return {"symbol": symbol, "price": 10.0, "change": 0.1, "changePercent": 1.0, "volume": "1,234"}


class StubSearch:
    def search(self, query, limit=20):
        return [{"symbol": "AAPL", "description": "Apple Inc", "displaySymbol": "AAPL", "type": "Common Stock"}]


class StubGemini:
    def __init__(self, reply="", error: Exception | None = None, chunks=()):
        self.reply = reply
        self.error = error
        self.chunks = list(chunks)

    def generate(self, model, contents):
        if self.error:
            raise self.error
        return self.reply

    def stream_generate(self, model, contents):
        if self.error:
            raise self.error
        yield from self.chunks


class StubWhisper:
    def transcribe(self, audio):
        return "buy or sell apple"


@pytest.fixture
def quotes(monkeypatch):
    service = QuoteService(StubQuotes(), StubSearch(), TTLCache(ttl_seconds=0), Settings(quote_call_spacing_seconds=0))
    monkeypatch.setattr(routes, "quote_service", service)
    return service


def test_fetch_stock_data_quotes_and_search(test_ctx, quotes) -> None:
    client = test_ctx["client"]

    data = client.post("/api/functions/fetch-stock-data", json={"symbols": ["AAPL", "BAD"]}).json()
    assert data["stocks"] == [{"symbol": "AAPL", "price": 10.0, "change": 0.1, "changePercent": 1.0, "volume": "1,234"}]
    assert data["total_requested"] == 2
    assert data["total_retrieved"] == 1

    found = client.post("/api/functions/fetch-stock-data", json={"search": "apple", "limit": 5}).json()
    assert found["searchResults"][0]["displaySymbol"] == "AAPL"

    missing = client.post("/api/functions/fetch-stock-data", json={})
    assert missing.status_code == 400
    assert missing.json()["error"] == "Symbols array is required"


def test_fetch_stock_data_without_key(test_ctx, monkeypatch) -> None:
    class NoKey(StubQuotes):
        api_key = ""

    service = QuoteService(NoKey(), StubSearch(), TTLCache(), Settings())
    monkeypatch.setattr(routes, "quote_service", service)

    response = test_ctx["client"].post("/api/functions/fetch-stock-data", json={"symbols": ["AAPL"]})
    assert response.status_code == 400
    assert "ALPHA_VANTAGE_API_KEY" in response.json()["error"]


def test_historical_data_errors_are_400(test_ctx, monkeypatch) -> None:
    class Failing:
        def fetch(self, symbol, time_range):
            raise ValueError("No historical data available for this symbol")

    monkeypatch.setattr(routes, "history_service", Failing())
    response = test_ctx["client"].post("/api/functions/fetch-historical-data", json={"symbol": "AAPL"})

    assert response.status_code == 400
    assert response.json() == {"error": "No historical data available for this symbol"}


def test_prediction_success_and_fallbacks(test_ctx, monkeypatch) -> None:
    client = test_ctx["client"]
    quote = {"symbol": "AAPL", "name": "Apple", "price": 200, "change": 5, "changePercent": 2.5, "volume": "1,000"}

    monkeypatch.setattr(routes.prediction_service, "client", StubGemini(reply="no json here"))
    ok = client.post("/api/functions/stock-ai-prediction", json=quote)
    assert ok.status_code == 200
    assert ok.json()["signal"] == "BUY"
    assert "error" not in ok.json()

    monkeypatch.setattr(
        routes.prediction_service,
        "client",
        StubGemini(error=RateLimitedError("gemini", "Rate limit exceeded. Please try again in a moment.", status_code=429)),
    )
    limited = client.post("/api/functions/stock-ai-prediction", json=quote)
    assert limited.status_code == 429
    assert limited.json()["signal"] == "HOLD"
    assert limited.json()["confidence"] == 65

    monkeypatch.setattr(routes.prediction_service, "client", StubGemini(error=NotConfiguredError("GEMINI_API_KEY")))
    unconfigured = client.post("/api/functions/stock-ai-prediction", json=quote)
    assert unconfigured.status_code == 500
    assert unconfigured.json()["error"] == "AI service not configured"


def test_chat_json_and_stream(test_ctx, monkeypatch) -> None:
    client = test_ctx["client"]

    monkeypatch.setattr(routes.chat_service, "client", StubGemini(reply="Markets are mixed."))
    reply = client.post("/api/functions/stock-chat", json={"message": "How are markets?"})
    assert reply.json() == {"message": "Markets are mixed."}

    monkeypatch.setattr(routes.chat_service, "client", StubGemini(chunks=["Markets ", "are up."]))
    streamed = client.post("/api/functions/stock-chat", json={"message": "How are markets?", "stream": True})
    assert streamed.headers["content-type"].startswith("text/event-stream")
    assert streamed.text == 'data: {"content": "Markets "}\n\ndata: {"content": "are up."}\n\ndata: [DONE]\n\n'

    monkeypatch.setattr(
        routes.chat_service,
        "client",
        StubGemini(error=RateLimitedError("gemini", "AI credits depleted. Please add credits to continue.", status_code=402)),
    )
    failed = client.post("/api/functions/stock-chat", json={"message": "hi", "stream": True})
    assert failed.status_code == 402
    assert failed.json()["message"] == FALLBACK_MESSAGE

    assert client.post("/api/functions/stock-chat", json={"message": ""}).status_code == 422


def test_voice_to_text(test_ctx, monkeypatch) -> None:
    client = test_ctx["client"]
    service = TranscriptionService(StubWhisper(), Settings(max_audio_bytes=16))
    monkeypatch.setattr(routes, "transcription_service", service)

    ok = client.post("/api/functions/voice-to-text", json={"audio": base64.b64encode(b"short").decode()})
    assert ok.json() == {"text": "buy or sell apple"}

    assert client.post("/api/functions/voice-to-text", json={}).status_code == 400
    assert client.post("/api/functions/voice-to-text", json={"audio": "@@@@"}).status_code == 400
    too_big = client.post("/api/functions/voice-to-text", json={"audio": base64.b64encode(b"x" * 64).decode()})
    assert too_big.status_code == 413


def _dropping_gemini(*lines) -> GeminiClient:
    return GeminiClient("key", session=FakeSession(FakeResponse(payload={}, lines=list(lines))))


def test_chat_stream_connection_drop_before_first_chunk(test_ctx, monkeypatch) -> None:
    monkeypatch.setattr(routes.chat_service, "client", _dropping_gemini(requests.ConnectionError("reset by peer")))

    response = test_ctx["client"].post("/api/functions/stock-chat", json={"message": "hi", "stream": True})

    assert response.status_code == 500
    assert response.json()["message"] == FALLBACK_MESSAGE
    assert "AI stream interrupted" in response.json()["error"]


def test_chat_stream_connection_drop_mid_reply(test_ctx, monkeypatch) -> None:
    first = 'data: {"candidates": [{"content": {"parts": [{"text": "Markets "}]}}]}'
    monkeypatch.setattr(
        routes.chat_service,
        "client",
        _dropping_gemini(first, requests.exceptions.ChunkedEncodingError("connection dropped")),
    )

    response = test_ctx["client"].post("/api/functions/stock-chat", json={"message": "hi", "stream": True})
    events = [line[len("data: "):] for line in response.text.split("\n\n") if line]

    assert response.status_code == 200
    assert json.loads(events[0]) == {"content": "Markets "}
    error_event = json.loads(events[1])
    assert "AI stream interrupted" in error_event["error"]
    assert error_event["content"] == FALLBACK_MESSAGE
    assert events[-1] == "[DONE]"
