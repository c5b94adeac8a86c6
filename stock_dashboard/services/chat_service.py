from __future__ import annotations

import logging
from collections.abc import Iterator

from stock_dashboard.config import Settings, get_settings
from stock_dashboard.integrations.gemini_client import GeminiClient

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "I apologize, but I encountered an error. Please try again."
SYSTEM_PROMPT = """You are an expert stock market AI assistant. You help users with:
- Stock analysis and predictions
- Market trends and insights
- Portfolio recommendations
- Technical indicator explanations
- Investment strategies
- General financial advice

Provide clear, concise, and actionable advice. Be professional yet conversational.
Keep responses focused and under 200 words unless detailed analysis is requested."""


def build_contents(message: str, history: list[dict]) -> list[dict]:
    turns = [{"role": "system", "content": SYSTEM_PROMPT}, *history, {"role": "user", "content": message}]
    return [
        {
            "role": "model" if turn.get("role") == "assistant" else "user",
            "parts": [{"text": turn.get("content", "")}],
        }
        for turn in turns
    ]


class ChatService:
    def __init__(self, client: GeminiClient | None = None, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.client = client or GeminiClient(self.settings.gemini_api_key, timeout=self.settings.http_timeout_seconds * 2)

    def reply(self, message: str, history: list[dict]) -> str:
        logger.info("Processing chat message", extra={"history_turns": len(history)})
        return self.client.generate(self.settings.gemini_chat_model, build_contents(message, history))

    def stream_reply(self, message: str, history: list[dict]) -> Iterator[str]:
        logger.info("Streaming chat message", extra={"history_turns": len(history)})
        return self.client.stream_generate(self.settings.gemini_chat_model, build_contents(message, history))
