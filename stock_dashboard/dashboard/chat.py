from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from datetime import datetime

from stock_dashboard.dashboard.backend import BackendClient
from stock_dashboard.errors import BackendError
from stock_dashboard.utils.time import utc_now

logger = logging.getLogger(__name__)

GREETING = (
    "Hi! I'm your AI Stock Assistant. Ask me anything about stocks, market trends, "
    "or investment strategies!"
)
FALLBACK_REPLY = "I apologize, but I encountered an error. Please try again."


@dataclass
class ChatMessage:
    role: str
    content: str
    timestamp: datetime = field(default_factory=utc_now)

    def as_turn(self) -> dict:
        return {"role": self.role, "content": self.content}


class ChatSession:
    """In-memory conversation with the stock assistant.

    The greeting is shown to the user but never sent back as history.
    """

    def __init__(self, backend: BackendClient) -> None:
        self.backend = backend
        self.messages: list[ChatMessage] = [ChatMessage("assistant", GREETING)]
        self.is_loading = False
        self.error: str | None = None

    def history(self) -> list[dict]:
        return [message.as_turn() for message in self.messages[1:]]

    def _begin(self, text: str) -> tuple[list[dict], str] | None:
        content = text.strip()
        if not content or self.is_loading:
            return None
        history = self.history()
        self.messages.append(ChatMessage("user", content))
        self.is_loading = True
        self.error = None
        return history, content

    async def send(self, text: str) -> ChatMessage | None:
        started = self._begin(text)
        if started is None:
            return None
        history, content = started
        try:
            data = await self.backend.invoke("stock-chat", {"message": content, "conversationHistory": history})
            reply = data.get("message") or FALLBACK_REPLY
        except BackendError as exc:
            logger.warning("Chat request failed", extra={"error": str(exc)})
            self.error = str(exc)
            reply = exc.payload.get("message") or FALLBACK_REPLY
        finally:
            self.is_loading = False
        message = ChatMessage("assistant", reply)
        self.messages.append(message)
        return message

    async def send_streaming(self, text: str) -> ChatMessage | None:
        """Like ``send`` but grows the assistant message chunk by chunk."""
        started = self._begin(text)
        if started is None:
            return None
        history, content = started
        message = ChatMessage("assistant", "")
        self.messages.append(message)
        try:
            async for chunk in self.backend.stream(
                "stock-chat", {"message": content, "conversationHistory": history}
            ):
                message.content += chunk
        except BackendError as exc:
            logger.warning("Chat stream failed", extra={"error": str(exc)})
            self.error = str(exc)
            if not message.content:
                message.content = exc.payload.get("message") or exc.payload.get("content") or FALLBACK_REPLY
        finally:
            self.is_loading = False
        if not message.content:
            message.content = FALLBACK_REPLY
        return message

    async def transcribe(self, audio: bytes) -> str:
        encoded = base64.b64encode(audio).decode("ascii")
        data = await self.backend.invoke("voice-to-text", {"audio": encoded})
        return str(data.get("text") or "").strip()

    async def send_voice(self, audio: bytes) -> ChatMessage | None:
        try:
            text = await self.transcribe(audio)
        except BackendError as exc:
            logger.warning("Voice transcription failed", extra={"error": str(exc)})
            self.error = "Failed to process voice input. Please try again."
            return None
        if not text:
            self.error = "No speech detected. Please try again."
            return None
        return await self.send(text)

    def clear(self) -> None:
        self.messages = [ChatMessage("assistant", GREETING)]
        self.error = None
