from __future__ import annotations

import logging

import requests

from stock_dashboard.errors import NotConfiguredError, RateLimitedError, UpstreamError, UpstreamPayloadError

logger = logging.getLogger(__name__)

PROVIDER = "whisper"


class WhisperClient:
    URL = "https://api.openai.com/v1/audio/transcriptions"

    def __init__(
        self,
        api_key: str,
        model: str = "whisper-1",
        timeout: float = 60.0,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.session = session or requests.Session()

    def transcribe(self, audio: bytes, filename: str = "audio.webm", content_type: str = "audio/webm") -> str:
        if not self.api_key:
            raise NotConfiguredError("TRANSCRIPTION_API_KEY")

        try:
            response = self.session.post(
                self.URL,
                headers={"Authorization": f"Bearer {self.api_key}"},
                files={"file": (filename, audio, content_type)},
                data={"model": self.model},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise UpstreamError(PROVIDER, f"Transcription request failed: {exc}") from exc

        if response.status_code == 429:
            raise RateLimitedError(PROVIDER, "Transcription rate limit reached", status_code=429)
        if not response.ok:
            logger.error("Transcription API error", extra={"status": response.status_code, "body": response.text[:500]})
            raise UpstreamError(
                PROVIDER,
                f"Transcription failed: {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return str(response.json().get("text", ""))
        except ValueError as exc:
            raise UpstreamPayloadError(PROVIDER, "Malformed transcription payload") from exc
