from __future__ import annotations

import json
import logging
from collections.abc import Iterator

import requests

from stock_dashboard.errors import NotConfiguredError, RateLimitedError, UpstreamError, UpstreamPayloadError

logger = logging.getLogger(__name__)

PROVIDER = "gemini"
RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again in a moment."
CREDITS_MESSAGE = "AI credits depleted. Please add credits to continue."


def extract_text(payload: dict) -> str:
    candidates = payload.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text") or "" for part in parts)


class GeminiClient:
    BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

    def __init__(self, api_key: str, timeout: float = 30.0, session: requests.Session | None = None) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, model: str, method: str, contents: list[dict], temperature: float, max_output_tokens: int, stream: bool = False):
        if not self.api_key:
            raise NotConfiguredError("GEMINI_API_KEY")

        url = f"{self.BASE_URL}/{model}:{method}"
        params = {"alt": "sse"} if stream else None
        body = {
            "contents": contents,
            "generationConfig": {"temperature": temperature, "maxOutputTokens": max_output_tokens},
        }
        try:
            response = self.session.post(
                url,
                params=params,
                json=body,
                headers={"x-goog-api-key": self.api_key},
                timeout=self.timeout,
                stream=stream,
            )
        except requests.RequestException as exc:
            raise UpstreamError(PROVIDER, f"AI API request failed: {exc}") from exc

        if not response.ok:
            logger.error("AI API error", extra={"status": response.status_code, "body": response.text[:500]})
            if response.status_code == 429:
                raise RateLimitedError(PROVIDER, RATE_LIMIT_MESSAGE, status_code=429)
            if response.status_code == 402:
                raise RateLimitedError(PROVIDER, CREDITS_MESSAGE, status_code=402)
            raise UpstreamError(
                PROVIDER,
                f"AI API responded with status {response.status_code}",
                status_code=response.status_code,
            )
        return response

    def generate(
        self,
        model: str,
        contents: list[dict],
        temperature: float = 0.7,
        max_output_tokens: int = 1024,
    ) -> str:
        response = self._post(model, "generateContent", contents, temperature, max_output_tokens)
        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamPayloadError(PROVIDER, "Malformed AI payload") from exc
        return extract_text(payload)

    def stream_generate(
        self,
        model: str,
        contents: list[dict],
        temperature: float = 0.7,
        max_output_tokens: int = 1024,
    ) -> Iterator[str]:
        response = self._post(model, "streamGenerateContent", contents, temperature, max_output_tokens, stream=True)
        with response:
            try:
                for line in response.iter_lines(decode_unicode=True):
                    if not line or not line.startswith("data:"):
                        continue
                    raw = line[len("data:"):].strip()
                    try:
                        chunk = extract_text(json.loads(raw))
                    except ValueError:
                        logger.warning("Skipping malformed AI stream chunk", extra={"chunk": raw[:200]})
                        continue
                    if chunk:
                        yield chunk
            except requests.RequestException as exc:
                raise UpstreamError(PROVIDER, f"AI stream interrupted: {exc}") from exc
