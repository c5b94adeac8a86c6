from __future__ import annotations

import base64
import binascii
import logging

from stock_dashboard.config import Settings, get_settings
from stock_dashboard.errors import ValidationError
from stock_dashboard.integrations.whisper_client import WhisperClient

logger = logging.getLogger(__name__)


class AudioTooLargeError(ValidationError):
    pass


def decode_audio(encoded: str, max_bytes: int) -> bytes:
    if not encoded:
        raise ValidationError("No audio data provided")
    # Reject before decoding; four base64 characters carry three bytes.
    if (len(encoded) * 3) // 4 > max_bytes + 3:
        raise AudioTooLargeError(f"Audio exceeds {max_bytes} bytes")
    try:
        audio = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Audio must be base64 encoded") from exc
    if len(audio) > max_bytes:
        raise AudioTooLargeError(f"Audio exceeds {max_bytes} bytes")
    return audio


class TranscriptionService:
    def __init__(self, client: WhisperClient | None = None, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.client = client or WhisperClient(
            self.settings.transcription_api_key,
            model=self.settings.transcription_model,
            timeout=self.settings.http_timeout_seconds * 4,
        )

    def transcribe(self, encoded_audio: str) -> str:
        audio = decode_audio(encoded_audio, self.settings.max_audio_bytes)
        logger.info("Transcribing audio", extra={"bytes": len(audio)})
        return self.client.transcribe(audio)
