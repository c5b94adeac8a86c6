from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _get_first_set(*env_names: str) -> str:
    for env_name in env_names:
        value = os.getenv(env_name, "").strip()
        if value:
            return value
    return ""


def _normalize_database_url(raw_url: str) -> str:
    if not raw_url:
        return raw_url
    if raw_url.startswith("postgres://"):
        return raw_url.replace("postgres://", "postgresql+psycopg2://", 1)
    if raw_url.startswith("postgresql://") and "+" not in raw_url.split("://", 1)[0]:
        return raw_url.replace("postgresql://", "postgresql+psycopg2://", 1)
    return raw_url


def _build_database_url() -> str:
    explicit = _get_first_set("DATABASE_URL", "DATABASE_PUBLIC_URL")
    if explicit:
        return _normalize_database_url(explicit)

    # Local dev fallback when DATABASE_URL is not set.
    sqlite_file = Path(os.getenv("SQLITE_DB_PATH", "./stock_dashboard.db")).as_posix()
    if sqlite_file.startswith("/"):
        return f"sqlite:///{sqlite_file}"
    return f"sqlite:///./{sqlite_file.lstrip('./')}"


@dataclass(frozen=True)
class Settings:
    app_name: str = os.getenv("APP_NAME", "stock_dashboard")
    app_debug: bool = os.getenv("APP_DEBUG", "false").lower() == "true"
    app_host: str = os.getenv("APP_HOST", "0.0.0.0")
    app_port: int = int(os.getenv("APP_PORT", "8000"))

    database_url: str = _build_database_url()

    backend_url: str = os.getenv("BACKEND_URL", "http://localhost:8000").rstrip("/")
    backend_public_key: str = os.getenv("BACKEND_PUBLIC_KEY", "").strip()
    site_url: str = os.getenv("SITE_URL", "").strip()

    alpha_vantage_api_key: str = os.getenv("ALPHA_VANTAGE_API_KEY", "").strip()
    finnhub_api_key: str = os.getenv("FINNHUB_API_KEY", "").strip()
    gemini_api_key: str = os.getenv("GEMINI_API_KEY", "").strip()
    gemini_prediction_model: str = os.getenv("GEMINI_PREDICTION_MODEL", "gemini-2.5-flash-lite")
    gemini_chat_model: str = os.getenv("GEMINI_CHAT_MODEL", "gemini-2.0-flash-lite")
    transcription_api_key: str = _get_first_set("TRANSCRIPTION_API_KEY", "OPENAI_API_KEY")
    transcription_model: str = os.getenv("TRANSCRIPTION_MODEL", "whisper-1")

    http_timeout_seconds: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "15"))
    quote_cache_ttl_seconds: int = int(os.getenv("QUOTE_CACHE_TTL_SECONDS", "60"))
    quote_call_spacing_seconds: float = float(os.getenv("QUOTE_CALL_SPACING_SECONDS", "0"))
    history_provider: str = os.getenv("HISTORY_PROVIDER", "").strip().lower()

    stock_refresh_seconds: float = float(os.getenv("STOCK_REFRESH_SECONDS", "300"))
    practice_tick_seconds: float = float(os.getenv("PRACTICE_TICK_SECONDS", "5"))
    search_debounce_seconds: float = float(os.getenv("SEARCH_DEBOUNCE_SECONDS", "0.5"))
    search_result_limit: int = int(os.getenv("SEARCH_RESULT_LIMIT", "20"))
    max_audio_bytes: int = int(os.getenv("MAX_AUDIO_BYTES", str(25 * 1024 * 1024)))

    dashboard_settings_path: str = os.getenv("DASHBOARD_SETTINGS_PATH", "")

    @property
    def resolved_history_provider(self) -> str:
        if self.history_provider in {"finnhub", "yfinance"}:
            return self.history_provider
        return "finnhub" if self.finnhub_api_key else "yfinance"


settings = Settings()


def get_settings() -> Settings:
    return settings
