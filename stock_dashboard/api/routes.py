from __future__ import annotations

import json
import logging
from collections.abc import Iterator

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse

from stock_dashboard.api.dependencies import require_api_key
from stock_dashboard.errors import NotConfiguredError, RateLimitedError, UpstreamError, ValidationError
from stock_dashboard.models.schemas import (
    ChatRequest,
    ChatResponse,
    HistoricalRequest,
    HistoricalResponse,
    PredictionRequest,
    PredictionResponse,
    QuoteRequest,
    QuoteResponse,
    SearchResponse,
    TranscriptionRequest,
    TranscriptionResponse,
)
from stock_dashboard.services.chat_service import FALLBACK_MESSAGE, ChatService
from stock_dashboard.services.history_service import HistoryService
from stock_dashboard.services.prediction_service import PredictionService, unavailable_insights
from stock_dashboard.services.quote_service import QuoteService
from stock_dashboard.services.transcription_service import AudioTooLargeError, TranscriptionService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["stock-dashboard"])
functions = APIRouter(prefix="/api/functions", tags=["functions"], dependencies=[Depends(require_api_key)])

quote_service = QuoteService()
history_service = HistoryService()
prediction_service = PredictionService()
chat_service = ChatService()
transcription_service = TranscriptionService()

AI_NOT_CONFIGURED = "AI service not configured"
SSE_DONE = "data: [DONE]\n\n"


def _error_status(exc: Exception, default: int = 500) -> int:
    if isinstance(exc, RateLimitedError) and exc.status_code in (402, 429):
        return exc.status_code
    return default


def _error_message(exc: Exception) -> str:
    if isinstance(exc, NotConfiguredError) and exc.setting == "GEMINI_API_KEY":
        return AI_NOT_CONFIGURED
    return str(exc)


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@functions.post("/fetch-stock-data")
def fetch_stock_data(payload: QuoteRequest):
    try:
        if payload.search is not None:
            results = quote_service.search(payload.search, limit=payload.limit)
            return SearchResponse(search_results=results).model_dump(by_alias=True)
        return QuoteResponse(**quote_service.fetch_quotes(payload.symbols)).model_dump(by_alias=True)
    except (NotConfiguredError, UpstreamError, ValidationError) as exc:
        logger.exception("fetch-stock-data failed", extra={"error": str(exc)})
        return JSONResponse(status_code=400, content={"error": str(exc), "details": type(exc).__name__})


@functions.post("/fetch-historical-data", response_model=HistoricalResponse)
def fetch_historical_data(payload: HistoricalRequest):
    try:
        return HistoricalResponse(**history_service.fetch(payload.symbol, payload.time_range))
    except (NotConfiguredError, UpstreamError, ValueError) as exc:
        logger.exception("fetch-historical-data failed", extra={"symbol": payload.symbol, "error": str(exc)})
        return JSONResponse(status_code=400, content={"error": str(exc)})


@functions.post(
    "/stock-ai-prediction",
    response_model=PredictionResponse,
    response_model_exclude_none=True,
)
def stock_ai_prediction(payload: PredictionRequest):
    quote = payload.model_dump(by_alias=True)
    try:
        return PredictionResponse(**prediction_service.predict(quote))
    except (NotConfiguredError, UpstreamError, ValueError) as exc:
        logger.exception("stock-ai-prediction failed", extra={"symbol": payload.symbol, "error": str(exc)})
        return JSONResponse(status_code=_error_status(exc), content=unavailable_insights(_error_message(exc)))


def _sse(chunk: str) -> str:
    return f"data: {json.dumps({'content': chunk})}\n\n"


def _stream_events(first: str | None, rest: Iterator[str]) -> Iterator[str]:
    """SSE frames for a chat reply whose first chunk was already pulled by the route.

    A failure after the response has started becomes an error frame carrying the
    fallback text, and the stream always ends with ``[DONE]``.
    """
    if first is not None:
        yield _sse(first)
    try:
        for chunk in rest:
            yield _sse(chunk)
    except (UpstreamError, ValueError) as exc:
        logger.exception("stock-chat stream interrupted", extra={"error": str(exc)})
        yield f"data: {json.dumps({'error': str(exc), 'content': FALLBACK_MESSAGE})}\n\n"
    yield SSE_DONE


@functions.post("/stock-chat", response_model=ChatResponse, response_model_exclude_none=True)
def stock_chat(payload: ChatRequest):
    history = [turn.model_dump() for turn in payload.conversation_history]
    try:
        if payload.stream:
            chunks = chat_service.stream_reply(payload.message, history)
            first = next(chunks, None)
            return StreamingResponse(_stream_events(first, chunks), media_type="text/event-stream")
        return ChatResponse(message=chat_service.reply(payload.message, history))
    except (NotConfiguredError, UpstreamError, ValueError) as exc:
        logger.exception("stock-chat failed", extra={"error": str(exc)})
        return JSONResponse(
            status_code=_error_status(exc),
            content={"error": _error_message(exc), "message": FALLBACK_MESSAGE},
        )


@functions.post("/voice-to-text", response_model=TranscriptionResponse)
def voice_to_text(payload: TranscriptionRequest):
    try:
        return TranscriptionResponse(text=transcription_service.transcribe(payload.audio))
    except AudioTooLargeError as exc:
        return JSONResponse(status_code=413, content={"error": str(exc)})
    except ValidationError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})
    except (NotConfiguredError, UpstreamError) as exc:
        logger.exception("voice-to-text failed", extra={"error": str(exc)})
        return JSONResponse(status_code=_error_status(exc), content={"error": str(exc)})
