from __future__ import annotations

import logging
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from stock_dashboard.api import routes, routes_portfolio
from stock_dashboard.config import settings
from stock_dashboard.models.db import init_db

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = FastAPI(
    title=settings.app_name,
    description="Stock dashboard backend: quotes, AI commentary, chat, voice input and portfolio tables",
    version="0.1.0",
    debug=settings.app_debug,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.site_url] if settings.site_url else ["*"],
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type", "x-user-id"],
)


@app.on_event("startup")
def startup_event() -> None:
    max_attempts = 5
    delay_seconds = 3
    last_error: Exception | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            init_db()
            logging.info("Database initialization completed", extra={"attempt": attempt})
            return
        except SQLAlchemyError as exc:
            last_error = exc
            logging.exception(
                "Database initialization failed",
                extra={"attempt": attempt, "max_attempts": max_attempts},
            )
            if attempt < max_attempts:
                time.sleep(delay_seconds)

    raise RuntimeError("Database initialization failed after retries") from last_error


app.include_router(routes.router)
app.include_router(routes.functions)
app.include_router(routes_portfolio.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("stock_dashboard.app:app", host=settings.app_host, port=settings.app_port, reload=settings.app_debug)
