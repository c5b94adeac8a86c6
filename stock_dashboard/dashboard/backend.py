from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator

import httpx

from stock_dashboard.dashboard.session import Session
from stock_dashboard.errors import BackendError

logger = logging.getLogger(__name__)

TABLE_PATHS = {
    "portfolio_holdings": "/api/portfolio/holdings",
    "watchlist": "/api/watchlist",
    "feedback": "/api/feedback",
}


def _payload(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {"data": body}


class BackendClient:
    def __init__(
        self,
        base_url: str,
        session: Session | None = None,
        public_key: str = "",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.session = session
        self.public_key = public_key
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> BackendClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.public_key:
            headers["apikey"] = self.public_key
        if self.session is not None:
            headers.update(self.session.headers())
        return headers

    async def _request(self, method: str, path: str, body: dict | None = None) -> httpx.Response:
        try:
            response = await self._client.request(method, path, json=body, headers=self._headers())
        except httpx.HTTPError as exc:
            raise BackendError(f"Backend unreachable: {exc}") from exc
        if response.is_error:
            payload = _payload(response)
            message = payload.get("error") or payload.get("detail") or f"Backend returned {response.status_code}"
            raise BackendError(str(message), status_code=response.status_code, payload=payload)
        return response

    def _require_session(self) -> None:
        if self.session is None:
            raise BackendError("An authenticated session is required", status_code=401)

    async def invoke(self, function: str, body: dict) -> dict:
        response = await self._request("POST", f"/api/functions/{function}", body)
        return _payload(response)

    async def stream(self, function: str, body: dict) -> AsyncIterator[str]:
        """Yield text chunks from a server-sent event stream until its ``[DONE]`` marker."""
        try:
            async with self._client.stream(
                "POST",
                f"/api/functions/{function}",
                json={**body, "stream": True},
                headers=self._headers(),
            ) as response:
                if response.is_error:
                    await response.aread()
                    payload = _payload(response)
                    raise BackendError(
                        str(payload.get("error") or f"Backend returned {response.status_code}"),
                        status_code=response.status_code,
                        payload=payload,
                    )
                async for line in response.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    raw = line[len("data:"):].strip()
                    if raw == "[DONE]":
                        return
                    try:
                        event = json.loads(raw)
                    except ValueError:
                        logger.warning("Skipping malformed stream event", extra={"event": raw[:200]})
                        continue
                    if event.get("error"):
                        raise BackendError(str(event["error"]), payload=event)
                    if event.get("content"):
                        yield event["content"]
        except httpx.HTTPError as exc:
            raise BackendError(f"Backend unreachable: {exc}") from exc

    async def list_rows(self, table: str) -> list[dict]:
        self._require_session()
        response = await self._request("GET", TABLE_PATHS[table])
        rows = response.json()
        return rows if isinstance(rows, list) else []

    async def insert_row(self, table: str, row: dict) -> dict:
        self._require_session()
        response = await self._request("POST", TABLE_PATHS[table], row)
        return _payload(response)

    async def delete_row(self, table: str, row_id: int) -> None:
        self._require_session()
        await self._request("DELETE", f"{TABLE_PATHS[table]}/{row_id}")
