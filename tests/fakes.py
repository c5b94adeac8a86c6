from __future__ import annotations

import json

import requests


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str | None = None, lines: list[str] | None = None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)
        self._lines = lines or []

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload

    def raise_for_status(self) -> None:
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} error")

    def iter_lines(self, decode_unicode: bool = False):
        for line in self._lines:
            if isinstance(line, Exception):
                raise line
            yield line

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


class FakeSession:
    """Stands in for ``requests.Session``; replies are served in order."""

    def __init__(self, *responses: FakeResponse):
        self.responses = list(responses)
        self.calls: list[dict] = []

    def _next(self, method: str, url: str, **kwargs) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url: str, **kwargs) -> FakeResponse:
        return self._next("GET", url, **kwargs)

    def post(self, url: str, **kwargs) -> FakeResponse:
        return self._next("POST", url, **kwargs)


class RecordingHandler:
    """httpx mock transport handler routing on request path."""

    def __init__(self, routes: dict):
        self.routes = routes
        self.requests: list = []

    def __call__(self, request):
        import httpx

        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, body))
        reply = self.routes.get((request.method, request.url.path))
        if reply is None:
            return httpx.Response(404, json={"detail": "Not Found"})
        if callable(reply):
            return reply(request, body)
        status, payload = reply
        return httpx.Response(status, json=payload)

    def bodies(self, path: str) -> list:
        return [body for _, p, body in self.requests if p == path]


def mock_backend(routes: dict, session=None):
    import httpx

    from stock_dashboard.dashboard.backend import BackendClient

    handler = RecordingHandler(routes)
    backend = BackendClient("http://backend.test", session=session, transport=httpx.MockTransport(handler))
    return backend, handler
