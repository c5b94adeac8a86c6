from __future__ import annotations


class UpstreamError(RuntimeError):
    """A third-party API could not be reached or answered with a non-2xx status."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class RateLimitedError(UpstreamError):
    pass


class UpstreamPayloadError(UpstreamError):
    pass


class NotConfiguredError(RuntimeError):
    def __init__(self, setting: str) -> None:
        super().__init__(f"{setting} is not configured")
        self.setting = setting


class ValidationError(ValueError):
    pass


class BackendError(RuntimeError):
    """A dashboard call to the backend failed; ``payload`` keeps any fallback body it returned."""

    def __init__(self, message: str, status_code: int | None = None, payload: dict | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}
