from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any


class TTLCache:
    def __init__(self, ttl_seconds: float = 60, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._data: dict[str, tuple[Any, float]] = {}

    def get(self, key: str) -> Any | None:
        record = self._data.get(key)
        if not record:
            return None
        value, expiry = record
        if self._clock() > expiry:
            self._data.pop(key, None)
            return None
        return value

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        if self.ttl_seconds <= 0 and ttl_seconds is None:
            return
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        self._data[key] = (value, self._clock() + ttl)

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)
