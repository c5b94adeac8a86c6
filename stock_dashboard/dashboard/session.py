from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Session:
    user_id: str
    email: str | None = None
    access_token: str | None = None

    def headers(self) -> dict[str, str]:
        out = {"X-User-Id": self.user_id}
        if self.access_token:
            out["Authorization"] = f"Bearer {self.access_token}"
        return out
