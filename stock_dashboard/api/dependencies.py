from __future__ import annotations

import hmac

from fastapi import Depends, Header, HTTPException

from stock_dashboard.config import Settings, get_settings


def require_api_key(
    apikey: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    if not settings.backend_public_key:
        return
    if not apikey or not hmac.compare_digest(apikey, settings.backend_public_key):
        raise HTTPException(status_code=401, detail="Invalid or missing apikey header")


def current_user_id(x_user_id: str | None = Header(default=None, alias="X-User-Id")) -> str:
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Authenticated session required")
    return user_id
