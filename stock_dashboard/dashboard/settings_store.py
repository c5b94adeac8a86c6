from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

Theme = Literal["light", "dark", "system"]


class UserPreferences(BaseModel):
    theme: Theme = "system"
    onboarding_seen: bool = False
    practice_mode: bool = False


class SettingsStore:
    """User preferences with an explicit persistence boundary.

    With a ``path`` every change is written through to a JSON file; without one the
    store lives in memory only. Components receive the store instead of reading
    any global state.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path else None
        self._prefs = self._load()

    def _load(self) -> UserPreferences:
        if self.path is None or not self.path.exists():
            return UserPreferences()
        try:
            return UserPreferences.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            logger.warning("Ignoring unreadable preferences file", extra={"path": str(self.path), "error": str(exc)})
            return UserPreferences()

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self._prefs.model_dump_json(indent=2), encoding="utf-8")

    def _update(self, **changes) -> None:
        self._prefs = UserPreferences(**{**self._prefs.model_dump(), **changes})
        self._save()

    @property
    def preferences(self) -> UserPreferences:
        return self._prefs

    @property
    def practice_mode(self) -> bool:
        return self._prefs.practice_mode

    @property
    def theme(self) -> Theme:
        return self._prefs.theme

    @property
    def onboarding_seen(self) -> bool:
        return self._prefs.onboarding_seen

    def set_practice_mode(self, enabled: bool) -> None:
        self._update(practice_mode=bool(enabled))
        logger.info("Practice mode changed", extra={"practice_mode": bool(enabled)})

    def toggle_practice_mode(self) -> bool:
        self.set_practice_mode(not self.practice_mode)
        return self.practice_mode

    def set_theme(self, theme: Theme) -> None:
        self._update(theme=theme)

    def mark_onboarding_seen(self) -> None:
        self._update(onboarding_seen=True)
