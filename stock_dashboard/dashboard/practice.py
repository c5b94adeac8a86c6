from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime

import numpy as np

from stock_dashboard.dashboard.catalog import StockRow
from stock_dashboard.dashboard.settings_store import SettingsStore
from stock_dashboard.dashboard.tasks import TaskScope, poll_forever
from stock_dashboard.utils.time import utc_now

logger = logging.getLogger(__name__)

MAX_STEP_PERCENT = 2.0


def walk_row(row: StockRow, step_percent: float) -> StockRow:
    # Change fields accumulate across ticks and are never re-based; price has no floor.
    delta = row.price * (step_percent / 100)
    return replace(
        row,
        price=round(row.price + delta, 2),
        change=round(row.change + delta, 2),
        change_percent=round(row.change_percent + step_percent, 2),
    )


class PracticeSimulator:
    def __init__(
        self,
        rows: list[StockRow] | None = None,
        settings_store: SettingsStore | None = None,
        tick_seconds: float = 5,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.rows: list[StockRow] = list(rows or [])
        self.settings_store = settings_store
        self.tick_seconds = tick_seconds
        self.rng = rng or np.random.default_rng()
        self.last_update: datetime = utc_now()
        self._scope = TaskScope("practice")

    @property
    def enabled(self) -> bool:
        return self.settings_store is None or self.settings_store.practice_mode

    def load(self, rows: list[StockRow]) -> None:
        self.rows = list(rows)

    def tick(self) -> list[StockRow]:
        if not self.enabled:
            return self.rows
        self.rows = [
            walk_row(row, float(self.rng.uniform(-MAX_STEP_PERCENT, MAX_STEP_PERCENT)))
            for row in self.rows
        ]
        self.last_update = utc_now()
        return self.rows

    async def _tick(self) -> None:
        self.tick()

    async def __aenter__(self) -> PracticeSimulator:
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def start(self) -> None:
        self._scope.spawn(poll_forever(self._tick, self.tick_seconds, "practice"), name="tick")

    async def aclose(self) -> None:
        await self._scope.aclose()
