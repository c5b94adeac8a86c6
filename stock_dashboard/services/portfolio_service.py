from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_dashboard.models.schemas import HoldingCreate, WatchlistCreate
from stock_dashboard.models.tables import PortfolioHolding, WatchlistEntry

logger = logging.getLogger(__name__)


class PortfolioService:
    def list_holdings(self, db: Session, user_id: str) -> list[PortfolioHolding]:
        return db.execute(
            select(PortfolioHolding)
            .where(PortfolioHolding.user_id == user_id)
            .order_by(PortfolioHolding.created_at.desc(), PortfolioHolding.id.desc())
        ).scalars().all()

    def add_holding(self, db: Session, user_id: str, payload: HoldingCreate) -> PortfolioHolding:
        row = PortfolioHolding(
            user_id=user_id,
            symbol=payload.symbol,
            name=payload.name or payload.symbol,
            shares=payload.shares,
            avg_price=payload.avg_price,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        logger.info("Holding added", extra={"user_id": user_id, "symbol": row.symbol, "holding_id": row.id})
        return row

    def delete_holding(self, db: Session, user_id: str, holding_id: int) -> bool:
        row = db.execute(
            select(PortfolioHolding).where(PortfolioHolding.id == holding_id, PortfolioHolding.user_id == user_id)
        ).scalar_one_or_none()
        if row is None:
            return False
        db.delete(row)
        db.commit()
        logger.info("Holding removed", extra={"user_id": user_id, "holding_id": holding_id})
        return True

    def list_watchlist(self, db: Session, user_id: str) -> list[WatchlistEntry]:
        return db.execute(
            select(WatchlistEntry)
            .where(WatchlistEntry.user_id == user_id)
            .order_by(WatchlistEntry.created_at.desc(), WatchlistEntry.id.desc())
        ).scalars().all()

    def add_to_watchlist(self, db: Session, user_id: str, payload: WatchlistCreate) -> WatchlistEntry:
        row = WatchlistEntry(user_id=user_id, symbol=payload.symbol, name=payload.name or payload.symbol)
        db.add(row)
        db.commit()
        db.refresh(row)
        logger.info("Watchlist entry added", extra={"user_id": user_id, "symbol": row.symbol})
        return row

    def remove_from_watchlist(self, db: Session, user_id: str, entry_id: int) -> bool:
        row = db.execute(
            select(WatchlistEntry).where(WatchlistEntry.id == entry_id, WatchlistEntry.user_id == user_id)
        ).scalar_one_or_none()
        if row is None:
            return False
        db.delete(row)
        db.commit()
        logger.info("Watchlist entry removed", extra={"user_id": user_id, "entry_id": entry_id})
        return True
