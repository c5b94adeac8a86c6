from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from stock_dashboard.api.dependencies import current_user_id, require_api_key
from stock_dashboard.models.db import get_db_session
from stock_dashboard.models.schemas import (
    FeedbackCreate,
    FeedbackItem,
    HoldingCreate,
    HoldingItem,
    WatchlistCreate,
    WatchlistItem,
)
from stock_dashboard.services.feedback_service import FeedbackService
from stock_dashboard.services.portfolio_service import PortfolioService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["portfolio"], dependencies=[Depends(require_api_key)])

portfolio_service = PortfolioService()
feedback_service = FeedbackService()


@router.get("/portfolio/holdings", response_model=list[HoldingItem])
def list_holdings(user_id: str = Depends(current_user_id), db: Session = Depends(get_db_session)):
    return portfolio_service.list_holdings(db, user_id)


@router.post("/portfolio/holdings", response_model=HoldingItem, status_code=201)
def add_holding(
    payload: HoldingCreate,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db_session),
):
    return portfolio_service.add_holding(db, user_id, payload)


@router.delete("/portfolio/holdings/{holding_id}")
def delete_holding(
    holding_id: int,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db_session),
) -> dict:
    if not portfolio_service.delete_holding(db, user_id, holding_id):
        raise HTTPException(status_code=404, detail=f"Holding {holding_id} not found")
    return {"ok": True}


@router.get("/watchlist", response_model=list[WatchlistItem])
def list_watchlist(user_id: str = Depends(current_user_id), db: Session = Depends(get_db_session)):
    return portfolio_service.list_watchlist(db, user_id)


@router.post("/watchlist", response_model=WatchlistItem, status_code=201)
def add_to_watchlist(
    payload: WatchlistCreate,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db_session),
):
    return portfolio_service.add_to_watchlist(db, user_id, payload)


@router.delete("/watchlist/{entry_id}")
def remove_from_watchlist(
    entry_id: int,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db_session),
) -> dict:
    if not portfolio_service.remove_from_watchlist(db, user_id, entry_id):
        raise HTTPException(status_code=404, detail=f"Watchlist entry {entry_id} not found")
    return {"ok": True}


@router.post("/feedback", response_model=FeedbackItem, status_code=201)
def submit_feedback(
    payload: FeedbackCreate,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db_session),
):
    return feedback_service.submit(db, user_id, payload)
