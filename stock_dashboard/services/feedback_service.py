from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from stock_dashboard.models.schemas import FeedbackCreate
from stock_dashboard.models.tables import Feedback

logger = logging.getLogger(__name__)


class FeedbackService:
    def submit(self, db: Session, user_id: str, payload: FeedbackCreate) -> Feedback:
        row = Feedback(
            user_id=user_id,
            email=payload.email,
            subject=payload.subject.strip(),
            description=payload.description.strip(),
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        logger.info("Feedback submitted", extra={"user_id": user_id, "feedback_id": row.id})
        return row
