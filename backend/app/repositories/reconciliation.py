"""Repository for reconciliation matches."""

import calendar
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from app.models.reconciliation import MatchStatus, ReconciliationMatch


class ReconciliationMatchRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, match_id: str) -> Optional[ReconciliationMatch]:
        return self.db.query(ReconciliationMatch).filter(ReconciliationMatch.id == match_id).first()

    def get_pending_matches(self) -> List[ReconciliationMatch]:
        return self.db.query(ReconciliationMatch).filter(
            ReconciliationMatch.status == MatchStatus.pending
        ).order_by(ReconciliationMatch.recurring_instance_date, ReconciliationMatch.created_at).all()

    def get_by_period(self, year: int, month: int) -> List[ReconciliationMatch]:
        """Matches whose expected instance date falls in the given month."""
        start = date(year, month, 1)
        end = date(year, month, calendar.monthrange(year, month)[1])
        return self.db.query(ReconciliationMatch).filter(
            ReconciliationMatch.recurring_instance_date >= start,
            ReconciliationMatch.recurring_instance_date <= end,
        ).all()

    def get_by_transaction_id(self, transaction_id: str) -> List[ReconciliationMatch]:
        return self.db.query(ReconciliationMatch).filter(
            ReconciliationMatch.imported_transaction_id == transaction_id
        ).order_by(ReconciliationMatch.confidence_score.desc()).all()

    def get_by_recurring_transaction(self, series_id: str, start: date, end: date) -> List[ReconciliationMatch]:
        return self.db.query(ReconciliationMatch).filter(
            ReconciliationMatch.recurring_transaction_id == series_id,
            ReconciliationMatch.recurring_instance_date >= start,
            ReconciliationMatch.recurring_instance_date <= end,
        ).order_by(ReconciliationMatch.recurring_instance_date).all()

    def find(self, transaction_id: str, series_id: str, instance_date: date) -> Optional[ReconciliationMatch]:
        return self.db.query(ReconciliationMatch).filter(
            ReconciliationMatch.imported_transaction_id == transaction_id,
            ReconciliationMatch.recurring_transaction_id == series_id,
            ReconciliationMatch.recurring_instance_date == instance_date,
        ).first()

    def exists(self, transaction_id: str, series_id: str, instance_date: date) -> bool:
        return self.find(transaction_id, series_id, instance_date) is not None

    def add(self, match: ReconciliationMatch) -> None:
        self.db.add(match)
