"""
Reconciliation match database model.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, String, DateTime, Date, Numeric, Integer, Enum, ForeignKey, UniqueConstraint
import enum
from app.database import Base
from app.exceptions import DomainError
from app.models.recurring import BudgetScope

HIGH_CONFIDENCE_THRESHOLD = Decimal("0.85")
MEDIUM_CONFIDENCE_THRESHOLD = Decimal("0.60")


class MatchStatus(str, enum.Enum):
    """Reconciliation match lifecycle."""
    pending = "pending"
    auto_matched = "auto_matched"
    accepted = "accepted"
    rejected = "rejected"


class ConfidenceLevel(str, enum.Enum):
    """Bucketed confidence score."""
    high = "high"
    medium = "medium"
    low = "low"


def confidence_level_for(score: Decimal, high_threshold: Decimal = HIGH_CONFIDENCE_THRESHOLD) -> ConfidenceLevel:
    """High at or above the auto-match threshold in use."""
    if score >= high_threshold:
        return ConfidenceLevel.high
    if score >= MEDIUM_CONFIDENCE_THRESHOLD:
        return ConfidenceLevel.medium
    return ConfidenceLevel.low


class ReconciliationMatch(Base):
    """Scored association between an actual transaction and an expected recurring occurrence."""

    __tablename__ = "reconciliation_matches"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    imported_transaction_id = Column(String(36), ForeignKey("transactions.id"), nullable=False, index=True)
    recurring_transaction_id = Column(String(36), ForeignKey("recurring_transactions.id"), nullable=False, index=True)
    recurring_instance_date = Column(Date, nullable=False, index=True)
    confidence_score = Column(Numeric(5, 4), nullable=False)
    confidence_level = Column(Enum(ConfidenceLevel), nullable=False)
    status = Column(Enum(MatchStatus), default=MatchStatus.pending, nullable=False, index=True)
    amount_variance = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    date_offset_days = Column(Integer, nullable=False, default=0)
    description_similarity = Column(Numeric(5, 4), nullable=True)
    scope = Column(Enum(BudgetScope), default=BudgetScope.shared, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    resolved_at = Column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "imported_transaction_id", "recurring_transaction_id", "recurring_instance_date",
            name="uq_reconciliation_match_instance",
        ),
    )

    @classmethod
    def create(
        cls,
        imported_transaction_id: str,
        recurring_transaction_id: str,
        instance_date,
        confidence_score: Decimal,
        amount_variance: Decimal = Decimal("0.00"),
        date_offset_days: int = 0,
        description_similarity: Decimal = None,
        scope: BudgetScope = BudgetScope.shared,
        high_threshold: Decimal = HIGH_CONFIDENCE_THRESHOLD,
    ) -> "ReconciliationMatch":
        if not 0 <= confidence_score <= 1:
            raise DomainError("Confidence score must be between 0 and 1.")
        return cls(
            id=str(uuid.uuid4()),
            imported_transaction_id=imported_transaction_id,
            recurring_transaction_id=recurring_transaction_id,
            recurring_instance_date=instance_date,
            confidence_score=confidence_score,
            confidence_level=confidence_level_for(confidence_score, high_threshold),
            status=MatchStatus.pending,
            amount_variance=amount_variance,
            date_offset_days=date_offset_days,
            description_similarity=description_similarity,
            scope=scope,
            created_at=datetime.utcnow(),
        )

    @property
    def is_resolved(self) -> bool:
        return self.status in (MatchStatus.accepted, MatchStatus.rejected)

    def _ensure_open(self) -> None:
        if self.is_resolved:
            raise DomainError("Match is already resolved and cannot be modified.")

    def auto_match(self) -> None:
        if self.status != MatchStatus.pending:
            raise DomainError("Only pending matches can be auto-matched.")
        self.status = MatchStatus.auto_matched
        self.resolved_at = datetime.utcnow()

    def accept(self) -> None:
        self._ensure_open()
        self.status = MatchStatus.accepted
        self.resolved_at = datetime.utcnow()

    def reject(self) -> None:
        self._ensure_open()
        self.status = MatchStatus.rejected
        self.resolved_at = datetime.utcnow()
