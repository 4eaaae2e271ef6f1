"""
Recurring transaction database models.
"""

import uuid
from datetime import datetime, date, timedelta
from typing import List, Optional
from sqlalchemy import (
    Column, String, Boolean, DateTime, Date, Numeric, Enum, ForeignKey, Integer, Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship
import enum
from app.database import Base


class Frequency(str, enum.Enum):
    """Recurring frequency enumeration."""
    daily = "daily"
    weekly = "weekly"
    biweekly = "biweekly"
    monthly = "monthly"
    quarterly = "quarterly"
    yearly = "yearly"


class ExceptionType(str, enum.Enum):
    """Kind of per-occurrence override."""
    skipped = "skipped"
    modified = "modified"


class BudgetScope(str, enum.Enum):
    """Who a series (and its reconciliation matches) belongs to."""
    shared = "shared"
    personal = "personal"


class RecurringScheduleMixin:
    """Schedule columns and occurrence helpers shared by recurring series."""

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    description = Column(String(255), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), default="USD", nullable=False)
    frequency = Column(Enum(Frequency), nullable=False)
    interval = Column(Integer, default=1, nullable=False)
    day_of_week = Column(Integer, nullable=True)  # 0=Mon..6=Sun
    day_of_month = Column(Integer, nullable=True)
    month_of_year = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    next_occurrence = Column(Date, nullable=True)
    last_generated_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    scope = Column(Enum(BudgetScope), default=BudgetScope.shared, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def pattern(self):
        from app.services.recurrence import RecurrencePattern

        return RecurrencePattern.create(
            self.frequency,
            interval=self.interval or 1,
            day_of_week=self.day_of_week,
            day_of_month=self.day_of_month,
            month_of_year=self.month_of_year,
        )

    def set_pattern(self, pattern) -> None:
        self.frequency = pattern.frequency
        self.interval = pattern.interval
        self.day_of_week = pattern.day_of_week
        self.day_of_month = pattern.day_of_month
        self.month_of_year = pattern.month_of_year

    def occurrences_between(self, from_date: date, to_date: date) -> List[date]:
        """Scheduled dates in [from_date, to_date]; empty while paused."""
        if not self.is_active:
            return []
        return self.pattern.occurrences_between(self.start_date, from_date, to_date, self.end_date)

    def occurs_on(self, day: date) -> bool:
        return self.is_active and self.pattern.occurs_on(self.start_date, day, self.end_date)

    def first_occurrence(self) -> Optional[date]:
        return self.pattern.next_on_or_after(self.start_date, self.start_date, self.end_date)

    def advance_next_occurrence(self) -> None:
        """Move the cursor to the following scheduled date, deactivating past the end date."""
        current = self.next_occurrence or self.first_occurrence()
        self.last_generated_date = current
        following = None
        if current is not None:
            following = self.pattern.next_on_or_after(
                self.start_date, current + timedelta(days=1), self.end_date
            )
        self.next_occurrence = following
        if following is None and self.end_date is not None:
            self.is_active = False

    def pause(self) -> None:
        self.is_active = False

    def resume(self) -> None:
        self.is_active = True


class RecurringExceptionMixin:
    """Per-occurrence override columns."""

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    original_date = Column(Date, nullable=False)
    exception_type = Column(Enum(ExceptionType), nullable=False)
    modified_amount = Column(Numeric(12, 2), nullable=True)
    modified_description = Column(Text, nullable=True)
    modified_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def is_skipped(self) -> bool:
        return self.exception_type == ExceptionType.skipped

    @property
    def is_modified(self) -> bool:
        return self.exception_type == ExceptionType.modified

    @property
    def effective_date(self) -> date:
        return self.modified_date or self.original_date


class RecurringTransaction(RecurringScheduleMixin, Base):
    """Recurring transaction series posting to a single account."""

    __tablename__ = "recurring_transactions"

    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)

    # Relationships
    account = relationship("Account", back_populates="recurring_transactions")
    exceptions = relationship(
        "RecurringTransactionException",
        back_populates="recurring_transaction",
        cascade="all, delete-orphan",
    )


class RecurringTransactionException(RecurringExceptionMixin, Base):
    """Skipped or modified occurrence of a recurring transaction."""

    __tablename__ = "recurring_transaction_exceptions"

    recurring_transaction_id = Column(
        String(36), ForeignKey("recurring_transactions.id"), nullable=False, index=True
    )

    recurring_transaction = relationship("RecurringTransaction", back_populates="exceptions")

    __table_args__ = (
        UniqueConstraint("recurring_transaction_id", "original_date", name="uq_recurring_exception_date"),
    )

    @property
    def series_id(self) -> str:
        return self.recurring_transaction_id
