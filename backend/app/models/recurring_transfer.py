"""
Recurring transfer database models.
"""

from sqlalchemy import Column, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.recurring import RecurringScheduleMixin, RecurringExceptionMixin


class RecurringTransfer(RecurringScheduleMixin, Base):
    """Recurring movement of money from a source account to a destination account.

    The amount is stored as a positive magnitude; each realized occurrence
    becomes a negative source leg and a positive destination leg.
    """

    __tablename__ = "recurring_transfers"

    source_account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    destination_account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)

    # Relationships
    source_account = relationship("Account", foreign_keys=[source_account_id])
    destination_account = relationship("Account", foreign_keys=[destination_account_id])
    exceptions = relationship(
        "RecurringTransferException",
        back_populates="recurring_transfer",
        cascade="all, delete-orphan",
    )

    def touches_account(self, account_id: str) -> bool:
        return account_id in (self.source_account_id, self.destination_account_id)


class RecurringTransferException(RecurringExceptionMixin, Base):
    """Skipped or modified occurrence of a recurring transfer."""

    __tablename__ = "recurring_transfer_exceptions"

    recurring_transfer_id = Column(
        String(36), ForeignKey("recurring_transfers.id"), nullable=False, index=True
    )

    recurring_transfer = relationship("RecurringTransfer", back_populates="exceptions")

    __table_args__ = (
        UniqueConstraint("recurring_transfer_id", "original_date", name="uq_recurring_transfer_exception_date"),
    )

    @property
    def series_id(self) -> str:
        return self.recurring_transfer_id
