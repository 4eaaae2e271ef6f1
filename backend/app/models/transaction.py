"""
Transaction database model.
"""

import uuid
from datetime import datetime, date as date_type
from sqlalchemy import Column, String, Boolean, DateTime, Date, Numeric, Text, ForeignKey, Index, Enum
from sqlalchemy.orm import relationship
import enum
from app.database import Base


class TransferDirection(str, enum.Enum):
    """Which leg of a transfer a transaction is."""
    source = "source"
    destination = "destination"


class Transaction(Base):
    """Realized ledger entry."""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    hash = Column(String(64), unique=True, nullable=True, index=True)  # Import deduplication
    date = Column(Date, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)  # Negative = expense, positive = income
    currency = Column(String(3), default="USD", nullable=False)
    description = Column(Text, nullable=False)
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False)
    is_imported = Column(Boolean, default=False, nullable=False)

    # Realized-from-recurring marker
    recurring_transaction_id = Column(String(36), ForeignKey("recurring_transactions.id"), nullable=True)
    recurring_instance_date = Column(Date, nullable=True)

    # Transfer pairing
    transfer_id = Column(String(36), nullable=True, index=True)
    transfer_direction = Column(Enum(TransferDirection), nullable=True)
    recurring_transfer_id = Column(String(36), ForeignKey("recurring_transfers.id"), nullable=True)
    recurring_transfer_instance_date = Column(Date, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    account = relationship("Account", back_populates="transactions")

    # Indexes for common queries
    __table_args__ = (
        Index("idx_transaction_date_account", "date", "account_id"),
        Index("idx_transaction_recurring_instance", "recurring_transaction_id", "recurring_instance_date"),
        Index("idx_transaction_recurring_transfer_instance", "recurring_transfer_id", "recurring_transfer_instance_date"),
    )

    @property
    def is_transfer(self) -> bool:
        return self.transfer_id is not None

    def link_to_recurring_instance(self, recurring_transaction_id: str, instance_date: date_type) -> None:
        self.recurring_transaction_id = recurring_transaction_id
        self.recurring_instance_date = instance_date
