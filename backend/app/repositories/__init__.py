"""
Session-backed repositories used by the service layer.
"""

from app.repositories.accounts import AccountRepository
from app.repositories.transactions import TransactionRepository
from app.repositories.recurring import RecurringTransactionRepository, RecurringTransferRepository
from app.repositories.reconciliation import ReconciliationMatchRepository

__all__ = [
    "AccountRepository",
    "TransactionRepository",
    "RecurringTransactionRepository",
    "RecurringTransferRepository",
    "ReconciliationMatchRepository",
]
