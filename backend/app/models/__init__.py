"""
Database models package.
"""

from app.models.account import Account, AccountType
from app.models.transaction import Transaction, TransferDirection
from app.models.recurring import (
    BudgetScope,
    ExceptionType,
    Frequency,
    RecurringTransaction,
    RecurringTransactionException,
)
from app.models.recurring_transfer import RecurringTransfer, RecurringTransferException
from app.models.reconciliation import (
    ConfidenceLevel,
    MatchStatus,
    ReconciliationMatch,
    confidence_level_for,
)
from app.models.app_settings import AppSettings, get_or_create_app_settings

__all__ = [
    "Account",
    "AccountType",
    "Transaction",
    "TransferDirection",
    "BudgetScope",
    "ExceptionType",
    "Frequency",
    "RecurringTransaction",
    "RecurringTransactionException",
    "RecurringTransfer",
    "RecurringTransferException",
    "ConfidenceLevel",
    "MatchStatus",
    "ReconciliationMatch",
    "confidence_level_for",
    "AppSettings",
    "get_or_create_app_settings",
]
