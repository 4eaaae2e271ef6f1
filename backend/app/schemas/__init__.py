"""
Pydantic schemas package.
"""

from app.schemas.account import (
    AccountBase,
    AccountCreate,
    AccountResponse,
    AccountList,
    BalanceResponse,
    TransactionListResponse,
)
from app.schemas.transaction import (
    TransactionResponse,
    TransferCreate,
    TransferResponse,
    ImportRequest,
    ImportResponse,
)
from app.schemas.recurring import (
    RecurringTransactionCreate,
    RecurringTransactionResponse,
    RecurringTransferCreate,
    RecurringTransferResponse,
    RecurringUpdate,
    SeriesInstanceResponse,
    ProjectionResponse,
)
from app.schemas.reconciliation import (
    FindMatchesRequest,
    FindMatchesResponse,
    MatchResponse,
    ReconciliationStatusResponse,
)
from app.schemas.settings import AppSettingsResponse, AppSettingsUpdate

__all__ = [
    "AccountBase",
    "AccountCreate",
    "AccountResponse",
    "AccountList",
    "BalanceResponse",
    "TransactionListResponse",
    "TransactionResponse",
    "TransferCreate",
    "TransferResponse",
    "ImportRequest",
    "ImportResponse",
    "RecurringTransactionCreate",
    "RecurringTransactionResponse",
    "RecurringTransferCreate",
    "RecurringTransferResponse",
    "RecurringUpdate",
    "SeriesInstanceResponse",
    "ProjectionResponse",
    "FindMatchesRequest",
    "FindMatchesResponse",
    "MatchResponse",
    "ReconciliationStatusResponse",
    "AppSettingsResponse",
    "AppSettingsUpdate",
]
