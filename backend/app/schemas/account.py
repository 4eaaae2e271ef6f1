"""
Account and transaction-list Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from app.models.account import AccountType


class AccountBase(BaseModel):
    """Base account schema."""
    name: str = Field(..., min_length=1, max_length=100)
    account_type: AccountType = AccountType.checking
    currency: str = Field("USD", min_length=3, max_length=3)
    initial_balance: Decimal = Decimal("0.00")
    initial_balance_date: date


class AccountCreate(AccountBase):
    """Schema for creating an account."""
    pass


class AccountResponse(AccountBase):
    """Schema for account response."""
    id: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AccountList(BaseModel):
    """Schema for listing accounts."""
    items: list[AccountResponse]
    total: int


class BalanceResponse(BaseModel):
    account_id: Optional[str] = None
    date: date
    balance: Decimal


class TransactionListItemResponse(BaseModel):
    id: str
    type: str
    date: date
    description: str
    amount: Decimal
    currency: str
    account_id: str
    created_at: Optional[datetime] = None
    instance_date: Optional[date] = None
    is_modified: bool
    is_transfer: bool
    transfer_id: Optional[str] = None
    transfer_direction: Optional[str] = None
    recurring_transaction_id: Optional[str] = None
    recurring_transfer_id: Optional[str] = None
    is_projected: bool
    running_balance: Decimal

    class Config:
        from_attributes = True


class DailyBalanceResponse(BaseModel):
    date: date
    starting_balance: Decimal
    ending_balance: Decimal
    day_total: Decimal
    item_count: int

    class Config:
        from_attributes = True


class TransactionListSummaryResponse(BaseModel):
    transaction_count: int
    recurring_count: int
    actual_total: Decimal
    projected_total: Decimal
    total_amount: Decimal
    total_income: Decimal
    total_expenses: Decimal
    ending_balance: Decimal

    class Config:
        from_attributes = True


class TransactionListResponse(BaseModel):
    """Realized and projected items for a date window, newest first."""
    account_id: Optional[str] = None
    account_name: Optional[str] = None
    start_date: date
    end_date: date
    currency: str
    starting_balance: Decimal
    items: List[TransactionListItemResponse]
    daily_balances: List[DailyBalanceResponse]
    summary: TransactionListSummaryResponse

    class Config:
        from_attributes = True
