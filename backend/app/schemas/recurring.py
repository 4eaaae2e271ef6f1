"""Pydantic schemas for recurring transactions and recurring transfers."""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal

from app.models.recurring import BudgetScope, ExceptionType, Frequency
from app.models.transaction import TransferDirection


class PatternFields(BaseModel):
    frequency: Frequency
    interval: int = Field(1, ge=1)
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    day_of_month: Optional[int] = Field(None, ge=1, le=31)
    month_of_year: Optional[int] = Field(None, ge=1, le=12)


class RecurringTransactionCreate(PatternFields):
    account_id: str
    description: str
    amount: Decimal
    start_date: date
    end_date: Optional[date] = None
    currency: Optional[str] = None
    scope: BudgetScope = BudgetScope.shared


class RecurringTransferCreate(PatternFields):
    source_account_id: str
    destination_account_id: str
    description: str
    amount: Decimal = Field(..., gt=0)
    start_date: date
    end_date: Optional[date] = None
    scope: BudgetScope = BudgetScope.shared


class RecurringUpdate(BaseModel):
    """Fields left out are unchanged."""
    description: Optional[str] = None
    amount: Optional[Decimal] = None
    end_date: Optional[date] = None
    frequency: Optional[Frequency] = None
    interval: Optional[int] = Field(None, ge=1)
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    day_of_month: Optional[int] = Field(None, ge=1, le=31)
    month_of_year: Optional[int] = Field(None, ge=1, le=12)
    scope: Optional[BudgetScope] = None


class UpdateFromDateRequest(RecurringUpdate):
    from_date: date


class RecurringResponseBase(BaseModel):
    id: str
    description: str
    amount: Decimal
    currency: str
    frequency: Frequency
    interval: int
    day_of_week: Optional[int] = None
    day_of_month: Optional[int] = None
    month_of_year: Optional[int] = None
    start_date: date
    end_date: Optional[date] = None
    next_occurrence: Optional[date] = None
    is_active: bool
    scope: BudgetScope
    created_at: datetime

    class Config:
        from_attributes = True


class RecurringTransactionResponse(RecurringResponseBase):
    account_id: str


class RecurringTransferResponse(RecurringResponseBase):
    source_account_id: str
    destination_account_id: str


class SeriesInstanceResponse(BaseModel):
    series_id: str
    instance_date: date
    effective_date: date
    description: str
    amount: Decimal
    is_skipped: bool
    is_modified: bool
    is_realized: bool
    realized_transaction_id: Optional[str] = None

    class Config:
        from_attributes = True


class ProjectedInstanceResponse(BaseModel):
    series_id: str
    instance_date: date
    effective_date: date
    account_id: str
    account_name: str
    description: str
    amount: Decimal
    currency: str
    is_modified: bool
    is_transfer: bool
    transfer_direction: Optional[TransferDirection] = None

    class Config:
        from_attributes = True


class ModifyInstanceRequest(BaseModel):
    amount: Optional[Decimal] = None
    description: Optional[str] = None
    new_date: Optional[date] = None


class RealizeInstanceRequest(BaseModel):
    """Overrides for the realized transaction; anything omitted comes from the series."""
    amount: Optional[Decimal] = None
    description: Optional[str] = None
    actual_date: Optional[date] = None


class ExceptionResponse(BaseModel):
    id: str
    original_date: date
    exception_type: ExceptionType
    modified_amount: Optional[Decimal] = None
    modified_description: Optional[str] = None
    modified_date: Optional[date] = None

    class Config:
        from_attributes = True


class AutoRealizeRequest(BaseModel):
    today: Optional[date] = None
    account_id: Optional[str] = None


class AutoRealizeResponse(BaseModel):
    created_count: int
    from_date: date
    to_date: date


class ProjectionResponse(BaseModel):
    start_date: date
    end_date: date
    instances: List[ProjectedInstanceResponse]
