"""
Transaction, transfer and import schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from decimal import Decimal

from app.models.transaction import TransferDirection


class TransactionResponse(BaseModel):
    id: str
    date: date
    amount: Decimal
    currency: str
    description: str
    account_id: str
    is_imported: bool
    recurring_transaction_id: Optional[str]
    recurring_instance_date: Optional[date]
    transfer_id: Optional[str]
    transfer_direction: Optional[TransferDirection]
    recurring_transfer_id: Optional[str]
    recurring_transfer_instance_date: Optional[date]
    created_at: datetime

    class Config:
        from_attributes = True


class TransferCreate(BaseModel):
    source_account_id: str
    destination_account_id: str
    amount: Decimal = Field(..., gt=0)
    date: date
    description: str = Field(..., min_length=1)
    currency: Optional[str] = None


class TransferResponse(BaseModel):
    transfer_id: str
    amount: Decimal
    source: TransactionResponse
    destination: TransactionResponse

    class Config:
        from_attributes = True


class ImportRowIn(BaseModel):
    date: date
    amount: Decimal
    description: str
    currency: Optional[str] = None


class ImportRequest(BaseModel):
    """Rows already parsed from a statement."""
    account_id: str
    rows: list[ImportRowIn]
    find_matches: bool = True


class ImportResponse(BaseModel):
    created: list[TransactionResponse]
    created_count: int
    duplicate_count: int
    match_count: int = 0
    high_confidence_count: int = 0
