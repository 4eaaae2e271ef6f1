"""Pydantic schemas for reconciliation matching."""

from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import date, datetime
from decimal import Decimal

from app.models.reconciliation import ConfidenceLevel, MatchStatus


class ToleranceOverrides(BaseModel):
    date_tolerance_days: Optional[int] = Field(None, ge=0)
    amount_tolerance_percent: Optional[Decimal] = Field(None, ge=0)
    amount_tolerance_absolute: Optional[Decimal] = Field(None, ge=0)
    description_similarity_threshold: Optional[Decimal] = Field(None, ge=0, le=1)
    auto_match_threshold: Optional[Decimal] = Field(None, ge=0, le=1)


class FindMatchesRequest(BaseModel):
    transaction_ids: List[str]
    start_date: date
    end_date: date
    tolerances: Optional[ToleranceOverrides] = None


class ManualMatchRequest(BaseModel):
    transaction_id: str
    recurring_transaction_id: str
    instance_date: date


class BulkMatchRequest(BaseModel):
    match_ids: List[str]


class MatchResponse(BaseModel):
    id: str
    imported_transaction_id: str
    recurring_transaction_id: str
    recurring_instance_date: date
    confidence_score: Decimal
    confidence_level: ConfidenceLevel
    status: MatchStatus
    amount_variance: Decimal
    date_offset_days: int
    description_similarity: Optional[Decimal] = None
    created_at: datetime
    resolved_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FindMatchesResponse(BaseModel):
    matches_by_transaction: Dict[str, List[MatchResponse]]
    total_matches: int
    high_confidence_count: int


class InstanceStatusResponse(BaseModel):
    series_id: str
    description: str
    instance_date: date
    expected_amount: Decimal
    status: str
    match_id: Optional[str] = None
    matched_transaction_id: Optional[str] = None
    actual_amount: Optional[Decimal] = None
    amount_variance: Optional[Decimal] = None

    model_config = {"from_attributes": True}


class ReconciliationStatusResponse(BaseModel):
    year: int
    month: int
    total_expected: int
    matched_count: int
    pending_count: int
    missing_count: int
    skipped_count: int
    instances: List[InstanceStatusResponse]

    model_config = {"from_attributes": True}
