"""API endpoints for reconciling actual transactions with recurring occurrences."""

from dataclasses import replace
from datetime import date, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.dependencies import get_db, get_today
from app.schemas.reconciliation import (
    BulkMatchRequest,
    FindMatchesRequest,
    FindMatchesResponse,
    ManualMatchRequest,
    MatchResponse,
    ReconciliationStatusResponse,
)
from app.services import reconciliation_service
from app.services.matching import MatchingTolerances

router = APIRouter(prefix="/reconciliation", tags=["reconciliation"])


def _tolerances(request: FindMatchesRequest) -> MatchingTolerances:
    defaults = MatchingTolerances.default()
    if request.tolerances is None:
        return defaults
    return replace(defaults, **request.tolerances.model_dump(exclude_none=True))


@router.post("/find-matches", response_model=FindMatchesResponse)
def find_matches(
    request: FindMatchesRequest,
    db: Session = Depends(get_db)
):
    """Score the given transactions against recurring occurrences in the window."""
    if request.end_date < request.start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")
    result = reconciliation_service.find_matches(
        db, request.transaction_ids, request.start_date, request.end_date, _tolerances(request)
    )
    return FindMatchesResponse(
        matches_by_transaction={
            txn_id: [MatchResponse.model_validate(m) for m in matches]
            for txn_id, matches in result.matches_by_transaction.items()
        },
        total_matches=result.total_matches,
        high_confidence_count=result.high_confidence_count,
    )


@router.get("/pending", response_model=List[MatchResponse])
def get_pending_matches(db: Session = Depends(get_db)):
    return reconciliation_service.get_pending_matches(db)


@router.get("/status", response_model=ReconciliationStatusResponse)
def get_reconciliation_status(
    year: int = Query(..., ge=1900, le=9999),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db)
):
    status = reconciliation_service.get_reconciliation_status(db, year, month)
    return ReconciliationStatusResponse.model_validate(status)


@router.get("/series/{series_id}", response_model=List[MatchResponse])
def get_matches_for_series(
    series_id: str,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    today: date = Depends(get_today)
):
    """Matches for one recurring transaction; defaults to a year either side of today."""
    start_date = start_date or today - timedelta(days=365)
    end_date = end_date or today + timedelta(days=365)
    matches = reconciliation_service.get_matches_for_series(db, series_id, start_date, end_date)
    if matches is None:
        raise HTTPException(status_code=404, detail="Recurring transaction not found")
    return matches


@router.get("/transactions/{transaction_id}", response_model=List[MatchResponse])
def get_matches_for_transaction(transaction_id: str, db: Session = Depends(get_db)):
    matches = reconciliation_service.get_matches_for_transaction(db, transaction_id)
    if matches is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return matches


@router.post("/matches/{match_id}/accept", response_model=MatchResponse)
def accept_match(match_id: str, db: Session = Depends(get_db)):
    match = reconciliation_service.accept_match(db, match_id)
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")
    return match


@router.post("/matches/{match_id}/reject", response_model=MatchResponse)
def reject_match(match_id: str, db: Session = Depends(get_db)):
    match = reconciliation_service.reject_match(db, match_id)
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")
    return match


@router.post("/matches/bulk-accept", response_model=List[MatchResponse])
def bulk_accept_matches(request: BulkMatchRequest, db: Session = Depends(get_db)):
    return reconciliation_service.bulk_accept_matches(db, request.match_ids)


@router.post("/matches/manual", response_model=MatchResponse, status_code=201)
def create_manual_match(request: ManualMatchRequest, db: Session = Depends(get_db)):
    """Link a transaction to an occurrence without scoring."""
    match = reconciliation_service.create_manual_match(
        db, request.transaction_id, request.recurring_transaction_id, request.instance_date
    )
    if not match:
        raise HTTPException(status_code=404, detail="Transaction or recurring transaction not found")
    return match
