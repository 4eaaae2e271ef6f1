"""
Transaction API endpoints: the cross-account list, transfers and imports.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.dependencies import get_db
from app.repositories import TransactionRepository
from app.schemas.account import TransactionListResponse
from app.schemas.transaction import (
    ImportRequest,
    ImportResponse,
    TransactionResponse,
    TransferCreate,
    TransferResponse,
)
from app.services import import_service, transaction_list_service, transfer_service
from app.services.import_service import ImportRow

router = APIRouter(tags=["transactions"])


@router.get("/transactions", response_model=TransactionListResponse)
def list_transactions(
    start_date: date = Query(...),
    end_date: date = Query(...),
    include_recurring: bool = Query(True),
    db: Session = Depends(get_db)
):
    """Merged list across every account."""
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")
    result = transaction_list_service.get_transaction_list(db, start_date, end_date, None, include_recurring)
    return TransactionListResponse.model_validate(result)


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: str,
    db: Session = Depends(get_db)
):
    transaction = TransactionRepository(db).get_by_id(transaction_id)
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return transaction


@router.post("/transactions/import", response_model=ImportResponse, status_code=201)
def import_transactions(
    request: ImportRequest,
    db: Session = Depends(get_db)
):
    """Import parsed statement rows, skipping duplicates, then look for recurring matches."""
    rows = [ImportRow(date=r.date, amount=r.amount, description=r.description, currency=r.currency)
            for r in request.rows]
    result = import_service.import_transactions(db, request.account_id, rows, request.find_matches)
    if result is None:
        raise HTTPException(status_code=404, detail="Account not found")

    return ImportResponse(
        created=[TransactionResponse.model_validate(t) for t in result.created],
        created_count=result.created_count,
        duplicate_count=result.duplicate_count,
        match_count=result.matches.total_matches if result.matches else 0,
        high_confidence_count=result.matches.high_confidence_count if result.matches else 0,
    )


@router.post("/transfers", response_model=TransferResponse, status_code=201)
def create_transfer(
    data: TransferCreate,
    db: Session = Depends(get_db)
):
    """Create both legs of a transfer."""
    pair = transfer_service.create_transfer(
        db,
        data.source_account_id,
        data.destination_account_id,
        data.amount,
        data.date,
        data.description,
        data.currency,
    )
    return TransferResponse.model_validate(pair)


@router.get("/transfers/{transfer_id}", response_model=TransferResponse)
def get_transfer(
    transfer_id: str,
    db: Session = Depends(get_db)
):
    pair = transfer_service.get_transfer(db, transfer_id)
    if pair is None:
        raise HTTPException(status_code=404, detail="Transfer not found")
    return TransferResponse.model_validate(pair)


@router.delete("/transfers/{transfer_id}")
def delete_transfer(
    transfer_id: str,
    db: Session = Depends(get_db)
):
    """Delete both legs of a transfer."""
    if not transfer_service.delete_transfer(db, transfer_id):
        raise HTTPException(status_code=404, detail="Transfer not found")
    return {"deleted": True}
