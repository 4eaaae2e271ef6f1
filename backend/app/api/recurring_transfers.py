"""API endpoints for recurring transfers."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.dependencies import get_db
from app.schemas.recurring import (
    ExceptionResponse,
    ModifyInstanceRequest,
    RealizeInstanceRequest,
    RecurringTransferCreate,
    RecurringTransferResponse,
    RecurringUpdate,
    SeriesInstanceResponse,
    UpdateFromDateRequest,
)
from app.schemas.transaction import TransferResponse
from app.services import recurring_transfer_service

router = APIRouter(prefix="/recurring-transfers", tags=["recurring-transfers"])

NOT_FOUND = "Recurring transfer not found"


def _found(value):
    if value is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return value


@router.get("", response_model=List[RecurringTransferResponse])
def list_recurring_transfers(
    account_id: Optional[str] = None,
    db: Session = Depends(get_db)
):
    return recurring_transfer_service.list_recurring_transfers(db, account_id)


@router.post("", response_model=RecurringTransferResponse, status_code=201)
def create_recurring_transfer(
    data: RecurringTransferCreate,
    db: Session = Depends(get_db)
):
    return recurring_transfer_service.create_recurring_transfer(db, **data.model_dump())


@router.get("/{series_id}", response_model=RecurringTransferResponse)
def get_recurring_transfer(series_id: str, db: Session = Depends(get_db)):
    return _found(recurring_transfer_service.get_recurring_transfer(db, series_id))


@router.patch("/{series_id}", response_model=RecurringTransferResponse)
def update_recurring_transfer(
    series_id: str,
    update: RecurringUpdate,
    db: Session = Depends(get_db)
):
    return _found(recurring_transfer_service.update_recurring_transfer(
        db, series_id, **update.model_dump(exclude_unset=True)
    ))


@router.delete("/{series_id}")
def delete_recurring_transfer(series_id: str, db: Session = Depends(get_db)):
    if not recurring_transfer_service.delete_recurring_transfer(db, series_id):
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return {"deleted": True}


@router.post("/{series_id}/pause", response_model=RecurringTransferResponse)
def pause_recurring_transfer(series_id: str, db: Session = Depends(get_db)):
    return _found(recurring_transfer_service.pause_recurring_transfer(db, series_id))


@router.post("/{series_id}/resume", response_model=RecurringTransferResponse)
def resume_recurring_transfer(series_id: str, db: Session = Depends(get_db)):
    return _found(recurring_transfer_service.resume_recurring_transfer(db, series_id))


@router.post("/{series_id}/skip-next", response_model=RecurringTransferResponse)
def skip_next(series_id: str, db: Session = Depends(get_db)):
    return _found(recurring_transfer_service.skip_next(db, series_id))


@router.post("/{series_id}/update-from-date", response_model=RecurringTransferResponse)
def update_from_date(
    series_id: str,
    request: UpdateFromDateRequest,
    db: Session = Depends(get_db)
):
    updates = request.model_dump(exclude_unset=True)
    from_date = updates.pop("from_date")
    return _found(recurring_transfer_service.update_from_date(db, series_id, from_date, **updates))


@router.get("/{series_id}/instances", response_model=List[SeriesInstanceResponse])
def get_series_instances(
    series_id: str,
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db)
):
    instances = _found(recurring_transfer_service.get_series_instances(db, series_id, start_date, end_date))
    return [SeriesInstanceResponse.model_validate(i) for i in instances]


@router.put("/{series_id}/instances/{instance_date}", response_model=ExceptionResponse)
def modify_instance(
    series_id: str,
    instance_date: date,
    request: ModifyInstanceRequest,
    db: Session = Depends(get_db)
):
    return _found(recurring_transfer_service.modify_instance(
        db, series_id, instance_date, request.amount, request.description, request.new_date
    ))


@router.delete("/{series_id}/instances/{instance_date}", response_model=ExceptionResponse)
def skip_instance(series_id: str, instance_date: date, db: Session = Depends(get_db)):
    return _found(recurring_transfer_service.skip_instance(db, series_id, instance_date))


@router.post("/{series_id}/instances/{instance_date}/realize", response_model=TransferResponse, status_code=201)
def realize_instance(
    series_id: str,
    instance_date: date,
    request: RealizeInstanceRequest,
    db: Session = Depends(get_db)
):
    pair = _found(recurring_transfer_service.realize_instance(
        db, series_id, instance_date, request.amount, request.description, request.actual_date
    ))
    return TransferResponse.model_validate(pair)
