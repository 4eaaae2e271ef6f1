"""API endpoints for recurring transaction series and their occurrences."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.dependencies import get_db, get_today
from app.models.app_settings import get_or_create_app_settings
from app.repositories import RecurringTransactionRepository, RecurringTransferRepository
from app.schemas.recurring import (
    AutoRealizeRequest,
    AutoRealizeResponse,
    ExceptionResponse,
    ModifyInstanceRequest,
    ProjectedInstanceResponse,
    ProjectionResponse,
    RealizeInstanceRequest,
    RecurringTransactionCreate,
    RecurringTransactionResponse,
    RecurringUpdate,
    SeriesInstanceResponse,
    UpdateFromDateRequest,
)
from app.schemas.transaction import TransactionResponse
from app.services import recurring_service
from app.services.auto_realize_service import auto_realize_past_due_items_if_enabled, get_lookback_window
from app.services.projection_service import (
    flatten,
    get_instances_by_date_range,
    get_transfer_instances_by_date_range,
)

router = APIRouter(tags=["recurring"])

NOT_FOUND = "Recurring transaction not found"


@router.get("/recurring/instances", response_model=ProjectionResponse)
def get_projected_instances(
    start_date: date = Query(...),
    end_date: date = Query(...),
    account_id: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Unrealized, non-skipped occurrences of every active series (transfers included)."""
    recurring_repo = RecurringTransactionRepository(db)
    transfer_repo = RecurringTransferRepository(db)
    if account_id:
        series = recurring_repo.get_by_account_id(account_id)
        transfers = transfer_repo.get_by_account_id(account_id)
    else:
        series = recurring_repo.get_active()
        transfers = transfer_repo.get_active()

    instances = flatten(get_instances_by_date_range(db, series, start_date, end_date))
    instances += flatten(get_transfer_instances_by_date_range(db, transfers, start_date, end_date, account_id))
    instances.sort(key=lambda i: (i.instance_date, i.description))

    return ProjectionResponse(
        start_date=start_date,
        end_date=end_date,
        instances=[ProjectedInstanceResponse.model_validate(i) for i in instances],
    )


@router.post("/recurring/auto-realize", response_model=AutoRealizeResponse)
def auto_realize(
    request: AutoRealizeRequest,
    db: Session = Depends(get_db),
    today: date = Depends(get_today)
):
    """Realize past-due occurrences if the feature is switched on."""
    today = request.today or today
    created = auto_realize_past_due_items_if_enabled(db, today, request.account_id)
    from_date, to_date = get_lookback_window(today, get_or_create_app_settings(db).past_due_lookback_days)
    return AutoRealizeResponse(created_count=created, from_date=from_date, to_date=to_date)


@router.get("/recurring-transactions", response_model=List[RecurringTransactionResponse])
def list_recurring_transactions(
    account_id: Optional[str] = None,
    db: Session = Depends(get_db)
):
    return recurring_service.list_recurring_transactions(db, account_id)


@router.post("/recurring-transactions", response_model=RecurringTransactionResponse, status_code=201)
def create_recurring_transaction(
    data: RecurringTransactionCreate,
    db: Session = Depends(get_db)
):
    return recurring_service.create_recurring_transaction(db, **data.model_dump())


@router.get("/recurring-transactions/{series_id}", response_model=RecurringTransactionResponse)
def get_recurring_transaction(
    series_id: str,
    db: Session = Depends(get_db)
):
    recurring = recurring_service.get_recurring_transaction(db, series_id)
    if not recurring:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return recurring


@router.patch("/recurring-transactions/{series_id}", response_model=RecurringTransactionResponse)
def update_recurring_transaction(
    series_id: str,
    update: RecurringUpdate,
    db: Session = Depends(get_db)
):
    recurring = recurring_service.update_recurring_transaction(db, series_id, **update.model_dump(exclude_unset=True))
    if not recurring:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return recurring


@router.delete("/recurring-transactions/{series_id}")
def delete_recurring_transaction(
    series_id: str,
    db: Session = Depends(get_db)
):
    """Delete a series (realized transactions are kept but unlinked)."""
    if not recurring_service.delete_recurring_transaction(db, series_id):
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return {"deleted": True}


@router.post("/recurring-transactions/{series_id}/pause", response_model=RecurringTransactionResponse)
def pause_recurring_transaction(series_id: str, db: Session = Depends(get_db)):
    recurring = recurring_service.pause_recurring_transaction(db, series_id)
    if not recurring:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return recurring


@router.post("/recurring-transactions/{series_id}/resume", response_model=RecurringTransactionResponse)
def resume_recurring_transaction(series_id: str, db: Session = Depends(get_db)):
    recurring = recurring_service.resume_recurring_transaction(db, series_id)
    if not recurring:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return recurring


@router.post("/recurring-transactions/{series_id}/skip-next", response_model=RecurringTransactionResponse)
def skip_next(series_id: str, db: Session = Depends(get_db)):
    recurring = recurring_service.skip_next(db, series_id)
    if not recurring:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return recurring


@router.post("/recurring-transactions/{series_id}/update-from-date", response_model=RecurringTransactionResponse)
def update_from_date(
    series_id: str,
    request: UpdateFromDateRequest,
    db: Session = Depends(get_db)
):
    """Change the series from a date on, dropping per-occurrence edits from that date."""
    updates = request.model_dump(exclude_unset=True)
    from_date = updates.pop("from_date")
    recurring = recurring_service.update_from_date(db, series_id, from_date, **updates)
    if not recurring:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return recurring


@router.get("/recurring-transactions/{series_id}/instances", response_model=List[SeriesInstanceResponse])
def get_series_instances(
    series_id: str,
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db)
):
    instances = recurring_service.get_series_instances(db, series_id, start_date, end_date)
    if instances is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return [SeriesInstanceResponse.model_validate(i) for i in instances]


@router.put("/recurring-transactions/{series_id}/instances/{instance_date}", response_model=ExceptionResponse)
def modify_instance(
    series_id: str,
    instance_date: date,
    request: ModifyInstanceRequest,
    db: Session = Depends(get_db)
):
    exception = recurring_service.modify_instance(
        db, series_id, instance_date, request.amount, request.description, request.new_date
    )
    if exception is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return exception


@router.delete("/recurring-transactions/{series_id}/instances/{instance_date}", response_model=ExceptionResponse)
def skip_instance(
    series_id: str,
    instance_date: date,
    db: Session = Depends(get_db)
):
    """Skip a single occurrence."""
    exception = recurring_service.skip_instance(db, series_id, instance_date)
    if exception is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return exception


@router.post(
    "/recurring-transactions/{series_id}/instances/{instance_date}/realize",
    response_model=TransactionResponse,
    status_code=201,
)
def realize_instance(
    series_id: str,
    instance_date: date,
    request: RealizeInstanceRequest,
    db: Session = Depends(get_db)
):
    transaction = recurring_service.realize_instance(
        db, series_id, instance_date, request.amount, request.description, request.actual_date
    )
    if transaction is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return transaction
