"""
Account API endpoints.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.dependencies import get_db, get_today
from app.models import Account
from app.repositories import AccountRepository
from app.schemas.account import (
    AccountCreate,
    AccountResponse,
    AccountList,
    BalanceResponse,
    TransactionListResponse,
)
from app.services import balance_service, transaction_list_service
from app.services.auto_realize_service import auto_realize_past_due_items_if_enabled

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.get("", response_model=AccountList)
def list_accounts(db: Session = Depends(get_db)):
    """List all accounts."""
    accounts = AccountRepository(db).get_all()
    return AccountList(items=accounts, total=len(accounts))


@router.post("", response_model=AccountResponse, status_code=201)
def create_account(
    account: AccountCreate,
    db: Session = Depends(get_db)
):
    """Create a new account."""
    db_account = Account(**account.model_dump())
    db.add(db_account)
    db.commit()
    db.refresh(db_account)
    return db_account


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: str,
    db: Session = Depends(get_db)
):
    """Get a specific account."""
    account = AccountRepository(db).get_by_id(account_id)
    if not account:
        raise HTTPException(status_code=404, detail="Account not found")
    return account


@router.get("/{account_id}/transactions", response_model=TransactionListResponse)
def get_account_transactions(
    account_id: str,
    start_date: date = Query(...),
    end_date: date = Query(...),
    include_recurring: bool = Query(True),
    db: Session = Depends(get_db),
    today: date = Depends(get_today)
):
    """
    Realized transactions plus projected recurring occurrences for the window.
    Past-due occurrences are realized first when auto-realize is enabled.
    """
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")

    auto_realize_past_due_items_if_enabled(db, today, account_id)

    result = transaction_list_service.get_transaction_list(
        db, start_date, end_date, account_id, include_recurring
    )
    if result is None:
        raise HTTPException(status_code=404, detail="Account not found")
    return TransactionListResponse.model_validate(result)


@router.get("/{account_id}/balance", response_model=BalanceResponse)
def get_account_balance(
    account_id: str,
    as_of: date = Query(...),
    db: Session = Depends(get_db)
):
    """Balance at the end of as_of."""
    if AccountRepository(db).get_by_id(account_id) is None:
        raise HTTPException(status_code=404, detail="Account not found")
    balance = balance_service.get_balance_as_of_date(db, as_of, account_id)
    return BalanceResponse(account_id=account_id, date=as_of, balance=balance)
