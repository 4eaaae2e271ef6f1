"""Account balance calculations over realized transactions."""

from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.models.account import Account
from app.repositories import AccountRepository, TransactionRepository


def _accounts(db: Session, account_id: Optional[str]) -> List[Account]:
    repo = AccountRepository(db)
    if account_id:
        account = repo.get_by_id(account_id)
        return [account] if account else []
    return repo.get_all()


def _sum_transactions(db: Session, accounts: List[Account], end: date) -> Decimal:
    repo = TransactionRepository(db)
    total = Decimal("0")
    for account in accounts:
        if end < account.initial_balance_date:
            continue
        for txn in repo.get_by_date_range(account.initial_balance_date, end, account.id):
            total += txn.amount
    return total


def get_balance_before_date(db: Session, day: date, account_id: Optional[str] = None) -> Decimal:
    """Initial balances of accounts started before day plus all their transactions before day."""
    accounts = [a for a in _accounts(db, account_id) if a.initial_balance_date < day]
    initial = sum((a.initial_balance for a in accounts), Decimal("0"))
    return initial + _sum_transactions(db, accounts, day - timedelta(days=1))


def get_balance_as_of_date(db: Session, day: date, account_id: Optional[str] = None) -> Decimal:
    """Like get_balance_before_date but including day itself and accounts that start on day."""
    accounts = [a for a in _accounts(db, account_id) if a.initial_balance_date <= day]
    initial = sum((a.initial_balance for a in accounts), Decimal("0"))
    return initial + _sum_transactions(db, accounts, day)


def get_opening_balance_for_date(db: Session, day: date, account_id: Optional[str] = None) -> Decimal:
    """
    Opening balance for a calendar cell.

    Accounts whose initial balance date is on or after day are excluded here;
    callers add them through get_initial_balances_by_date_range so the
    starting amount shows up on the account's first day.
    """
    return get_balance_before_date(db, day, account_id)


def get_initial_balances_by_date_range(
    db: Session, start: date, end: date, account_id: Optional[str] = None
) -> Dict[date, Decimal]:
    """Initial balances of accounts starting inside [start, end], summed per start date."""
    result: Dict[date, Decimal] = {}
    for account in _accounts(db, account_id):
        if start <= account.initial_balance_date <= end:
            result[account.initial_balance_date] = (
                result.get(account.initial_balance_date, Decimal("0")) + account.initial_balance
            )
    return result
