"""Service for recurring transaction series and their individual occurrences."""

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from app.exceptions import DomainError
from app.models.reconciliation import ReconciliationMatch
from app.models.recurring import BudgetScope, Frequency, RecurringTransaction
from app.models.transaction import Transaction
from app.repositories import AccountRepository, RecurringTransactionRepository, TransactionRepository
from app.services import series_service
from app.services.series_service import SeriesInstance

logger = logging.getLogger(__name__)


def get_recurring_transaction(db: Session, series_id: str) -> Optional[RecurringTransaction]:
    return RecurringTransactionRepository(db).get_by_id(series_id)


def list_recurring_transactions(db: Session, account_id: Optional[str] = None) -> List[RecurringTransaction]:
    repo = RecurringTransactionRepository(db)
    return repo.get_by_account_id(account_id) if account_id else repo.get_all()


def create_recurring_transaction(
    db: Session,
    account_id: str,
    description: str,
    amount: Decimal,
    frequency: Frequency,
    start_date: date,
    interval: int = 1,
    day_of_week: Optional[int] = None,
    day_of_month: Optional[int] = None,
    month_of_year: Optional[int] = None,
    end_date: Optional[date] = None,
    currency: Optional[str] = None,
    scope: BudgetScope = BudgetScope.shared,
) -> RecurringTransaction:
    account = AccountRepository(db).get_by_id(account_id)
    if account is None:
        raise DomainError("Account not found.")
    currency = currency or account.currency
    if currency != account.currency:
        raise DomainError(f"Currency {currency} does not match account {account.name} ({account.currency}).")

    series_service.validate_schedule(description, amount, start_date, end_date)
    pattern = series_service.build_pattern(frequency, interval, day_of_week, day_of_month, month_of_year)

    recurring = RecurringTransaction(
        id=str(uuid.uuid4()),
        account_id=account_id,
        description=description.strip(),
        amount=Decimal(amount),
        currency=currency,
        start_date=start_date,
        end_date=end_date,
        scope=BudgetScope(scope),
        is_active=True,
    )
    recurring.set_pattern(pattern)
    recurring.next_occurrence = recurring.first_occurrence()

    RecurringTransactionRepository(db).add(recurring)
    db.commit()
    db.refresh(recurring)
    logger.info("Created recurring transaction %s (%s)", recurring.description, pattern.describe())
    return recurring


def update_recurring_transaction(db: Session, series_id: str, **updates) -> Optional[RecurringTransaction]:
    recurring = get_recurring_transaction(db, series_id)
    if recurring is None:
        return None
    series_service.apply_updates(recurring, **updates)
    db.commit()
    db.refresh(recurring)
    return recurring


def delete_recurring_transaction(db: Session, series_id: str) -> bool:
    """Delete a series, its exceptions and its matches. Realized transactions stay but lose the link."""
    repo = RecurringTransactionRepository(db)
    recurring = repo.get_by_id(series_id)
    if recurring is None:
        return False
    db.query(ReconciliationMatch).filter(
        ReconciliationMatch.recurring_transaction_id == series_id
    ).delete(synchronize_session=False)
    db.query(Transaction).filter(Transaction.recurring_transaction_id == series_id).update(
        {Transaction.recurring_transaction_id: None, Transaction.recurring_instance_date: None},
        synchronize_session=False,
    )
    repo.delete(recurring)
    db.commit()
    return True


def pause_recurring_transaction(db: Session, series_id: str) -> Optional[RecurringTransaction]:
    recurring = get_recurring_transaction(db, series_id)
    if recurring is None:
        return None
    recurring.pause()
    db.commit()
    db.refresh(recurring)
    return recurring


def resume_recurring_transaction(db: Session, series_id: str) -> Optional[RecurringTransaction]:
    recurring = get_recurring_transaction(db, series_id)
    if recurring is None:
        return None
    recurring.resume()
    db.commit()
    db.refresh(recurring)
    return recurring


def skip_next(db: Session, series_id: str) -> Optional[RecurringTransaction]:
    repo = RecurringTransactionRepository(db)
    recurring = repo.get_by_id(series_id)
    if recurring is None:
        return None
    skipped = series_service.skip_next(repo, recurring)
    db.commit()
    db.refresh(recurring)
    logger.info("Skipped %s occurrence on %s", recurring.description, skipped)
    return recurring


def update_from_date(db: Session, series_id: str, from_date: date, **updates) -> Optional[RecurringTransaction]:
    """Change the series going forward, discarding overrides on or after from_date."""
    repo = RecurringTransactionRepository(db)
    recurring = repo.get_by_id(series_id)
    if recurring is None:
        return None
    removed = series_service.update_from_date(repo, recurring, from_date, **updates)
    db.commit()
    db.refresh(recurring)
    logger.info("Updated %s from %s, removed %d exception(s)", recurring.description, from_date, removed)
    return recurring


def get_series_instances(
    db: Session, series_id: str, start: date, end: date
) -> Optional[List[SeriesInstance]]:
    """Every scheduled occurrence in [start, end], including skipped and realized ones."""
    repo = RecurringTransactionRepository(db)
    recurring = repo.get_by_id(series_id)
    if recurring is None:
        return None

    exceptions = {e.original_date: e for e in repo.get_exceptions_by_date_range(series_id, start, end)}
    transactions = TransactionRepository(db)
    result = []
    for occurrence in recurring.pattern.occurrences_between(recurring.start_date, start, end, recurring.end_date):
        exception = exceptions.get(occurrence)
        amount, description, effective_date = series_service.resolve_values(recurring, occurrence, exception)
        realized = transactions.get_by_recurring_instance(series_id, occurrence)
        result.append(SeriesInstance(
            series_id=series_id,
            instance_date=occurrence,
            effective_date=effective_date,
            description=description,
            amount=amount,
            is_skipped=exception is not None and exception.is_skipped,
            is_modified=exception is not None and exception.is_modified,
            realized_transaction_id=realized.id if realized else None,
        ))
    return result


def modify_instance(
    db: Session,
    series_id: str,
    instance_date: date,
    amount: Optional[Decimal] = None,
    description: Optional[str] = None,
    new_date: Optional[date] = None,
):
    repo = RecurringTransactionRepository(db)
    recurring = repo.get_by_id(series_id)
    if recurring is None:
        return None
    exception = series_service.modify_instance(repo, recurring, instance_date, amount, description, new_date)
    db.commit()
    db.refresh(exception)
    return exception


def skip_instance(db: Session, series_id: str, instance_date: date):
    repo = RecurringTransactionRepository(db)
    recurring = repo.get_by_id(series_id)
    if recurring is None:
        return None
    exception = series_service.skip_instance(repo, recurring, instance_date)
    db.commit()
    db.refresh(exception)
    return exception


def realize_instance(
    db: Session,
    series_id: str,
    instance_date: date,
    amount: Optional[Decimal] = None,
    description: Optional[str] = None,
    actual_date: Optional[date] = None,
) -> Optional[Transaction]:
    """
    Turn one occurrence into a ledger transaction.

    Values come from the explicit arguments first, then a modified exception,
    then the series. Today's occurrence may be realized here even though
    auto-realize leaves it alone.
    """
    repo = RecurringTransactionRepository(db)
    recurring = repo.get_by_id(series_id)
    if recurring is None:
        return None
    series_service.ensure_scheduled(recurring, instance_date)

    transactions = TransactionRepository(db)
    if transactions.get_by_recurring_instance(series_id, instance_date) is not None:
        raise DomainError(f"Occurrence on {instance_date.isoformat()} has already been realized.")

    exception = repo.get_exception(series_id, instance_date)
    amount, description, actual_date = series_service.resolve_values(
        recurring, instance_date, exception, amount, description, actual_date
    )

    transaction = Transaction(
        id=str(uuid.uuid4()),
        account_id=recurring.account_id,
        date=actual_date,
        amount=amount,
        currency=recurring.currency,
        description=description,
        recurring_transaction_id=series_id,
        recurring_instance_date=instance_date,
    )
    transactions.add(transaction)
    db.commit()
    db.refresh(transaction)
    logger.info("Realized %s occurrence %s on %s", recurring.description, instance_date, actual_date)
    return transaction
