"""Service for recurring transfers between two accounts."""

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from app.exceptions import DomainError
from app.models.recurring import BudgetScope, Frequency
from app.models.recurring_transfer import RecurringTransfer
from app.models.transaction import Transaction
from app.repositories import AccountRepository, RecurringTransferRepository, TransactionRepository
from app.services import series_service
from app.services.series_service import SeriesInstance
from app.services.transfer_service import TransferPair, build_transfer_legs

logger = logging.getLogger(__name__)


def get_recurring_transfer(db: Session, series_id: str) -> Optional[RecurringTransfer]:
    return RecurringTransferRepository(db).get_by_id(series_id)


def list_recurring_transfers(db: Session, account_id: Optional[str] = None) -> List[RecurringTransfer]:
    repo = RecurringTransferRepository(db)
    return repo.get_by_account_id(account_id) if account_id else repo.get_all()


def create_recurring_transfer(
    db: Session,
    source_account_id: str,
    destination_account_id: str,
    description: str,
    amount: Decimal,
    frequency: Frequency,
    start_date: date,
    interval: int = 1,
    day_of_week: Optional[int] = None,
    day_of_month: Optional[int] = None,
    month_of_year: Optional[int] = None,
    end_date: Optional[date] = None,
    scope: BudgetScope = BudgetScope.shared,
) -> RecurringTransfer:
    if source_account_id == destination_account_id:
        raise DomainError("Source and destination accounts must be different.")
    if amount is None or Decimal(amount) <= 0:
        raise DomainError("Transfer amount must be positive.")

    accounts = AccountRepository(db)
    source = accounts.get_by_id(source_account_id)
    destination = accounts.get_by_id(destination_account_id)
    if source is None or destination is None:
        raise DomainError("Account not found.")
    if source.currency != destination.currency:
        raise DomainError("Transfers between accounts in different currencies are not supported.")

    series_service.validate_schedule(description, amount, start_date, end_date)
    pattern = series_service.build_pattern(frequency, interval, day_of_week, day_of_month, month_of_year)

    transfer = RecurringTransfer(
        id=str(uuid.uuid4()),
        source_account_id=source_account_id,
        destination_account_id=destination_account_id,
        description=description.strip(),
        amount=Decimal(amount),
        currency=source.currency,
        start_date=start_date,
        end_date=end_date,
        scope=BudgetScope(scope),
        is_active=True,
    )
    transfer.set_pattern(pattern)
    transfer.next_occurrence = transfer.first_occurrence()

    RecurringTransferRepository(db).add(transfer)
    db.commit()
    db.refresh(transfer)
    logger.info("Created recurring transfer %s (%s)", transfer.description, pattern.describe())
    return transfer


def update_recurring_transfer(db: Session, series_id: str, **updates) -> Optional[RecurringTransfer]:
    transfer = get_recurring_transfer(db, series_id)
    if transfer is None:
        return None
    if updates.get("amount") is not None and Decimal(updates["amount"]) <= 0:
        raise DomainError("Transfer amount must be positive.")
    series_service.apply_updates(transfer, **updates)
    db.commit()
    db.refresh(transfer)
    return transfer


def delete_recurring_transfer(db: Session, series_id: str) -> bool:
    repo = RecurringTransferRepository(db)
    transfer = repo.get_by_id(series_id)
    if transfer is None:
        return False
    db.query(Transaction).filter(Transaction.recurring_transfer_id == series_id).update(
        {Transaction.recurring_transfer_id: None, Transaction.recurring_transfer_instance_date: None},
        synchronize_session=False,
    )
    repo.delete(transfer)
    db.commit()
    return True


def pause_recurring_transfer(db: Session, series_id: str) -> Optional[RecurringTransfer]:
    transfer = get_recurring_transfer(db, series_id)
    if transfer is None:
        return None
    transfer.pause()
    db.commit()
    db.refresh(transfer)
    return transfer


def resume_recurring_transfer(db: Session, series_id: str) -> Optional[RecurringTransfer]:
    transfer = get_recurring_transfer(db, series_id)
    if transfer is None:
        return None
    transfer.resume()
    db.commit()
    db.refresh(transfer)
    return transfer


def skip_next(db: Session, series_id: str) -> Optional[RecurringTransfer]:
    repo = RecurringTransferRepository(db)
    transfer = repo.get_by_id(series_id)
    if transfer is None:
        return None
    series_service.skip_next(repo, transfer)
    db.commit()
    db.refresh(transfer)
    return transfer


def update_from_date(db: Session, series_id: str, from_date: date, **updates) -> Optional[RecurringTransfer]:
    repo = RecurringTransferRepository(db)
    transfer = repo.get_by_id(series_id)
    if transfer is None:
        return None
    if updates.get("amount") is not None and Decimal(updates["amount"]) <= 0:
        raise DomainError("Transfer amount must be positive.")
    series_service.update_from_date(repo, transfer, from_date, **updates)
    db.commit()
    db.refresh(transfer)
    return transfer


def get_series_instances(
    db: Session, series_id: str, start: date, end: date
) -> Optional[List[SeriesInstance]]:
    repo = RecurringTransferRepository(db)
    transfer = repo.get_by_id(series_id)
    if transfer is None:
        return None

    exceptions = {e.original_date: e for e in repo.get_exceptions_by_date_range(series_id, start, end)}
    transactions = TransactionRepository(db)
    result = []
    for occurrence in transfer.pattern.occurrences_between(transfer.start_date, start, end, transfer.end_date):
        exception = exceptions.get(occurrence)
        amount, description, effective_date = series_service.resolve_values(transfer, occurrence, exception)
        legs = transactions.get_by_recurring_transfer_instance(series_id, occurrence)
        result.append(SeriesInstance(
            series_id=series_id,
            instance_date=occurrence,
            effective_date=effective_date,
            description=description,
            amount=amount,
            is_skipped=exception is not None and exception.is_skipped,
            is_modified=exception is not None and exception.is_modified,
            realized_transaction_id=legs[0].transfer_id if legs else None,
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
    repo = RecurringTransferRepository(db)
    transfer = repo.get_by_id(series_id)
    if transfer is None:
        return None
    if amount is not None and Decimal(amount) <= 0:
        raise DomainError("Transfer amount must be positive.")
    exception = series_service.modify_instance(repo, transfer, instance_date, amount, description, new_date)
    db.commit()
    db.refresh(exception)
    return exception


def skip_instance(db: Session, series_id: str, instance_date: date):
    repo = RecurringTransferRepository(db)
    transfer = repo.get_by_id(series_id)
    if transfer is None:
        return None
    exception = series_service.skip_instance(repo, transfer, instance_date)
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
) -> Optional[TransferPair]:
    """Realize one occurrence as a linked source/destination pair."""
    repo = RecurringTransferRepository(db)
    transfer = repo.get_by_id(series_id)
    if transfer is None:
        return None
    series_service.ensure_scheduled(transfer, instance_date)

    transactions = TransactionRepository(db)
    if transactions.get_by_recurring_transfer_instance(series_id, instance_date):
        raise DomainError(f"Transfer on {instance_date.isoformat()} has already been realized.")

    exception = repo.get_exception(series_id, instance_date)
    amount, description, actual_date = series_service.resolve_values(
        transfer, instance_date, exception, amount, description, actual_date
    )
    if amount <= 0:
        raise DomainError("Transfer amount must be positive.")

    source, destination = build_transfer_legs(
        source_account_id=transfer.source_account_id,
        destination_account_id=transfer.destination_account_id,
        amount=amount,
        currency=transfer.currency,
        transfer_date=actual_date,
        description=description,
        recurring_transfer_id=series_id,
        instance_date=instance_date,
    )
    transactions.add(source)
    transactions.add(destination)
    db.commit()
    logger.info("Realized transfer %s occurrence %s", transfer.description, instance_date)
    return TransferPair(transfer_id=source.transfer_id, source=source, destination=destination)
