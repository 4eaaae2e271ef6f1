"""Service for materializing past-due recurring occurrences into ledger transactions."""

import logging
import uuid
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from app.models.app_settings import get_or_create_app_settings
from app.models.transaction import Transaction
from app.services.series_service import resolve_values
from app.services.transfer_service import build_transfer_legs
from app.repositories import (
    AccountRepository,
    RecurringTransactionRepository,
    RecurringTransferRepository,
    TransactionRepository,
)

logger = logging.getLogger(__name__)


def get_lookback_window(today: date, lookback_days: int):
    """[today - lookback_days, today - 1]; today's own occurrences are never auto-realized."""
    return today - timedelta(days=lookback_days), today - timedelta(days=1)


def auto_realize_past_due_items_if_enabled(
    db: Session,
    today: date,
    account_id: Optional[str] = None,
) -> int:
    """
    Realize every unrealized, non-skipped occurrence inside the lookback window.
    All created transactions are committed together. Returns how many
    transactions were created (a transfer occurrence counts as two).
    """
    app_settings = get_or_create_app_settings(db)
    if not app_settings.auto_realize_past_due_items:
        return 0

    from_date, to_date = get_lookback_window(today, app_settings.past_due_lookback_days)

    created = _realize_recurring_transactions(db, from_date, to_date, account_id)
    created += _realize_recurring_transfers(db, from_date, to_date, account_id)

    if created:
        db.commit()

    logger.info(
        "Auto-realized %d transaction(s) for %s..%s%s",
        len(created), from_date, to_date, f" (account {account_id})" if account_id else "",
    )
    return len(created)


def _realize_recurring_transactions(
    db: Session, from_date: date, to_date: date, account_id: Optional[str]
) -> List[Transaction]:
    recurring_repo = RecurringTransactionRepository(db)
    transaction_repo = TransactionRepository(db)
    accounts = AccountRepository(db)

    series = recurring_repo.get_by_account_id(account_id) if account_id else recurring_repo.get_active()
    created = []

    for recurring in (s for s in series if s.is_active):
        if accounts.get_by_id(recurring.account_id) is None:
            logger.warning("Skipping recurring transaction %s: account %s not found", recurring.id, recurring.account_id)
            continue

        for occurrence in recurring.occurrences_between(from_date, to_date):
            if transaction_repo.get_by_recurring_instance(recurring.id, occurrence) is not None:
                continue

            exception = recurring_repo.get_exception(recurring.id, occurrence)
            if exception is not None and exception.is_skipped:
                continue

            amount, description, actual_date = resolve_values(recurring, occurrence, exception)

            transaction = Transaction(
                id=str(uuid.uuid4()),
                account_id=recurring.account_id,
                date=actual_date,
                amount=amount,
                currency=recurring.currency,
                description=description,
                recurring_transaction_id=recurring.id,
                recurring_instance_date=occurrence,
            )
            transaction_repo.add(transaction)
            created.append(transaction)
            logger.debug("Realized %s on %s", recurring.description, occurrence)

    return created


def _realize_recurring_transfers(
    db: Session, from_date: date, to_date: date, account_id: Optional[str]
) -> List[Transaction]:
    transfer_repo = RecurringTransferRepository(db)
    transaction_repo = TransactionRepository(db)
    accounts = AccountRepository(db)

    series = transfer_repo.get_by_account_id(account_id) if account_id else transfer_repo.get_active()
    created = []

    for transfer in (s for s in series if s.is_active):
        if accounts.get_by_id(transfer.source_account_id) is None or accounts.get_by_id(transfer.destination_account_id) is None:
            logger.warning("Skipping recurring transfer %s: account not found", transfer.id)
            continue

        for occurrence in transfer.occurrences_between(from_date, to_date):
            if transaction_repo.get_by_recurring_transfer_instance(transfer.id, occurrence):
                continue

            exception = transfer_repo.get_exception(transfer.id, occurrence)
            if exception is not None and exception.is_skipped:
                continue

            amount, description, actual_date = resolve_values(transfer, occurrence, exception)

            legs = build_transfer_legs(
                source_account_id=transfer.source_account_id,
                destination_account_id=transfer.destination_account_id,
                amount=amount,
                currency=transfer.currency,
                transfer_date=actual_date,
                description=description,
                recurring_transfer_id=transfer.id,
                instance_date=occurrence,
            )
            for leg in legs:
                transaction_repo.add(leg)
            created.extend(legs)
            logger.debug("Realized transfer %s on %s", transfer.description, occurrence)

    return created
