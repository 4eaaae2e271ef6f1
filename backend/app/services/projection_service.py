"""
Projection of recurring series into concrete occurrences.

Projections are computed on every query and never stored. Each occurrence
passes through the exception overlay (skipped ones are dropped, modified ones
take their overridden values) and is then dropped if a transaction realized
from the same series and original occurrence date already exists.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from app.models.recurring import RecurringTransaction
from app.models.recurring_transfer import RecurringTransfer
from app.models.transaction import TransferDirection
from app.repositories import (
    AccountRepository,
    RecurringTransactionRepository,
    RecurringTransferRepository,
    TransactionRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class RecurringInstanceInfo:
    """One projected occurrence of a recurring series (or one leg of a recurring transfer)."""

    series_id: str
    instance_date: date  # original scheduled date, the occurrence's identity
    effective_date: date  # modified date when overridden, otherwise instance_date
    account_id: str
    account_name: str
    description: str
    amount: Decimal
    currency: str
    is_modified: bool = False
    is_skipped: bool = False
    is_realized: bool = False
    is_transfer: bool = False
    transfer_direction: Optional[TransferDirection] = None

    @property
    def is_exception(self) -> bool:
        return self.is_modified or self.is_skipped


InstanceMap = Dict[date, List[RecurringInstanceInfo]]


def _add(result: InstanceMap, info: RecurringInstanceInfo) -> None:
    result.setdefault(info.instance_date, []).append(info)


def _sorted(result: InstanceMap) -> InstanceMap:
    return OrderedDict(sorted(result.items()))


def get_instances_by_date_range(
    db: Session,
    series: Sequence[RecurringTransaction],
    start: date,
    end: date,
    include_skipped: bool = False,
    include_realized: bool = False,
) -> InstanceMap:
    """Project recurring transactions over [start, end], keyed by original occurrence date."""
    result: InstanceMap = {}
    if start > end:
        return result

    recurring_repo = RecurringTransactionRepository(db)
    account_names = AccountRepository(db).get_name_map()
    active = [s for s in series if s.is_active]
    realized = set()
    if not include_realized:
        realized = TransactionRepository(db).get_realized_instance_keys((s.id for s in active), start, end)

    for recurring in active:
        if recurring.account_id not in account_names:
            logger.warning("Skipping recurring transaction %s: account %s not found", recurring.id, recurring.account_id)
            continue

        exceptions = {
            e.original_date: e
            for e in recurring_repo.get_exceptions_by_date_range(recurring.id, start, end)
        }

        for occurrence in recurring.occurrences_between(start, end):
            exception = exceptions.get(occurrence)
            if exception is not None and exception.is_skipped and not include_skipped:
                continue

            is_realized = (recurring.id, occurrence) in realized
            if is_realized:
                continue

            _add(result, _build_instance(recurring, occurrence, exception, account_names))

    if include_realized:
        _flag_realized(db, result)

    return _sorted(result)


def get_instances_for_date(
    db: Session,
    series: Sequence[RecurringTransaction],
    day: date,
) -> List[RecurringInstanceInfo]:
    """Unrealized, non-skipped occurrences of the given series on one day."""
    return get_instances_by_date_range(db, series, day, day).get(day, [])


def _build_instance(recurring, occurrence, exception, account_names) -> RecurringInstanceInfo:
    modified = exception is not None and exception.is_modified
    amount = recurring.amount
    description = recurring.description
    effective_date = occurrence
    if modified:
        if exception.modified_amount is not None:
            amount = exception.modified_amount
        description = exception.modified_description or description
        effective_date = exception.effective_date

    return RecurringInstanceInfo(
        series_id=recurring.id,
        instance_date=occurrence,
        effective_date=effective_date,
        account_id=recurring.account_id,
        account_name=account_names.get(recurring.account_id, ""),
        description=description,
        amount=Decimal(amount),
        currency=recurring.currency,
        is_modified=modified,
        is_skipped=exception is not None and exception.is_skipped,
    )


def _flag_realized(db: Session, result: InstanceMap) -> None:
    if not result:
        return
    dates = list(result.keys())
    keys = TransactionRepository(db).get_realized_instance_keys(
        {i.series_id for infos in result.values() for i in infos}, min(dates), max(dates)
    )
    for infos in result.values():
        for info in infos:
            info.is_realized = (info.series_id, info.instance_date) in keys


def get_transfer_instances_by_date_range(
    db: Session,
    series: Sequence[RecurringTransfer],
    start: date,
    end: date,
    account_id: Optional[str] = None,
    include_skipped: bool = False,
) -> InstanceMap:
    """Project recurring transfers over [start, end].

    Each occurrence yields a negative source leg and a positive destination leg;
    with account_id only the legs on that account are returned.
    """
    result: InstanceMap = {}
    if start > end:
        return result

    transfer_repo = RecurringTransferRepository(db)
    account_names = AccountRepository(db).get_name_map()
    active = [s for s in series if s.is_active]
    if account_id:
        active = [s for s in active if s.touches_account(account_id)]
    realized = TransactionRepository(db).get_realized_transfer_instance_keys((s.id for s in active), start, end)

    for transfer in active:
        if transfer.source_account_id not in account_names or transfer.destination_account_id not in account_names:
            logger.warning("Skipping recurring transfer %s: account not found", transfer.id)
            continue

        exceptions = {
            e.original_date: e
            for e in transfer_repo.get_exceptions_by_date_range(transfer.id, start, end)
        }

        for occurrence in transfer.occurrences_between(start, end):
            exception = exceptions.get(occurrence)
            if exception is not None and exception.is_skipped and not include_skipped:
                continue
            if (transfer.id, occurrence) in realized:
                continue

            for leg in _build_transfer_legs(transfer, occurrence, exception, account_names):
                if account_id and leg.account_id != account_id:
                    continue
                _add(result, leg)

    return _sorted(result)


def get_transfer_instances_for_date(
    db: Session,
    series: Sequence[RecurringTransfer],
    day: date,
    account_id: Optional[str] = None,
) -> List[RecurringInstanceInfo]:
    return get_transfer_instances_by_date_range(db, series, day, day, account_id).get(day, [])


def _build_transfer_legs(transfer, occurrence, exception, account_names) -> List[RecurringInstanceInfo]:
    modified = exception is not None and exception.is_modified
    skipped = exception is not None and exception.is_skipped
    amount = Decimal(transfer.amount)
    description = transfer.description
    effective_date = occurrence
    if modified:
        if exception.modified_amount is not None:
            amount = Decimal(exception.modified_amount)
        description = exception.modified_description or description
        effective_date = exception.effective_date

    source_name = account_names.get(transfer.source_account_id, "")
    destination_name = account_names.get(transfer.destination_account_id, "")

    source = RecurringInstanceInfo(
        series_id=transfer.id,
        instance_date=occurrence,
        effective_date=effective_date,
        account_id=transfer.source_account_id,
        account_name=source_name,
        description=f"Transfer to {destination_name}: {description}",
        amount=-amount,
        currency=transfer.currency,
        is_modified=modified,
        is_skipped=skipped,
        is_transfer=True,
        transfer_direction=TransferDirection.source,
    )
    destination = RecurringInstanceInfo(
        series_id=transfer.id,
        instance_date=occurrence,
        effective_date=effective_date,
        account_id=transfer.destination_account_id,
        account_name=destination_name,
        description=f"Transfer from {source_name}: {description}",
        amount=amount,
        currency=transfer.currency,
        is_modified=modified,
        is_skipped=skipped,
        is_transfer=True,
        transfer_direction=TransferDirection.destination,
    )
    return [source, destination]


def flatten(instances: InstanceMap) -> List[RecurringInstanceInfo]:
    """Instances in date order as a flat list."""
    return [info for day in sorted(instances) for info in instances[day]]
