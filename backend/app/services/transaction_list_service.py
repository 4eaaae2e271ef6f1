"""
Unified transaction list: realized transactions merged with projected
recurring and recurring-transfer occurrences, with running balances.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from itertools import groupby
from typing import List, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.models.transaction import Transaction
from app.repositories import (
    AccountRepository,
    RecurringTransactionRepository,
    RecurringTransferRepository,
    TransactionRepository,
)
from app.services import balance_service
from app.services.projection_service import (
    RecurringInstanceInfo,
    flatten,
    get_instances_by_date_range,
    get_transfer_instances_by_date_range,
)

ITEM_TRANSACTION = "transaction"
ITEM_RECURRING = "recurring"
ITEM_RECURRING_TRANSFER = "recurring-transfer"


@dataclass
class TransactionListItem:
    id: str
    type: str
    date: date
    description: str
    amount: Decimal
    currency: str
    account_id: str
    created_at: Optional[datetime] = None
    instance_date: Optional[date] = None
    is_modified: bool = False
    is_transfer: bool = False
    transfer_id: Optional[str] = None
    transfer_direction: Optional[str] = None
    recurring_transaction_id: Optional[str] = None
    recurring_transfer_id: Optional[str] = None
    running_balance: Decimal = Decimal("0")

    @property
    def is_projected(self) -> bool:
        return self.type != ITEM_TRANSACTION


@dataclass
class DailyBalance:
    date: date
    starting_balance: Decimal
    ending_balance: Decimal
    day_total: Decimal
    item_count: int


@dataclass
class TransactionListSummary:
    transaction_count: int
    recurring_count: int
    actual_total: Decimal
    projected_total: Decimal
    total_amount: Decimal
    total_income: Decimal
    total_expenses: Decimal
    ending_balance: Decimal


@dataclass
class TransactionList:
    account_id: Optional[str]
    account_name: Optional[str]
    start_date: date
    end_date: date
    currency: str
    starting_balance: Decimal
    items: List[TransactionListItem] = field(default_factory=list)
    daily_balances: List[DailyBalance] = field(default_factory=list)
    summary: Optional[TransactionListSummary] = None


def _from_transaction(txn: Transaction) -> TransactionListItem:
    return TransactionListItem(
        id=txn.id,
        type=ITEM_TRANSACTION,
        date=txn.date,
        description=txn.description,
        amount=Decimal(txn.amount),
        currency=txn.currency,
        account_id=txn.account_id,
        created_at=txn.created_at,
        instance_date=txn.recurring_instance_date or txn.recurring_transfer_instance_date,
        is_transfer=txn.is_transfer,
        transfer_id=txn.transfer_id,
        transfer_direction=txn.transfer_direction.value if txn.transfer_direction else None,
        recurring_transaction_id=txn.recurring_transaction_id,
        recurring_transfer_id=txn.recurring_transfer_id,
    )


def _from_instance(info: RecurringInstanceInfo) -> TransactionListItem:
    return TransactionListItem(
        id=info.series_id,
        type=ITEM_RECURRING_TRANSFER if info.is_transfer else ITEM_RECURRING,
        date=info.effective_date,
        description=info.description,
        amount=info.amount,
        currency=info.currency,
        account_id=info.account_id,
        instance_date=info.instance_date,
        is_modified=info.is_modified,
        is_transfer=info.is_transfer,
        transfer_direction=info.transfer_direction.value if info.transfer_direction else None,
        recurring_transaction_id=None if info.is_transfer else info.series_id,
        recurring_transfer_id=info.series_id if info.is_transfer else None,
    )


def _balance_order(item: TransactionListItem):
    # Projected items have no creation time and sort after realized ones on the same day
    return (item.date, item.created_at is None, item.created_at or datetime.min)


def get_transaction_list(
    db: Session,
    start: date,
    end: date,
    account_id: Optional[str] = None,
    include_recurring: bool = True,
) -> Optional[TransactionList]:
    """
    Build the merged list for one account, or for all accounts when account_id is None.

    Returns None when account_id names an unknown account. Items come back newest
    first; daily balances likewise.
    """
    account = None
    if account_id:
        account = AccountRepository(db).get_by_id(account_id)
        if account is None:
            return None

    transactions = TransactionRepository(db).get_by_date_range(start, end, account_id)
    items = [_from_transaction(t) for t in transactions]

    if include_recurring:
        items.extend(_projected_items(db, start, end, account_id))

    starting_balance = balance_service.get_balance_before_date(db, start, account_id)

    running = starting_balance
    for item in sorted(items, key=_balance_order):
        running += item.amount
        item.running_balance = running

    daily = _daily_balances(items, starting_balance)
    items.sort(key=_balance_order, reverse=True)

    return TransactionList(
        account_id=account_id,
        account_name=account.name if account else None,
        start_date=start,
        end_date=end,
        currency=account.currency if account else settings.default_currency,
        starting_balance=starting_balance,
        items=items,
        daily_balances=daily,
        summary=_summarize(items, running),
    )


def _projected_items(db: Session, start: date, end: date, account_id: Optional[str]) -> List[TransactionListItem]:
    recurring_repo = RecurringTransactionRepository(db)
    transfer_repo = RecurringTransferRepository(db)

    series = recurring_repo.get_by_account_id(account_id) if account_id else recurring_repo.get_active()
    transfers = transfer_repo.get_by_account_id(account_id) if account_id else transfer_repo.get_active()

    instances = flatten(get_instances_by_date_range(db, series, start, end))
    instances += flatten(get_transfer_instances_by_date_range(db, transfers, start, end, account_id))

    # Occurrences rescheduled into the window from outside it
    by_id = {s.id: s for s in series}
    for exception in recurring_repo.get_exceptions_moved_into_range(by_id, start, end):
        day = exception.original_date
        recurring = by_id[exception.recurring_transaction_id]
        instances += flatten(get_instances_by_date_range(db, [recurring], day, day))

    transfers_by_id = {t.id: t for t in transfers}
    for exception in transfer_repo.get_exceptions_moved_into_range(transfers_by_id, start, end):
        day = exception.original_date
        transfer = transfers_by_id[exception.recurring_transfer_id]
        instances += flatten(get_transfer_instances_by_date_range(db, [transfer], day, day, account_id))

    # Placed by effective date; a modified date may also move an occurrence out of the window
    return [_from_instance(i) for i in instances if start <= i.effective_date <= end]


def _daily_balances(items: List[TransactionListItem], starting_balance: Decimal) -> List[DailyBalance]:
    result = []
    balance = starting_balance
    for day, group in groupby(sorted(items, key=_balance_order), key=lambda i: i.date):
        group = list(group)
        day_total = sum((i.amount for i in group), Decimal("0"))
        result.append(DailyBalance(
            date=day,
            starting_balance=balance,
            ending_balance=balance + day_total,
            day_total=day_total,
            item_count=len(group),
        ))
        balance += day_total
    result.reverse()
    return result


def _summarize(items: List[TransactionListItem], ending_balance: Decimal) -> TransactionListSummary:
    actual = [i for i in items if not i.is_projected]
    projected = [i for i in items if i.is_projected]
    zero = Decimal("0")
    return TransactionListSummary(
        transaction_count=len(actual),
        recurring_count=len(projected),
        actual_total=sum((i.amount for i in actual), zero),
        projected_total=sum((i.amount for i in projected), zero),
        total_amount=sum((i.amount for i in items), zero),
        total_income=sum((i.amount for i in items if i.amount > 0), zero),
        total_expenses=sum((i.amount for i in items if i.amount < 0), zero),
        ending_balance=ending_balance,
    )
