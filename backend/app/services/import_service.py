"""
Import service: bring already-parsed statement rows into the ledger.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.exceptions import DomainError
from app.models.transaction import Transaction
from app.repositories import AccountRepository, TransactionRepository
from app.services import reconciliation_service
from app.services.deduplication_service import BatchDeduplicator, generate_transaction_hash
from app.services.matching import MatchingTolerances

logger = logging.getLogger(__name__)


@dataclass
class ImportRow:
    date: date
    amount: Decimal
    description: str
    currency: Optional[str] = None


@dataclass
class ImportResult:
    created: List[Transaction] = field(default_factory=list)
    duplicate_count: int = 0
    matches: Optional[reconciliation_service.FindMatchesResult] = None

    @property
    def created_count(self) -> int:
        return len(self.created)


def import_transactions(
    db: Session,
    account_id: str,
    rows: Iterable[ImportRow],
    find_matches: bool = True,
    match_window_days: Optional[int] = None,
    tolerances: Optional[MatchingTolerances] = None,
) -> Optional[ImportResult]:
    """
    Create a transaction per row, skipping rows already imported (by hash)
    or repeated within the batch. Everything is committed together. When
    find_matches is set the new transactions are then reconciled against
    recurring occurrences around their dates.

    Returns None for an unknown account.
    """
    account = AccountRepository(db).get_by_id(account_id)
    if account is None:
        return None

    tolerances = tolerances or MatchingTolerances.default()
    repo = TransactionRepository(db)
    result = ImportResult()
    dedup = BatchDeduplicator(db)

    # Validate the whole batch before adding anything to the session
    rows = list(rows)
    for row in rows:
        if not row.description or not row.description.strip():
            raise DomainError("Imported rows need a description.")
        currency = row.currency or account.currency
        if currency != account.currency:
            raise DomainError(
                f"Currency {currency} does not match account {account.name} ({account.currency})."
            )

    for row in rows:
        txn_hash = generate_transaction_hash(row.date, row.amount, row.description, account_id)
        if dedup.is_duplicate(txn_hash):
            result.duplicate_count += 1
            continue

        transaction = Transaction(
            id=str(uuid.uuid4()),
            hash=txn_hash,
            account_id=account_id,
            date=row.date,
            amount=Decimal(row.amount),
            currency=account.currency,
            description=row.description.strip(),
            is_imported=True,
        )
        repo.add(transaction)
        result.created.append(transaction)

    db.commit()
    logger.info(
        "Imported %d transaction(s) into %s, %d duplicate(s) skipped",
        result.created_count, account.name, result.duplicate_count,
    )

    if find_matches and result.created:
        window = tolerances.date_tolerance_days if match_window_days is None else match_window_days
        dates = [t.date for t in result.created]
        result.matches = reconciliation_service.find_matches(
            db,
            [t.id for t in result.created],
            min(dates) - timedelta(days=window),
            max(dates) + timedelta(days=window),
            tolerances,
        )

    return result
