"""
Deduplication service for imported transactions.
"""

import hashlib
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from app.repositories import TransactionRepository


def generate_transaction_hash(
    txn_date: date,
    amount: Decimal,
    description: str,
    account_id: str
) -> str:
    """
    Generate SHA256 hash for deduplication.
    Uses date|amount|description|account_id with the amount fixed to two places.
    """
    components = [
        txn_date.isoformat(),
        str(Decimal(amount).quantize(Decimal("0.01"))),
        description.strip().lower(),
        str(account_id)
    ]
    combined = "|".join(components)
    return hashlib.sha256(combined.encode()).hexdigest()


def is_duplicate(db: Session, txn_hash: str) -> bool:
    """Check if transaction with this hash already exists"""
    return TransactionRepository(db).exists_by_hash(txn_hash)


class BatchDeduplicator:
    """Flags a row as duplicate if its hash is stored already or was seen earlier in the batch."""

    def __init__(self, db: Session):
        self._repo = TransactionRepository(db)
        self._seen = set()

    def is_duplicate(self, txn_hash: str) -> bool:
        if txn_hash in self._seen or self._repo.exists_by_hash(txn_hash):
            return True
        self._seen.add(txn_hash)
        return False
