"""Service for account-to-account transfers (always two linked transactions)."""

import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from app.exceptions import DomainError
from app.models.transaction import Transaction, TransferDirection
from app.repositories import AccountRepository, TransactionRepository


@dataclass
class TransferPair:
    transfer_id: str
    source: Transaction
    destination: Transaction

    @property
    def amount(self) -> Decimal:
        return self.destination.amount


def build_transfer_legs(
    source_account_id: str,
    destination_account_id: str,
    amount,
    currency: str,
    transfer_date: date,
    description: str,
    recurring_transfer_id: Optional[str] = None,
    instance_date: Optional[date] = None,
) -> List[Transaction]:
    """Two linked transactions sharing one transfer id: negative source, positive destination."""
    transfer_id = str(uuid.uuid4())
    magnitude = abs(Decimal(amount))
    common = dict(
        currency=currency,
        date=transfer_date,
        description=description,
        transfer_id=transfer_id,
        recurring_transfer_id=recurring_transfer_id,
        recurring_transfer_instance_date=instance_date,
    )
    source = Transaction(
        id=str(uuid.uuid4()),
        account_id=source_account_id,
        amount=-magnitude,
        transfer_direction=TransferDirection.source,
        **common,
    )
    destination = Transaction(
        id=str(uuid.uuid4()),
        account_id=destination_account_id,
        amount=magnitude,
        transfer_direction=TransferDirection.destination,
        **common,
    )
    return [source, destination]


def create_transfer(
    db: Session,
    source_account_id: str,
    destination_account_id: str,
    amount: Decimal,
    transfer_date: date,
    description: str,
    currency: Optional[str] = None,
) -> TransferPair:
    """Create and commit both legs of a transfer."""
    if source_account_id == destination_account_id:
        raise DomainError("Source and destination accounts must be different.")
    if amount is None or Decimal(amount) <= 0:
        raise DomainError("Transfer amount must be positive.")
    if not description or not description.strip():
        raise DomainError("Description is required.")

    accounts = AccountRepository(db)
    source_account = accounts.get_by_id(source_account_id)
    destination_account = accounts.get_by_id(destination_account_id)
    if source_account is None or destination_account is None:
        raise DomainError("Both transfer accounts must exist.")

    currency = currency or source_account.currency
    for account in (source_account, destination_account):
        if account.currency != currency:
            raise DomainError(
                f"Currency {currency} does not match account {account.name} ({account.currency})."
            )

    source, destination = build_transfer_legs(
        source_account_id, destination_account_id, amount, currency, transfer_date, description.strip()
    )
    repo = TransactionRepository(db)
    repo.add(source)
    repo.add(destination)
    db.commit()
    return TransferPair(transfer_id=source.transfer_id, source=source, destination=destination)


def get_transfer(db: Session, transfer_id: str) -> Optional[TransferPair]:
    legs = TransactionRepository(db).get_by_transfer_id(transfer_id)
    source = next((t for t in legs if t.transfer_direction == TransferDirection.source), None)
    destination = next((t for t in legs if t.transfer_direction == TransferDirection.destination), None)
    if source is None or destination is None:
        return None
    return TransferPair(transfer_id=transfer_id, source=source, destination=destination)


def delete_transfer(db: Session, transfer_id: str) -> bool:
    """Delete both legs together."""
    repo = TransactionRepository(db)
    legs = repo.get_by_transfer_id(transfer_id)
    if not legs:
        return False
    for leg in legs:
        repo.delete(leg)
    db.commit()
    return True
