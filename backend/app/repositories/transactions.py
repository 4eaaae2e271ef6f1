"""Repository for realized ledger transactions."""

from datetime import date
from typing import Iterable, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from app.models.transaction import Transaction


class TransactionRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, transaction_id: str) -> Optional[Transaction]:
        return self.db.query(Transaction).filter(Transaction.id == transaction_id).first()

    def get_by_date_range(self, start: date, end: date, account_id: Optional[str] = None) -> List[Transaction]:
        query = self.db.query(Transaction).filter(Transaction.date >= start, Transaction.date <= end)
        if account_id:
            query = query.filter(Transaction.account_id == account_id)
        return query.order_by(Transaction.date, Transaction.created_at).all()

    def get_by_recurring_instance(self, series_id: str, instance_date: date) -> Optional[Transaction]:
        return self.db.query(Transaction).filter(
            Transaction.recurring_transaction_id == series_id,
            Transaction.recurring_instance_date == instance_date,
        ).first()

    def get_by_recurring_transfer_instance(self, series_id: str, instance_date: date) -> List[Transaction]:
        return self.db.query(Transaction).filter(
            Transaction.recurring_transfer_id == series_id,
            Transaction.recurring_transfer_instance_date == instance_date,
        ).all()

    def get_realized_instance_keys(self, series_ids: Iterable[str], start: date, end: date) -> Set[Tuple[str, date]]:
        """(series id, instance date) pairs already realized from recurring transactions."""
        ids = list(series_ids)
        if not ids:
            return set()
        rows = self.db.query(Transaction.recurring_transaction_id, Transaction.recurring_instance_date).filter(
            Transaction.recurring_transaction_id.in_(ids),
            Transaction.recurring_instance_date >= start,
            Transaction.recurring_instance_date <= end,
        ).all()
        return {(series_id, instance_date) for series_id, instance_date in rows}

    def get_realized_transfer_instance_keys(
        self, series_ids: Iterable[str], start: date, end: date
    ) -> Set[Tuple[str, date]]:
        """(series id, instance date) pairs already realized from recurring transfers."""
        ids = list(series_ids)
        if not ids:
            return set()
        rows = self.db.query(Transaction.recurring_transfer_id, Transaction.recurring_transfer_instance_date).filter(
            Transaction.recurring_transfer_id.in_(ids),
            Transaction.recurring_transfer_instance_date >= start,
            Transaction.recurring_transfer_instance_date <= end,
        ).all()
        return {(series_id, instance_date) for series_id, instance_date in rows}

    def get_by_transfer_id(self, transfer_id: str) -> List[Transaction]:
        return self.db.query(Transaction).filter(Transaction.transfer_id == transfer_id).all()

    def exists_by_hash(self, txn_hash: str) -> bool:
        return self.db.query(Transaction).filter(Transaction.hash == txn_hash).first() is not None

    def add(self, transaction: Transaction) -> None:
        self.db.add(transaction)

    def delete(self, transaction: Transaction) -> None:
        self.db.delete(transaction)
