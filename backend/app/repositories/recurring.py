"""Repositories for recurring series and their exception overlays."""

from datetime import date

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.recurring import ExceptionType, RecurringTransaction, RecurringTransactionException
from app.models.recurring_transfer import RecurringTransfer, RecurringTransferException


class _SeriesRepository:
    model = None
    exception_model = None
    exception_fk = None

    def __init__(self, db: Session):
        self.db = db

    def _account_filter(self, account_id: str):
        raise NotImplementedError

    def _order(self, query):
        return query.order_by(self.model.start_date, self.model.created_at)

    def get_by_id(self, series_id: str):
        return self.db.query(self.model).filter(self.model.id == series_id).first()

    def get_all(self) -> list:
        return self._order(self.db.query(self.model)).all()

    def get_active(self) -> list:
        return self._order(self.db.query(self.model).filter(self.model.is_active == True)).all()

    def get_by_account_id(self, account_id: str) -> list:
        return self._order(self.db.query(self.model).filter(self._account_filter(account_id))).all()

    def add(self, series) -> None:
        self.db.add(series)

    def delete(self, series) -> None:
        self.db.delete(series)

    def _exceptions(self, series_id: str):
        fk = getattr(self.exception_model, self.exception_fk)
        return self.db.query(self.exception_model).filter(fk == series_id)

    def get_exception(self, series_id: str, original_date: date):
        return self._exceptions(series_id).filter(
            self.exception_model.original_date == original_date
        ).first()

    def get_exceptions_by_date_range(self, series_id: str, start: date, end: date) -> list:
        return self._exceptions(series_id).filter(
            self.exception_model.original_date >= start,
            self.exception_model.original_date <= end,
        ).order_by(self.exception_model.original_date).all()

    def get_exceptions_moved_into_range(self, series_ids, start: date, end: date) -> list:
        """Modified occurrences rescheduled into [start, end] from an original date outside it."""
        ids = list(series_ids)
        if not ids:
            return []
        fk = getattr(self.exception_model, self.exception_fk)
        model = self.exception_model
        return self.db.query(model).filter(
            fk.in_(ids),
            model.exception_type == ExceptionType.modified,
            model.modified_date >= start,
            model.modified_date <= end,
            or_(model.original_date < start, model.original_date > end),
        ).order_by(model.original_date).all()

    def add_exception(self, exception) -> None:
        self.db.add(exception)

    def remove_exception(self, exception) -> None:
        self.db.delete(exception)
        # Flush so a replacement for the same (series, date) can be inserted in this unit of work
        self.db.flush()

    def remove_exceptions_from_date(self, series_id: str, from_date: date) -> int:
        removed = self._exceptions(series_id).filter(
            self.exception_model.original_date >= from_date
        ).all()
        for exception in removed:
            self.db.delete(exception)
        return len(removed)


class RecurringTransactionRepository(_SeriesRepository):
    model = RecurringTransaction
    exception_model = RecurringTransactionException
    exception_fk = "recurring_transaction_id"

    def _account_filter(self, account_id: str):
        return RecurringTransaction.account_id == account_id

    def new_exception(self, series_id: str, **fields) -> RecurringTransactionException:
        return RecurringTransactionException(recurring_transaction_id=series_id, **fields)


class RecurringTransferRepository(_SeriesRepository):
    model = RecurringTransfer
    exception_model = RecurringTransferException
    exception_fk = "recurring_transfer_id"

    def _account_filter(self, account_id: str):
        return or_(
            RecurringTransfer.source_account_id == account_id,
            RecurringTransfer.destination_account_id == account_id,
        )

    def new_exception(self, series_id: str, **fields) -> RecurringTransferException:
        return RecurringTransferException(recurring_transfer_id=series_id, **fields)
