"""
Operations shared by recurring transactions and recurring transfers.

Functions here take the series row plus its repository and never commit;
the per-kind services own the unit of work.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from app.exceptions import DomainError
from app.models.recurring import BudgetScope, ExceptionType
from app.services.recurrence import WEEKLY_FREQUENCIES, RecurrencePattern

_PATTERN_FIELDS = ("frequency", "interval", "day_of_week", "day_of_month", "month_of_year")


@dataclass
class SeriesInstance:
    """One occurrence of a single series with its realization state."""

    series_id: str
    instance_date: date
    effective_date: date
    description: str
    amount: Decimal
    is_skipped: bool = False
    is_modified: bool = False
    realized_transaction_id: Optional[str] = None

    @property
    def is_realized(self) -> bool:
        return self.realized_transaction_id is not None


def validate_schedule(description: str, amount, start_date: date, end_date: Optional[date]) -> None:
    if not description or not description.strip():
        raise DomainError("Description is required.")
    if amount is None:
        raise DomainError("Amount is required.")
    if end_date is not None and end_date < start_date:
        raise DomainError("End date cannot be before start date.")


def build_pattern(frequency, interval=1, day_of_week=None, day_of_month=None, month_of_year=None) -> RecurrencePattern:
    pattern = RecurrencePattern.create(frequency, interval or 1, day_of_week, day_of_month, month_of_year)
    if pattern.frequency in WEEKLY_FREQUENCIES and pattern.day_of_week is None:
        raise DomainError("Day of week is required for weekly and biweekly patterns.")
    return pattern


def apply_updates(series, **updates) -> None:
    """Apply the non-None fields in updates, rebuilding the pattern if any pattern field changed."""
    updates = {k: v for k, v in updates.items() if v is not None}

    if any(name in updates for name in _PATTERN_FIELDS):
        current = {name: getattr(series, name) for name in _PATTERN_FIELDS}
        current.update({name: updates[name] for name in _PATTERN_FIELDS if name in updates})
        series.set_pattern(build_pattern(**current))

    description = updates.get("description", series.description)
    end_date = updates.get("end_date", series.end_date)
    validate_schedule(description, updates.get("amount", series.amount), series.start_date, end_date)

    series.description = description.strip()
    if "amount" in updates:
        series.amount = Decimal(updates["amount"])
    if "end_date" in updates:
        series.end_date = end_date
    if "scope" in updates:
        series.scope = BudgetScope(updates["scope"])

    series.next_occurrence = series.pattern.next_on_or_after(
        series.start_date, series.next_occurrence or series.start_date, series.end_date
    )


def ensure_scheduled(series, day: date) -> None:
    if not series.pattern.occurs_on(series.start_date, day, series.end_date):
        raise DomainError(f"{day.isoformat()} is not a scheduled occurrence of '{series.description}'.")


def skip_next(repo, series) -> date:
    """Mark the cursor occurrence skipped and advance the cursor. Returns the skipped date."""
    skipped = series.next_occurrence or series.first_occurrence()
    if skipped is None:
        raise DomainError("Series has no upcoming occurrence to skip.")
    _replace_exception(repo, series, skipped, exception_type=ExceptionType.skipped)
    series.next_occurrence = skipped
    series.advance_next_occurrence()
    return skipped


def skip_instance(repo, series, day: date):
    ensure_scheduled(series, day)
    return _replace_exception(repo, series, day, exception_type=ExceptionType.skipped)


def modify_instance(
    repo,
    series,
    day: date,
    amount: Optional[Decimal] = None,
    description: Optional[str] = None,
    new_date: Optional[date] = None,
):
    """Create or update the modified exception for one occurrence."""
    if amount is None and not description and new_date is None:
        raise DomainError("At least one of amount, description or date must be modified.")
    ensure_scheduled(series, day)

    exception = repo.get_exception(series.id, day)
    if exception is None or exception.is_skipped:
        return _replace_exception(
            repo, series, day,
            exception_type=ExceptionType.modified,
            modified_amount=amount,
            modified_description=description,
            modified_date=new_date,
        )

    if amount is not None:
        exception.modified_amount = amount
    if description:
        exception.modified_description = description
    if new_date is not None:
        exception.modified_date = new_date
    return exception


def update_from_date(repo, series, from_date: date, **updates) -> int:
    """Drop exceptions on or after from_date, then update the series. Returns removed count."""
    removed = repo.remove_exceptions_from_date(series.id, from_date)
    apply_updates(series, **updates)
    return removed


def resolve_values(series, day: date, exception, amount=None, description=None, actual_date=None):
    """(amount, description, date) for realizing one occurrence: override, then exception, then series."""
    resolved_amount = series.amount
    resolved_description = series.description
    resolved_date = day
    if exception is not None and exception.is_modified:
        if exception.modified_amount is not None:
            resolved_amount = exception.modified_amount
        resolved_description = exception.modified_description or resolved_description
        resolved_date = exception.effective_date
    if amount is not None:
        resolved_amount = amount
    if description:
        resolved_description = description
    if actual_date is not None:
        resolved_date = actual_date
    return Decimal(resolved_amount), resolved_description, resolved_date


def _replace_exception(repo, series, day: date, **fields):
    existing = repo.get_exception(series.id, day)
    if existing is not None:
        repo.remove_exception(existing)
    exception = repo.new_exception(series.id, original_date=day, **fields)
    repo.add_exception(exception)
    return exception
