"""Tests for recurring series management and single-occurrence operations."""

import pytest
from datetime import date
from decimal import Decimal

from app.exceptions import DomainError
from app.models import (
    BudgetScope,
    ExceptionType,
    Frequency,
    ReconciliationMatch,
    RecurringTransactionException,
    Transaction,
)
from app.services import reconciliation_service, recurring_service
from conftest import make_account, make_transaction


class TestCreateRecurringTransaction:
    """Test series creation and validation."""

    def test_create_monthly(self, db_session, sample_account):
        """Next occurrence should start at the first scheduled date."""
        series = recurring_service.create_recurring_transaction(
            db_session, sample_account.id, "  Gym  ", Decimal("-30.00"), Frequency.monthly,
            start_date=date(2024, 1, 10), day_of_month=31,
        )
        assert series.description == "Gym"
        assert series.currency == "USD"
        assert series.next_occurrence == date(2024, 1, 31)
        assert series.scope == BudgetScope.shared

    def test_biweekly_interval_forced(self, db_session, sample_account):
        series = recurring_service.create_recurring_transaction(
            db_session, sample_account.id, "Paycheck", Decimal("1200.00"), Frequency.biweekly,
            start_date=date(2024, 1, 5), day_of_week=4, interval=3,
        )
        assert series.interval == 2
        assert series.day_of_month is None

    def test_weekly_requires_day_of_week(self, db_session, sample_account):
        with pytest.raises(DomainError):
            recurring_service.create_recurring_transaction(
                db_session, sample_account.id, "Lunch", Decimal("-12.00"), Frequency.weekly,
                start_date=date(2024, 1, 1),
            )

    def test_unknown_account(self, db_session):
        with pytest.raises(DomainError):
            recurring_service.create_recurring_transaction(
                db_session, "missing", "Gym", Decimal("-30.00"), Frequency.monthly, start_date=date(2024, 1, 1),
            )

    def test_currency_must_match_account(self, db_session, sample_account):
        with pytest.raises(DomainError):
            recurring_service.create_recurring_transaction(
                db_session, sample_account.id, "Gym", Decimal("-30.00"), Frequency.monthly,
                start_date=date(2024, 1, 1), currency="EUR",
            )

    def test_end_before_start(self, db_session, sample_account):
        with pytest.raises(DomainError):
            recurring_service.create_recurring_transaction(
                db_session, sample_account.id, "Gym", Decimal("-30.00"), Frequency.monthly,
                start_date=date(2024, 3, 1), end_date=date(2024, 2, 1),
            )

    def test_blank_description(self, db_session, sample_account):
        with pytest.raises(DomainError):
            recurring_service.create_recurring_transaction(
                db_session, sample_account.id, "   ", Decimal("-30.00"), Frequency.monthly, start_date=date(2024, 1, 1),
            )


class TestSeriesLifecycle:
    """Test update, pause, skip-next and delete."""

    def test_update_pattern_recomputes_next_occurrence(self, db_session, monthly_series):
        updated = recurring_service.update_recurring_transaction(db_session, monthly_series.id, day_of_month=15)
        assert updated.day_of_month == 15
        assert updated.next_occurrence == date(2024, 1, 15)

    def test_update_to_weekly_needs_weekday(self, db_session, monthly_series):
        with pytest.raises(DomainError):
            recurring_service.update_recurring_transaction(db_session, monthly_series.id, frequency=Frequency.weekly)

    def test_update_unknown_returns_none(self, db_session):
        assert recurring_service.update_recurring_transaction(db_session, "missing", amount=Decimal("1")) is None

    def test_pause_and_resume(self, db_session, monthly_series):
        assert recurring_service.pause_recurring_transaction(db_session, monthly_series.id).is_active is False
        assert recurring_service.resume_recurring_transaction(db_session, monthly_series.id).is_active is True

    def test_skip_next(self, db_session, monthly_series):
        """Skipping next should record a skip and move the cursor forward."""
        series = recurring_service.skip_next(db_session, monthly_series.id)
        assert series.next_occurrence == date(2024, 2, 1)
        assert series.last_generated_date == date(2024, 1, 1)
        exception = db_session.query(RecurringTransactionException).one()
        assert exception.original_date == date(2024, 1, 1)
        assert exception.exception_type == ExceptionType.skipped

    def test_update_from_date_drops_later_exceptions(self, db_session, monthly_series):
        recurring_service.skip_instance(db_session, monthly_series.id, date(2024, 2, 1))
        recurring_service.modify_instance(db_session, monthly_series.id, date(2024, 4, 1), amount=Decimal("-70.00"))

        series = recurring_service.update_from_date(
            db_session, monthly_series.id, date(2024, 3, 1), amount=Decimal("-60.00")
        )
        assert series.amount == Decimal("-60.00")
        remaining = db_session.query(RecurringTransactionException).all()
        assert [e.original_date for e in remaining] == [date(2024, 2, 1)]

    def test_delete_unlinks_transactions_and_drops_matches(self, db_session, sample_account, monthly_series):
        realized = recurring_service.realize_instance(db_session, monthly_series.id, date(2024, 1, 1))
        txn = make_transaction(db_session, sample_account, date(2024, 2, 2), "-50.00", description="Landlord")
        reconciliation_service.create_manual_match(db_session, txn.id, monthly_series.id, date(2024, 2, 1))

        assert recurring_service.delete_recurring_transaction(db_session, monthly_series.id) is True
        db_session.expire_all()
        assert db_session.query(ReconciliationMatch).count() == 0
        assert db_session.get(Transaction, realized.id).recurring_transaction_id is None
        assert db_session.get(Transaction, txn.id).recurring_transaction_id is None

    def test_delete_unknown(self, db_session):
        assert recurring_service.delete_recurring_transaction(db_session, "missing") is False

    def test_list_by_account(self, db_session, sample_account, monthly_series):
        other = make_account(db_session, name="Other")
        listed = recurring_service.list_recurring_transactions(db_session, sample_account.id)
        assert [s.id for s in listed] == [monthly_series.id]
        assert recurring_service.list_recurring_transactions(db_session, other.id) == []
        assert len(recurring_service.list_recurring_transactions(db_session)) == 1


class TestOccurrenceOperations:
    """Test modify, skip and realize on a single occurrence."""

    def test_modify_requires_a_change(self, db_session, monthly_series):
        with pytest.raises(DomainError):
            recurring_service.modify_instance(db_session, monthly_series.id, date(2024, 2, 1))

    def test_modify_unscheduled_date(self, db_session, monthly_series):
        with pytest.raises(DomainError):
            recurring_service.modify_instance(db_session, monthly_series.id, date(2024, 2, 2), amount=Decimal("-1"))

    def test_modify_replaces_skip(self, db_session, monthly_series):
        recurring_service.skip_instance(db_session, monthly_series.id, date(2024, 2, 1))
        exception = recurring_service.modify_instance(
            db_session, monthly_series.id, date(2024, 2, 1), description="Rent (partial)"
        )
        assert exception.is_modified
        assert db_session.query(RecurringTransactionException).count() == 1

    def test_modify_twice_merges_fields(self, db_session, monthly_series):
        recurring_service.modify_instance(db_session, monthly_series.id, date(2024, 2, 1), amount=Decimal("-55.00"))
        exception = recurring_service.modify_instance(
            db_session, monthly_series.id, date(2024, 2, 1), new_date=date(2024, 2, 3)
        )
        assert exception.modified_amount == Decimal("-55.00")
        assert exception.effective_date == date(2024, 2, 3)

    def test_realize_uses_series_values(self, db_session, monthly_series):
        txn = recurring_service.realize_instance(db_session, monthly_series.id, date(2024, 2, 1))
        assert txn.amount == Decimal("-50.00")
        assert txn.date == date(2024, 2, 1)
        assert txn.recurring_transaction_id == monthly_series.id
        assert txn.recurring_instance_date == date(2024, 2, 1)

    def test_realize_precedence(self, db_session, monthly_series):
        """Explicit values win over the modified exception, which wins over the series."""
        recurring_service.modify_instance(
            db_session, monthly_series.id, date(2024, 2, 1),
            amount=Decimal("-60.00"), description="Rent + fee", new_date=date(2024, 2, 2),
        )
        txn = recurring_service.realize_instance(
            db_session, monthly_series.id, date(2024, 2, 1), description="Rent paid"
        )
        assert txn.amount == Decimal("-60.00")
        assert txn.description == "Rent paid"
        assert txn.date == date(2024, 2, 2)

    def test_realize_twice_rejected(self, db_session, monthly_series):
        recurring_service.realize_instance(db_session, monthly_series.id, date(2024, 2, 1))
        with pytest.raises(DomainError):
            recurring_service.realize_instance(db_session, monthly_series.id, date(2024, 2, 1))

    def test_realize_unscheduled_date(self, db_session, monthly_series):
        with pytest.raises(DomainError):
            recurring_service.realize_instance(db_session, monthly_series.id, date(2024, 2, 2))

    def test_unknown_series_returns_none(self, db_session):
        assert recurring_service.realize_instance(db_session, "missing", date(2024, 2, 1)) is None
        assert recurring_service.skip_instance(db_session, "missing", date(2024, 2, 1)) is None
        assert recurring_service.get_series_instances(db_session, "missing", date(2024, 1, 1), date(2024, 2, 1)) is None

    def test_series_instances_show_state(self, db_session, monthly_series):
        txn = recurring_service.realize_instance(db_session, monthly_series.id, date(2024, 1, 1))
        recurring_service.skip_instance(db_session, monthly_series.id, date(2024, 2, 1))
        instances = recurring_service.get_series_instances(
            db_session, monthly_series.id, date(2024, 1, 1), date(2024, 3, 31)
        )
        assert [i.instance_date for i in instances] == [date(2024, 1, 1), date(2024, 2, 1), date(2024, 3, 1)]
        assert instances[0].realized_transaction_id == txn.id
        assert instances[1].is_skipped
        assert not instances[2].is_realized
