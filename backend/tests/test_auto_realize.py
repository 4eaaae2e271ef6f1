"""Tests for auto-realizing past-due recurring occurrences."""

import pytest
from datetime import date
from decimal import Decimal

from app.exceptions import DomainError
from app.models import AppSettings, RecurringTransaction, Transaction, TransferDirection
from app.models.app_settings import get_or_create_app_settings
from app.services import recurring_service, recurring_transfer_service
from app.services.auto_realize_service import auto_realize_past_due_items_if_enabled, get_lookback_window
from app.services.projection_service import get_instances_by_date_range
from conftest import make_account, make_recurring


def _realized(db_session, series_id):
    return db_session.query(Transaction).filter(
        Transaction.recurring_transaction_id == series_id
    ).order_by(Transaction.recurring_instance_date).all()


class TestLookbackWindow:

    def test_window_excludes_today(self):
        assert get_lookback_window(date(2024, 2, 1), 30) == (date(2024, 1, 2), date(2024, 1, 31))

    def test_single_day_window(self):
        assert get_lookback_window(date(2024, 2, 1), 1) == (date(2024, 1, 31), date(2024, 1, 31))


class TestAutoRealize:
    """Auto-realization of recurring transactions."""

    def test_disabled_is_a_no_op(self, db_session, monthly_series):
        assert auto_realize_past_due_items_if_enabled(db_session, date(2024, 3, 15)) == 0
        assert _realized(db_session, monthly_series.id) == []

    def test_realizes_occurrences_in_window(self, db_session, monthly_series, auto_realize_enabled):
        created = auto_realize_past_due_items_if_enabled(db_session, date(2024, 3, 15))
        assert created == 1
        realized = _realized(db_session, monthly_series.id)
        assert len(realized) == 1
        txn = realized[0]
        assert txn.date == date(2024, 3, 1)
        assert txn.recurring_instance_date == date(2024, 3, 1)
        assert txn.amount == Decimal("-50.00")
        assert txn.description == "Rent"

    def test_today_is_never_realized(self, db_session, monthly_series, auto_realize_enabled):
        assert auto_realize_past_due_items_if_enabled(db_session, date(2024, 3, 1)) == 1
        dates = [t.recurring_instance_date for t in _realized(db_session, monthly_series.id)]
        assert dates == [date(2024, 2, 1)]

    def test_second_run_is_idempotent(self, db_session, monthly_series, auto_realize_enabled):
        auto_realize_past_due_items_if_enabled(db_session, date(2024, 3, 15))
        assert auto_realize_past_due_items_if_enabled(db_session, date(2024, 3, 15)) == 0
        assert len(_realized(db_session, monthly_series.id)) == 1

    def test_longer_lookback_realizes_more(self, db_session, monthly_series, auto_realize_enabled):
        auto_realize_enabled.update_past_due_lookback_days(90)
        db_session.commit()
        assert auto_realize_past_due_items_if_enabled(db_session, date(2024, 3, 15)) == 3

    def test_skipped_occurrence_not_realized(self, db_session, monthly_series, auto_realize_enabled):
        recurring_service.skip_instance(db_session, monthly_series.id, date(2024, 3, 1))
        assert auto_realize_past_due_items_if_enabled(db_session, date(2024, 3, 15)) == 0

    def test_modified_occurrence_uses_overrides(self, db_session, monthly_series, auto_realize_enabled):
        recurring_service.modify_instance(
            db_session, monthly_series.id, date(2024, 3, 1),
            amount=Decimal("-60.00"), description="Rent + fee", new_date=date(2024, 3, 2),
        )
        auto_realize_past_due_items_if_enabled(db_session, date(2024, 3, 15))
        txn = _realized(db_session, monthly_series.id)[0]
        assert txn.amount == Decimal("-60.00")
        assert txn.description == "Rent + fee"
        assert txn.date == date(2024, 3, 2)
        assert txn.recurring_instance_date == date(2024, 3, 1)

    def test_paused_series_not_realized(self, db_session, monthly_series, auto_realize_enabled):
        recurring_service.pause_recurring_transaction(db_session, monthly_series.id)
        assert auto_realize_past_due_items_if_enabled(db_session, date(2024, 3, 15)) == 0

    def test_account_filter(self, db_session, monthly_series, auto_realize_enabled):
        other = make_account(db_session, name="Other")
        other_series = make_recurring(db_session, other, description="Gym", amount="-30.00", day_of_month=1)
        created = auto_realize_past_due_items_if_enabled(db_session, date(2024, 3, 15), account_id=other.id)
        assert created == 1
        assert _realized(db_session, monthly_series.id) == []
        assert len(_realized(db_session, other_series.id)) == 1

    def test_manually_realized_occurrence_left_alone(self, db_session, monthly_series, auto_realize_enabled):
        recurring_service.realize_instance(db_session, monthly_series.id, date(2024, 3, 1), amount=Decimal("-49.00"))
        assert auto_realize_past_due_items_if_enabled(db_session, date(2024, 3, 15)) == 0
        assert _realized(db_session, monthly_series.id)[0].amount == Decimal("-49.00")


class TestAutoRealizeTransfers:

    def test_transfer_creates_two_legs(self, db_session, monthly_transfer, auto_realize_enabled):
        created = auto_realize_past_due_items_if_enabled(db_session, date(2024, 1, 20))
        assert created == 2
        legs = db_session.query(Transaction).filter(Transaction.recurring_transfer_id == monthly_transfer.id).all()
        assert len(legs) == 2
        assert legs[0].transfer_id == legs[1].transfer_id
        assert {l.transfer_direction for l in legs} == {TransferDirection.source, TransferDirection.destination}
        assert sum(l.amount for l in legs) == Decimal("0")

    def test_skipped_transfer_not_realized(self, db_session, monthly_transfer, auto_realize_enabled):
        recurring_transfer_service.skip_instance(db_session, monthly_transfer.id, date(2024, 1, 10))
        assert auto_realize_past_due_items_if_enabled(db_session, date(2024, 1, 20)) == 0

    def test_modified_transfer_uses_overrides(self, db_session, monthly_transfer, auto_realize_enabled):
        recurring_transfer_service.modify_instance(
            db_session, monthly_transfer.id, date(2024, 1, 10),
            amount=Decimal("250.00"), new_date=date(2024, 1, 12),
        )
        assert auto_realize_past_due_items_if_enabled(db_session, date(2024, 1, 20)) == 2
        legs = db_session.query(Transaction).filter(Transaction.recurring_transfer_id == monthly_transfer.id).all()
        assert sorted(l.amount for l in legs) == [Decimal("-250.00"), Decimal("250.00")]
        assert {l.date for l in legs} == {date(2024, 1, 12)}
        assert {l.recurring_transfer_instance_date for l in legs} == {date(2024, 1, 10)}


class TestAppSettings:

    def test_created_from_config_defaults(self, db_session):
        app_settings = get_or_create_app_settings(db_session)
        assert app_settings.id == 1
        assert app_settings.auto_realize_past_due_items is False
        assert app_settings.past_due_lookback_days == 30
        assert db_session.query(AppSettings).count() == 1

    @pytest.mark.parametrize("days", [0, -5, 366])
    def test_invalid_lookback_rejected(self, db_session, days):
        app_settings = get_or_create_app_settings(db_session)
        with pytest.raises(DomainError):
            app_settings.update_past_due_lookback_days(days)


def test_skipped_january_rent_end_to_end(db_session, sample_account, auto_realize_enabled):
    """Skipped Jan 1 rent is neither realized on Feb 1 nor projected for January."""
    series = make_recurring(db_session, sample_account, amount="-50.00", day_of_month=1)
    recurring_service.skip_instance(db_session, series.id, date(2024, 1, 1))

    created = auto_realize_past_due_items_if_enabled(db_session, date(2024, 2, 1))

    assert created == 0
    assert _realized(db_session, series.id) == []
    projected = get_instances_by_date_range(
        db_session, db_session.query(RecurringTransaction).all(), date(2024, 1, 1), date(2024, 1, 31)
    )
    assert date(2024, 1, 1) not in projected
