"""Tests for transaction-to-occurrence match scoring."""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

from app.exceptions import DomainError
from app.models import ConfidenceLevel, confidence_level_for
from app.services.matching import (
    MatchingTolerances,
    amount_within_tolerance,
    calculate_match,
    description_similarity,
    find_matches,
    normalize_description,
)
from app.services.projection_service import RecurringInstanceInfo

TOLERANCES = MatchingTolerances()


def _candidate(amount="-15.99", description="Netflix", instance_date=date(2024, 1, 15), currency="USD",
               series_id="series-1"):
    return RecurringInstanceInfo(
        series_id=series_id,
        instance_date=instance_date,
        effective_date=instance_date,
        account_id="account-1",
        account_name="Checking",
        description=description,
        amount=Decimal(amount),
        currency=currency,
    )


def _transaction(amount="-15.99", description="Netflix", txn_date=date(2024, 1, 15), currency="USD"):
    return SimpleNamespace(date=txn_date, amount=Decimal(amount), description=description, currency=currency)


class TestDescriptionSimilarity:

    def test_normalization(self):
        assert normalize_description("  netflix.com*  monthly-fee ") == "NETFLIXCOM MONTHLY FEE"

    def test_case_insensitive_equality(self):
        assert description_similarity("Netflix", "NETFLIX") == Decimal("1")

    def test_containment_uses_length_ratio(self):
        assert description_similarity("Netflix", "Netflix.com") == Decimal("0.7")

    def test_unrelated_text_scores_low(self):
        assert description_similarity("Netflix", "Grocery Store") < Decimal("0.6")

    def test_blank_scores_zero(self):
        assert description_similarity("", "Netflix") == Decimal("0")
        assert description_similarity("Netflix", "   ") == Decimal("0")


class TestCalculateMatch:
    """Scoring and hard filters for a single candidate."""

    def test_exact_match_scores_one(self):
        result = calculate_match(_transaction(), _candidate(), TOLERANCES)
        assert result.confidence_score == Decimal("1.0000")
        assert result.confidence_level == ConfidenceLevel.high
        assert result.amount_variance == Decimal("0")
        assert result.date_offset_days == 0

    def test_date_offset_reduces_score(self):
        result = calculate_match(_transaction(txn_date=date(2024, 1, 17)), _candidate(), TOLERANCES)
        assert result.confidence_score == Decimal("0.9429")
        assert result.date_offset_days == 2

    def test_amount_variance_is_expected_minus_actual(self):
        result = calculate_match(
            _transaction(amount="-105.00", description="Rent"),
            _candidate(amount="-100.00", description="Rent"),
            TOLERANCES,
        )
        assert result.amount_variance == Decimal("5.00")
        assert result.confidence_score == Decimal("0.8500")
        assert result.confidence_level == ConfidenceLevel.high

    def test_percent_tolerance_admits_large_amounts(self):
        result = calculate_match(
            _transaction(amount="-1080.00", description="Mortgage"),
            _candidate(amount="-1000.00", description="Mortgage"),
            TOLERANCES,
        )
        assert result.confidence_score == Decimal("0.7600")
        assert result.confidence_level == ConfidenceLevel.medium

    def test_amount_outside_both_tolerances_rejected(self):
        assert calculate_match(
            _transaction(amount="-125.00", description="Rent"),
            _candidate(amount="-100.00", description="Rent"),
            TOLERANCES,
        ) is None

    def test_date_outside_tolerance_rejected(self):
        assert calculate_match(_transaction(txn_date=date(2024, 1, 23)), _candidate(), TOLERANCES) is None
        assert calculate_match(_transaction(txn_date=date(2024, 1, 22)), _candidate(), TOLERANCES) is not None

    def test_opposite_sign_rejected(self):
        assert calculate_match(_transaction(amount="15.99"), _candidate(), TOLERANCES) is None

    def test_currency_mismatch_rejected(self):
        assert calculate_match(_transaction(currency="EUR"), _candidate(), TOLERANCES) is None

    def test_description_below_threshold_rejected(self):
        assert calculate_match(_transaction(description="Spotify"), _candidate(), TOLERANCES) is None

    def test_score_non_increasing_with_date_distance(self):
        scores = [
            calculate_match(_transaction(txn_date=date(2024, 1, 15) + timedelta(days=d)), _candidate(), TOLERANCES)
            .confidence_score
            for d in range(8)
        ]
        assert scores == sorted(scores, reverse=True)
        assert scores[0] == Decimal("1.0000")

    def test_score_non_increasing_with_amount_distance(self):
        scores = [
            calculate_match(
                _transaction(amount=str(Decimal("-100.00") - cents), description="Rent"),
                _candidate(amount="-100.00", description="Rent"),
                TOLERANCES,
            ).confidence_score
            for cents in (Decimal("0"), Decimal("1"), Decimal("2.50"), Decimal("5"), Decimal("9.99"))
        ]
        assert scores == sorted(scores, reverse=True)


class TestFindMatches:

    def test_sorted_best_first(self):
        near = _candidate(series_id="near", instance_date=date(2024, 1, 15))
        far = _candidate(series_id="far", instance_date=date(2024, 1, 18))
        results = find_matches(_transaction(), [far, near], TOLERANCES)
        assert [r.series_id for r in results] == ["near", "far"]

    def test_filtered_candidates_dropped(self):
        results = find_matches(_transaction(), [_candidate(), _candidate(description="Electric bill")], TOLERANCES)
        assert len(results) == 1

    def test_default_tolerances(self):
        assert len(find_matches(_transaction(), [_candidate()])) == 1


class TestTolerances:

    def test_negative_date_tolerance_rejected(self):
        with pytest.raises(DomainError):
            MatchingTolerances(date_tolerance_days=-1)

    def test_threshold_must_be_fraction(self):
        with pytest.raises(DomainError):
            MatchingTolerances(auto_match_threshold=Decimal("1.5"))

    def test_amount_within_tolerance_zero_expected(self):
        tolerances = MatchingTolerances(amount_tolerance_absolute=Decimal("0"))
        assert amount_within_tolerance(Decimal("0"), Decimal("0"), tolerances)
        assert not amount_within_tolerance(Decimal("-1"), Decimal("0"), tolerances)


def test_confidence_levels():
    assert confidence_level_for(Decimal("0.85")) == ConfidenceLevel.high
    assert confidence_level_for(Decimal("0.8499")) == ConfidenceLevel.medium
    assert confidence_level_for(Decimal("0.60")) == ConfidenceLevel.medium
    assert confidence_level_for(Decimal("0.5999")) == ConfidenceLevel.low


def test_confidence_level_uses_given_threshold():
    assert confidence_level_for(Decimal("0.87"), Decimal("0.90")) == ConfidenceLevel.medium
    assert confidence_level_for(Decimal("0.72"), Decimal("0.70")) == ConfidenceLevel.high
