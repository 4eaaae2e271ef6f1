"""Tests for import deduplication hashing."""

import pytest
from datetime import date
from decimal import Decimal

from app.services.deduplication_service import BatchDeduplicator, generate_transaction_hash, is_duplicate
from conftest import make_transaction

BASE = (date(2024, 1, 15), Decimal("-50.00"), "AMAZON PURCHASE", "account-123")


class TestTransactionHash:
    """Test hash generation for deduplication."""

    def test_same_inputs_same_hash(self):
        assert generate_transaction_hash(*BASE) == generate_transaction_hash(*BASE)

    @pytest.mark.parametrize("changed", [
        (date(2024, 1, 16), Decimal("-50.00"), "AMAZON PURCHASE", "account-123"),
        (date(2024, 1, 15), Decimal("-51.00"), "AMAZON PURCHASE", "account-123"),
        (date(2024, 1, 15), Decimal("-50.00"), "AMAZON PURCHASE 2", "account-123"),
        (date(2024, 1, 15), Decimal("-50.00"), "AMAZON PURCHASE", "account-456"),
    ])
    def test_any_field_change_changes_hash(self, changed):
        assert generate_transaction_hash(*changed) != generate_transaction_hash(*BASE)

    def test_description_normalized(self):
        """Case and surrounding whitespace should not matter."""
        assert generate_transaction_hash(
            date(2024, 1, 15), Decimal("-50.00"), "  amazon purchase ", "account-123"
        ) == generate_transaction_hash(*BASE)

    def test_amount_scale_ignored(self):
        """-50 and -50.00 are the same amount."""
        assert generate_transaction_hash(
            date(2024, 1, 15), Decimal("-50"), "AMAZON PURCHASE", "account-123"
        ) == generate_transaction_hash(*BASE)

    def test_hash_is_sha256(self):
        hash_val = generate_transaction_hash(*BASE)
        assert len(hash_val) == 64
        assert all(c in "0123456789abcdef" for c in hash_val)


class TestIsDuplicate:
    """Test duplicate detection in database."""

    def test_no_duplicate_empty_db(self, db_session):
        assert is_duplicate(db_session, "somehash123") is False

    def test_finds_existing_hash(self, db_session, sample_account):
        txn_hash = generate_transaction_hash(date(2024, 1, 15), Decimal("-5.00"), "Coffee", sample_account.id)
        make_transaction(db_session, sample_account, date(2024, 1, 15), "-5.00", hash=txn_hash)
        assert is_duplicate(db_session, txn_hash) is True
        assert is_duplicate(db_session, "differenthash456") is False


class TestBatchDeduplicator:

    def test_repeat_within_batch(self, db_session):
        dedup = BatchDeduplicator(db_session)
        assert dedup.is_duplicate("abc") is False
        assert dedup.is_duplicate("abc") is True
        assert dedup.is_duplicate("def") is False

    def test_stored_hash(self, db_session, sample_account):
        make_transaction(db_session, sample_account, date(2024, 1, 15), "-5.00", hash="stored")
        assert BatchDeduplicator(db_session).is_duplicate("stored") is True
