"""
Reconciliation of actual transactions against expected recurring occurrences.

A match moves from pending to auto_matched, accepted or rejected. Accepting a
match links the transaction to the recurring occurrence so projections stop
showing that occurrence.
"""

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.exceptions import DomainError
from app.models.reconciliation import MatchStatus, ReconciliationMatch
from app.repositories import (
    RecurringTransactionRepository,
    ReconciliationMatchRepository,
    TransactionRepository,
)
from app.services.matching import MatchingTolerances, find_matches as score_candidates
from app.services.projection_service import flatten, get_instances_by_date_range

logger = logging.getLogger(__name__)

STATUS_MATCHED = "matched"
STATUS_PENDING = "pending"
STATUS_MISSING = "missing"


@dataclass
class FindMatchesResult:
    matches_by_transaction: Dict[str, List[ReconciliationMatch]] = field(default_factory=dict)
    total_matches: int = 0
    high_confidence_count: int = 0


@dataclass
class InstanceStatus:
    series_id: str
    description: str
    instance_date: date
    expected_amount: Decimal
    status: str
    match_id: Optional[str] = None
    matched_transaction_id: Optional[str] = None
    actual_amount: Optional[Decimal] = None
    amount_variance: Optional[Decimal] = None


@dataclass
class ReconciliationStatus:
    year: int
    month: int
    matched_count: int = 0
    pending_count: int = 0
    missing_count: int = 0
    skipped_count: int = 0
    instances: List[InstanceStatus] = field(default_factory=list)

    @property
    def total_expected(self) -> int:
        return len(self.instances)


def find_matches(
    db: Session,
    transaction_ids: Iterable[str],
    start: date,
    end: date,
    tolerances: Optional[MatchingTolerances] = None,
) -> FindMatchesResult:
    """
    Score each transaction against every active series' open occurrences in
    [start, end] and persist a match for each result not already recorded.
    All new matches are committed together.
    """
    tolerances = tolerances or MatchingTolerances.default()
    transaction_repo = TransactionRepository(db)
    recurring_repo = RecurringTransactionRepository(db)
    match_repo = ReconciliationMatchRepository(db)

    candidates = flatten(get_instances_by_date_range(db, recurring_repo.get_active(), start, end))
    result = FindMatchesResult()
    # Matches added in this batch are not flushed, so the stored check cannot see them
    added = set()

    for transaction_id in dict.fromkeys(transaction_ids):
        transaction = transaction_repo.get_by_id(transaction_id)
        if transaction is None:
            logger.warning("Skipping unknown transaction %s", transaction_id)
            continue
        if transaction.recurring_transaction_id or transaction.is_transfer:
            continue

        created = []
        for scored in score_candidates(transaction, candidates, tolerances):
            key = (transaction.id, scored.series_id, scored.instance_date)
            if key in added or match_repo.exists(*key):
                continue
            series = recurring_repo.get_by_id(scored.series_id)
            if series is None:
                logger.warning("Skipping match for missing recurring transaction %s", scored.series_id)
                continue

            match = ReconciliationMatch.create(
                imported_transaction_id=transaction.id,
                recurring_transaction_id=scored.series_id,
                instance_date=scored.instance_date,
                confidence_score=scored.confidence_score,
                amount_variance=scored.amount_variance,
                date_offset_days=scored.date_offset_days,
                description_similarity=scored.description_similarity,
                scope=series.scope,
                high_threshold=tolerances.auto_match_threshold,
            )
            if scored.confidence_score >= tolerances.auto_match_threshold:
                match.auto_match()
                result.high_confidence_count += 1
            match_repo.add(match)
            added.add(key)
            created.append(match)
            logger.debug(
                "Matched transaction %s to %s on %s (%s, %s)",
                transaction.id, series.description, scored.instance_date,
                scored.confidence_score, match.status.value,
            )

        if created:
            result.matches_by_transaction[transaction.id] = created
            result.total_matches += len(created)

    db.commit()
    logger.info(
        "Reconciliation pass %s..%s: %d match(es), %d high confidence",
        start, end, result.total_matches, result.high_confidence_count,
    )
    return result


def accept_match(db: Session, match_id: str) -> Optional[ReconciliationMatch]:
    """Accept a match and link its transaction to the recurring occurrence."""
    match = ReconciliationMatchRepository(db).get_by_id(match_id)
    if match is None:
        return None

    match.accept()
    transaction = TransactionRepository(db).get_by_id(match.imported_transaction_id)
    if transaction is not None:
        transaction.link_to_recurring_instance(match.recurring_transaction_id, match.recurring_instance_date)

    db.commit()
    db.refresh(match)
    return match


def reject_match(db: Session, match_id: str) -> Optional[ReconciliationMatch]:
    match = ReconciliationMatchRepository(db).get_by_id(match_id)
    if match is None:
        return None

    match.reject()
    db.commit()
    db.refresh(match)
    return match


def bulk_accept_matches(db: Session, match_ids: Iterable[str]) -> List[ReconciliationMatch]:
    """Accept each id independently; ones that fail are logged and left as they were."""
    accepted = []
    for match_id in match_ids:
        try:
            match = accept_match(db, match_id)
        except DomainError as e:
            logger.warning("Could not accept match %s: %s", match_id, e.message)
            continue
        if match is not None:
            accepted.append(match)
    return accepted


def create_manual_match(
    db: Session,
    transaction_id: str,
    series_id: str,
    instance_date: date,
) -> Optional[ReconciliationMatch]:
    """Accepted match with full confidence, bypassing scoring. Returns an existing match unchanged."""
    transaction = TransactionRepository(db).get_by_id(transaction_id)
    if transaction is None:
        return None
    series = RecurringTransactionRepository(db).get_by_id(series_id)
    if series is None:
        return None

    match_repo = ReconciliationMatchRepository(db)
    existing = match_repo.find(transaction_id, series_id, instance_date)
    if existing is not None:
        return existing

    if transaction.currency != series.currency:
        raise DomainError(
            f"Transaction currency {transaction.currency} does not match {series.currency}."
        )

    match = ReconciliationMatch.create(
        imported_transaction_id=transaction_id,
        recurring_transaction_id=series_id,
        instance_date=instance_date,
        confidence_score=Decimal("1.0"),
        amount_variance=Decimal(series.amount) - Decimal(transaction.amount),
        date_offset_days=(transaction.date - instance_date).days,
        scope=series.scope,
    )
    match.accept()
    transaction.link_to_recurring_instance(series_id, instance_date)
    match_repo.add(match)
    db.commit()
    db.refresh(match)
    return match


def get_reconciliation_status(db: Session, year: int, month: int) -> ReconciliationStatus:
    """Classify every expected occurrence in the month as matched, pending or missing."""
    start = date(year, month, 1)
    end = date(year, month, calendar.monthrange(year, month)[1])

    series = RecurringTransactionRepository(db).get_active()
    instances = flatten(get_instances_by_date_range(
        db, series, start, end, include_skipped=True, include_realized=True
    ))

    lookup: Dict[tuple, List[ReconciliationMatch]] = {}
    for match in ReconciliationMatchRepository(db).get_by_period(year, month):
        lookup.setdefault((match.recurring_transaction_id, match.recurring_instance_date), []).append(match)

    transaction_repo = TransactionRepository(db)
    status = ReconciliationStatus(year=year, month=month)

    for instance in instances:
        if instance.is_skipped:
            status.skipped_count += 1
            continue

        matches = lookup.get((instance.series_id, instance.instance_date), [])
        matched = next(
            (m for m in matches if m.status in (MatchStatus.accepted, MatchStatus.auto_matched)), None
        )
        pending = next((m for m in matches if m.status == MatchStatus.pending), None)

        row = InstanceStatus(
            series_id=instance.series_id,
            description=instance.description,
            instance_date=instance.instance_date,
            expected_amount=instance.amount,
            status=STATUS_MISSING,
        )
        if matched is not None:
            row.status = STATUS_MATCHED
            row.match_id = matched.id
            row.matched_transaction_id = matched.imported_transaction_id
            row.amount_variance = matched.amount_variance
            transaction = transaction_repo.get_by_id(matched.imported_transaction_id)
            if transaction is not None:
                row.actual_amount = transaction.amount
            status.matched_count += 1
        elif instance.is_realized:
            # Realized directly (manually or by auto-realize) without a reconciliation match
            transaction = transaction_repo.get_by_recurring_instance(instance.series_id, instance.instance_date)
            row.status = STATUS_MATCHED
            if transaction is not None:
                row.matched_transaction_id = transaction.id
                row.actual_amount = transaction.amount
                row.amount_variance = instance.amount - transaction.amount
            status.matched_count += 1
        elif pending is not None:
            row.status = STATUS_PENDING
            row.match_id = pending.id
            status.pending_count += 1
        else:
            status.missing_count += 1
        status.instances.append(row)

    return status


def get_pending_matches(db: Session) -> List[ReconciliationMatch]:
    return ReconciliationMatchRepository(db).get_pending_matches()


def get_matches_for_series(
    db: Session, series_id: str, start: date, end: date
) -> Optional[List[ReconciliationMatch]]:
    """Matches for one series over [start, end]; None for an unknown series."""
    if RecurringTransactionRepository(db).get_by_id(series_id) is None:
        return None
    return ReconciliationMatchRepository(db).get_by_recurring_transaction(series_id, start, end)


def get_matches_for_transaction(db: Session, transaction_id: str) -> Optional[List[ReconciliationMatch]]:
    """Every match recorded for one transaction, best score first."""
    if TransactionRepository(db).get_by_id(transaction_id) is None:
        return None
    return ReconciliationMatchRepository(db).get_by_transaction_id(transaction_id)
