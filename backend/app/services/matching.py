"""
Scoring of actual transactions against expected recurring occurrences.

Confidence is a weighted blend of description similarity (0.50), amount
closeness (0.30) and date closeness (0.20). Candidates outside the date or
amount tolerance, or below the description threshold, are not returned.
"""

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from rapidfuzz.distance import Levenshtein

from app.config import settings
from app.exceptions import DomainError
from app.models.reconciliation import ConfidenceLevel, confidence_level_for
from app.services.projection_service import RecurringInstanceInfo

DESCRIPTION_WEIGHT = Decimal("0.50")
AMOUNT_WEIGHT = Decimal("0.30")
DATE_WEIGHT = Decimal("0.20")

SCORE_PLACES = Decimal("0.0001")
ONE = Decimal("1")
ZERO = Decimal("0")

_NOISE = re.compile(r"[.,*#]")
_SEPARATORS = re.compile(r"[-_]")
_SPACES = re.compile(r"\s+")


@dataclass(frozen=True)
class MatchingTolerances:
    date_tolerance_days: int = 7
    amount_tolerance_percent: Decimal = Decimal("0.10")
    amount_tolerance_absolute: Decimal = Decimal("10.00")
    description_similarity_threshold: Decimal = Decimal("0.6")
    auto_match_threshold: Decimal = Decimal("0.85")

    def __post_init__(self):
        if self.date_tolerance_days < 0:
            raise DomainError("Date tolerance cannot be negative.")
        if self.amount_tolerance_percent < 0 or self.amount_tolerance_absolute < 0:
            raise DomainError("Amount tolerances cannot be negative.")
        if not ZERO <= self.description_similarity_threshold <= ONE:
            raise DomainError("Description similarity threshold must be between 0 and 1.")
        if not ZERO <= self.auto_match_threshold <= ONE:
            raise DomainError("Auto-match threshold must be between 0 and 1.")

    @classmethod
    def default(cls) -> "MatchingTolerances":
        return cls(
            date_tolerance_days=settings.match_date_tolerance_days,
            amount_tolerance_percent=settings.match_amount_tolerance_percent,
            amount_tolerance_absolute=settings.match_amount_tolerance_absolute,
            description_similarity_threshold=settings.match_description_similarity_threshold,
            auto_match_threshold=settings.auto_match_threshold,
        )


@dataclass
class TransactionMatchResult:
    series_id: str
    instance_date: date
    confidence_score: Decimal
    confidence_level: ConfidenceLevel
    amount_variance: Decimal  # expected - actual
    date_offset_days: int  # transaction date - instance date
    description_similarity: Decimal


def normalize_description(text: str) -> str:
    text = _NOISE.sub("", text.upper())
    text = _SEPARATORS.sub(" ", text)
    return _SPACES.sub(" ", text).strip()


def description_similarity(left: str, right: str) -> Decimal:
    """1.0 for equal normalized text, length ratio on containment, else normalized Levenshtein."""
    if not left or not left.strip() or not right or not right.strip():
        return ZERO
    a = normalize_description(left)
    b = normalize_description(right)
    if a == b:
        return ONE
    longer = max(len(a), len(b))
    if a in b or b in a:
        return Decimal(min(len(a), len(b))) / Decimal(longer)
    distance = Levenshtein.distance(a, b)
    return max(ZERO, ONE - Decimal(distance) / Decimal(longer))


def amount_within_tolerance(actual: Decimal, expected: Decimal, tolerances: MatchingTolerances) -> bool:
    difference = abs(actual - expected)
    if difference <= tolerances.amount_tolerance_absolute:
        return True
    if expected != 0:
        return difference / abs(expected) <= tolerances.amount_tolerance_percent
    return actual == 0


def amount_score(actual: Decimal, expected: Decimal, tolerances: MatchingTolerances) -> Decimal:
    difference = abs(actual - expected)
    if difference == 0:
        return ONE

    absolute = ZERO
    if tolerances.amount_tolerance_absolute > 0:
        absolute = ONE - min(ONE, difference / tolerances.amount_tolerance_absolute)
    if expected == 0:
        return absolute

    percent = ZERO
    if tolerances.amount_tolerance_percent > 0:
        percent = ONE - min(ONE, (difference / abs(expected)) / tolerances.amount_tolerance_percent)
    return max(percent, absolute)


def date_score(offset_days: int, tolerance_days: int) -> Decimal:
    if tolerance_days == 0:
        return ONE if offset_days == 0 else ZERO
    return max(ZERO, ONE - Decimal(abs(offset_days)) / Decimal(tolerance_days))


def _compatible(transaction, candidate: RecurringInstanceInfo) -> bool:
    if transaction.currency != candidate.currency:
        return False
    # An inflow never matches an expected outflow and vice versa
    return transaction.amount == 0 or candidate.amount == 0 or (transaction.amount > 0) == (candidate.amount > 0)


def calculate_match(
    transaction,
    candidate: RecurringInstanceInfo,
    tolerances: MatchingTolerances,
) -> Optional[TransactionMatchResult]:
    """Score one candidate, or None if any hard filter rejects it."""
    if not _compatible(transaction, candidate):
        return None

    offset = (transaction.date - candidate.instance_date).days
    if abs(offset) > tolerances.date_tolerance_days:
        return None

    actual = Decimal(transaction.amount)
    expected = Decimal(candidate.amount)
    if not amount_within_tolerance(actual, expected, tolerances):
        return None

    similarity = description_similarity(transaction.description, candidate.description)
    if similarity < tolerances.description_similarity_threshold:
        return None

    score = (
        similarity * DESCRIPTION_WEIGHT
        + amount_score(actual, expected, tolerances) * AMOUNT_WEIGHT
        + date_score(offset, tolerances.date_tolerance_days) * DATE_WEIGHT
    ).quantize(SCORE_PLACES)

    return TransactionMatchResult(
        series_id=candidate.series_id,
        instance_date=candidate.instance_date,
        confidence_score=score,
        confidence_level=confidence_level_for(score, tolerances.auto_match_threshold),
        amount_variance=expected - actual,
        date_offset_days=offset,
        description_similarity=similarity.quantize(SCORE_PLACES),
    )


def find_matches(
    transaction,
    candidates: Iterable[RecurringInstanceInfo],
    tolerances: Optional[MatchingTolerances] = None,
) -> List[TransactionMatchResult]:
    """All candidates that pass the filters, best first."""
    tolerances = tolerances or MatchingTolerances.default()
    results = [r for r in (calculate_match(transaction, c, tolerances) for c in candidates) if r]
    return sorted(results, key=lambda r: r.confidence_score, reverse=True)
