"""Expense/sale matching engine.

Scoring, candidate ranking for the review queue, and selection of
auto-match pairs. Everything here is pure: callers load the pending pools
and persist the outcome through ``TransactionStore``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Protocol
from uuid import UUID

from reconciler.config import settings
from reconciler.logger import get_logger
from reconciler.models import MatchStrategy, TransactionStatus
from reconciler.services.errors import InvalidConfiguration, InvalidTransactionData
from reconciler.services.similarity import string_similarity

logger = get_logger(__name__)

AMOUNT_WEIGHT = 70
DATE_WEIGHT = 20
DESCRIPTION_WEIGHT = 10
MAX_SCORE = 100

# (share of the expense amount, points). Boundaries are strict less-than.
AMOUNT_TIERS: tuple[tuple[Decimal, int], ...] = (
    (Decimal("0.05"), 50),
    (Decimal("0.10"), 30),
    (Decimal("0.20"), 10),
)
SAME_DAY_POINTS = 20
NEXT_DAY_POINTS = 15
WITHIN_TOLERANCE_POINTS = 10

MIN_AUTO_MATCH_THRESHOLD = 50
MAX_DATE_TOLERANCE_DAYS = 365


class Matchable(Protocol):
    """Fields the engine reads from an expense or sale."""

    id: UUID
    txn_date: date
    amount: Decimal
    description: str | None


@dataclass(frozen=True)
class MatchConfiguration:
    """Runtime configuration for expense/sale scoring.

    Instances are validated on construction, so an engine entry point never
    runs with out-of-range settings.
    """

    date_tolerance_days: int
    auto_match_threshold: int
    match_strategy: MatchStrategy

    def __post_init__(self) -> None:
        tolerance = self.date_tolerance_days
        if isinstance(tolerance, bool) or not isinstance(tolerance, int):
            raise InvalidConfiguration(f"date_tolerance_days must be an integer, got {tolerance!r}")
        if not 0 <= tolerance <= MAX_DATE_TOLERANCE_DAYS:
            raise InvalidConfiguration(
                f"date_tolerance_days must be between 0 and {MAX_DATE_TOLERANCE_DAYS}, got {tolerance}"
            )

        threshold = self.auto_match_threshold
        if isinstance(threshold, bool) or not isinstance(threshold, int):
            raise InvalidConfiguration(f"auto_match_threshold must be an integer, got {threshold!r}")
        if not MIN_AUTO_MATCH_THRESHOLD <= threshold <= MAX_SCORE:
            raise InvalidConfiguration(
                f"auto_match_threshold must be between {MIN_AUTO_MATCH_THRESHOLD} and {MAX_SCORE}, got {threshold}"
            )

        try:
            strategy = MatchStrategy(self.match_strategy)
        except ValueError as exc:
            raise InvalidConfiguration(f"Unknown match_strategy: {self.match_strategy!r}") from exc
        object.__setattr__(self, "match_strategy", strategy)

    @property
    def uses_date(self) -> bool:
        return self.match_strategy in (MatchStrategy.AMOUNT_AND_DATE, MatchStrategy.FUZZY_MATCH)

    @property
    def uses_description(self) -> bool:
        return self.match_strategy == MatchStrategy.FUZZY_MATCH


def default_match_configuration() -> MatchConfiguration:
    """Configuration applied to owners without saved match settings."""
    return MatchConfiguration(
        date_tolerance_days=settings.match_default_date_tolerance_days,
        auto_match_threshold=settings.match_default_auto_match_threshold,
        match_strategy=settings.match_default_strategy,
    )


@dataclass
class MatchCandidate:
    """Ranked sale offered to a reviewer for one expense."""

    sale: Matchable
    score: int
    days_apart: int


@dataclass
class AutoMatchResult:
    """Pair selected for unattended commit."""

    expense_id: UUID
    sale_id: UUID
    confidence: int
    reasons: list[str] = field(default_factory=list)


def _amount_of(txn: Matchable) -> Decimal:
    value = txn.amount
    if value is None or isinstance(value, bool):
        raise InvalidTransactionData(f"Transaction {txn.id} has no usable amount: {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidTransactionData(f"Transaction {txn.id} has a malformed amount: {value!r}") from exc
    if not amount.is_finite():
        raise InvalidTransactionData(f"Transaction {txn.id} has a non-finite amount: {value!r}")
    return amount


def _date_of(txn: Matchable) -> date:
    value = txn.txn_date
    if isinstance(value, datetime):
        return value.date()
    if not isinstance(value, date):
        raise InvalidTransactionData(f"Transaction {txn.id} has a malformed date: {value!r}")
    return value


def days_between(expense: Matchable, sale: Matchable) -> int:
    """Whole calendar days between the two transactions."""
    return abs((_date_of(expense) - _date_of(sale)).days)


def score_amount(expense_amount: Decimal, sale_amount: Decimal) -> int:
    """Score amount agreement (0-70), tiered by share of the expense amount."""
    diff = abs(expense_amount - sale_amount)
    if diff == 0:
        return AMOUNT_WEIGHT
    base = abs(expense_amount)
    for share, points in AMOUNT_TIERS:
        if diff < base * share:
            return points
    return 0


def score_date(days_apart: int, config: MatchConfiguration) -> int:
    """Score date proximity (0-20); zero unless the strategy uses dates."""
    if not config.uses_date:
        return 0
    if days_apart == 0:
        return SAME_DAY_POINTS
    if days_apart <= 1:
        return NEXT_DAY_POINTS
    if days_apart <= config.date_tolerance_days:
        return WITHIN_TOLERANCE_POINTS
    return 0


def score_description(a: str | None, b: str | None, config: MatchConfiguration) -> int:
    """Score description similarity (0-10); zero unless fuzzy matching."""
    if not config.uses_description:
        return 0
    similarity = Decimal(str(string_similarity(a, b)))
    return int((similarity * DESCRIPTION_WEIGHT).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_match_score(expense: Matchable, sale: Matchable, config: MatchConfiguration) -> int:
    """Confidence (0-100) that an expense and a sale are the same event."""
    total = (
        score_amount(_amount_of(expense), _amount_of(sale))
        + score_date(days_between(expense, sale), config)
        + score_description(expense.description, sale.description, config)
    )
    return min(total, MAX_SCORE)


def match_reasons(expense: Matchable, sale: Matchable, config: MatchConfiguration) -> list[str]:
    """Human-readable explanation of why a pair scored."""
    reasons: list[str] = []
    if _amount_of(expense) == _amount_of(sale):
        reasons.append("Exact amount match")

    days_apart = days_between(expense, sale)
    if score_date(days_apart, config):
        if days_apart == 0:
            reasons.append("Same date")
        else:
            reasons.append(f"Within {days_apart} day{'s' if days_apart > 1 else ''}")

    if score_description(expense.description, sale.description, config):
        similarity = string_similarity(expense.description, sale.description)
        reasons.append(f"Description {round(similarity * 100)}% similar")
    return reasons


def _is_pending(txn: Matchable) -> bool:
    return getattr(txn, "status", TransactionStatus.PENDING) == TransactionStatus.PENDING


def rank_candidates(
    expense: Matchable,
    pending_sales: Sequence[Matchable],
    config: MatchConfiguration,
    *,
    min_score: int | None = None,
    top_n: int | None = None,
) -> list[MatchCandidate]:
    """Return the best sales for one expense, highest score first.

    Scores at or below ``min_score`` are dropped. Equal scores keep the
    order of ``pending_sales``.
    """
    floor = settings.candidate_min_score if min_score is None else min_score
    limit = settings.candidate_top_n if top_n is None else top_n

    candidates: list[MatchCandidate] = []
    for sale in pending_sales:
        if not _is_pending(sale):
            continue
        score = calculate_match_score(expense, sale, config)
        if score <= floor:
            continue
        candidates.append(MatchCandidate(sale=sale, score=score, days_apart=days_between(expense, sale)))

    candidates.sort(key=lambda candidate: candidate.score, reverse=True)
    return candidates[:limit]


def select_auto_matches(
    pending_expenses: Sequence[Matchable],
    pending_sales: Sequence[Matchable],
    config: MatchConfiguration,
) -> list[AutoMatchResult]:
    """Pick mutually exclusive expense/sale pairs at or above the threshold.

    Pairs are taken greedily in descending score order; ties go to the
    earlier expense, then the earlier sale. Once a sale is taken it leaves
    the pool, so no sale is ever selected for two expenses in one run.
    """
    scored: list[tuple[int, int, int]] = []
    for expense_index, expense in enumerate(pending_expenses):
        if not _is_pending(expense):
            continue
        for sale_index, sale in enumerate(pending_sales):
            if not _is_pending(sale):
                continue
            score = calculate_match_score(expense, sale, config)
            if score >= config.auto_match_threshold:
                scored.append((score, expense_index, sale_index))

    scored.sort(key=lambda item: (-item[0], item[1], item[2]))

    claimed_expenses: set[int] = set()
    claimed_sales: set[int] = set()
    selected: list[AutoMatchResult] = []
    for score, expense_index, sale_index in scored:
        if expense_index in claimed_expenses or sale_index in claimed_sales:
            continue
        claimed_expenses.add(expense_index)
        claimed_sales.add(sale_index)
        expense = pending_expenses[expense_index]
        sale = pending_sales[sale_index]
        selected.append(
            AutoMatchResult(
                expense_id=expense.id,
                sale_id=sale.id,
                confidence=score,
                reasons=match_reasons(expense, sale, config),
            )
        )

    logger.debug(
        "Auto-match selection complete",
        expenses=len(pending_expenses),
        sales=len(pending_sales),
        eligible_pairs=len(scored),
        selected=len(selected),
        threshold=config.auto_match_threshold,
        strategy=config.match_strategy.value,
    )
    return selected
