"""Auto-match runs, review queue, and manual confirm/ignore."""

from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from reconciler.logger import async_log_timing, get_logger, log_exception
from reconciler.models import Expense, Sale, Transaction, TransactionKind, TransactionStatus
from reconciler.services.errors import (
    PartialCommitInconsistency,
    StaleMatchTarget,
    StoreUnavailable,
    TransactionNotFound,
)
from reconciler.services.match_settings import get_match_configuration
from reconciler.services.matching import (
    AutoMatchResult,
    MatchCandidate,
    MatchConfiguration,
    rank_candidates,
    select_auto_matches,
)
from reconciler.services.transaction_store import TransactionStore

logger = get_logger(__name__)


@dataclass
class MatchingContext:
    """Store and configuration for one owner, valid for one request."""

    store: TransactionStore
    config: MatchConfiguration

    @property
    def user_id(self) -> UUID:
        return self.store.user_id


async def open_matching_context(db: AsyncSession, user_id: UUID) -> MatchingContext:
    config = await get_match_configuration(db, user_id)
    return MatchingContext(store=TransactionStore(db, user_id), config=config)


@dataclass
class AutoMatchSummary:
    """Outcome of one auto-match run."""

    matched_count: int
    total_expenses: int
    total_sales: int
    matches: list[AutoMatchResult] = field(default_factory=list)
    skipped: int = 0


@dataclass
class ExpenseCandidates:
    """One review queue row."""

    expense: Expense
    candidates: list[MatchCandidate]


async def run_auto_match(context: MatchingContext) -> AutoMatchSummary:
    """Select and commit every auto-matchable pair for the owner.

    Each pair is committed on its own. A pair whose side stopped being
    pending since selection is counted as skipped. If the store fails
    mid-run, pairs committed so far remain and the error propagates.
    """
    store = context.store
    user_id = str(context.user_id)

    async with async_log_timing("auto_match", logger=logger, user_id=user_id) as timing:
        expenses = await store.list_pending(TransactionKind.EXPENSE)
        sales = await store.list_pending(TransactionKind.SALE)
        selected = select_auto_matches(expenses, sales, context.config)

        committed: list[AutoMatchResult] = []
        skipped = 0
        try:
            for result in selected:
                if await store.commit_match(result.expense_id, result.sale_id):
                    committed.append(result)
                else:
                    skipped += 1
        except (StoreUnavailable, PartialCommitInconsistency) as exc:
            log_exception(
                logger,
                exc,
                "Auto-match aborted",
                user_id=user_id,
                committed=len(committed),
                remaining=len(selected) - len(committed) - skipped,
            )
            raise

        timing.update(
            total_expenses=len(expenses),
            total_sales=len(sales),
            selected=len(selected),
            matched_count=len(committed),
            skipped=skipped,
        )

    return AutoMatchSummary(
        matched_count=len(committed),
        total_expenses=len(expenses),
        total_sales=len(sales),
        matches=committed,
        skipped=skipped,
    )


async def review_queue(context: MatchingContext) -> list[ExpenseCandidates]:
    """Every pending expense with its top-ranked pending sales."""
    expenses = await context.store.list_pending(TransactionKind.EXPENSE)
    sales = await context.store.list_pending(TransactionKind.SALE)
    return [
        ExpenseCandidates(expense=expense, candidates=rank_candidates(expense, sales, context.config))
        for expense in expenses
    ]


async def candidates_for_expense(
    context: MatchingContext,
    expense_id: UUID,
    *,
    min_score: int | None = None,
    top_n: int | None = None,
) -> ExpenseCandidates:
    """Ranked candidates for one expense.

    Raises:
        TransactionNotFound: the owner has no such expense.
        StaleMatchTarget: the expense is no longer pending.
    """
    expense = await _require(context.store, TransactionKind.EXPENSE, expense_id)
    if expense.status != TransactionStatus.PENDING:
        raise StaleMatchTarget(
            f"Expense {expense_id} is {expense.status.value}",
            transaction_ids=[expense_id],
        )
    sales = await context.store.list_pending(TransactionKind.SALE)
    candidates = rank_candidates(expense, sales, context.config, min_score=min_score, top_n=top_n)
    return ExpenseCandidates(expense=expense, candidates=candidates)


async def confirm_match(context: MatchingContext, expense_id: UUID, sale_id: UUID) -> tuple[Expense, Sale]:
    """Manually pair an expense with a sale, regardless of score.

    Raises:
        TransactionNotFound: either id is unknown for the owner.
        StaleMatchTarget: either side is not pending, or stopped being
            pending before the write landed.
    """
    store = context.store
    expense = await _require(store, TransactionKind.EXPENSE, expense_id)
    sale = await _require(store, TransactionKind.SALE, sale_id)

    not_pending = [txn.id for txn in (expense, sale) if txn.status != TransactionStatus.PENDING]
    if not_pending:
        raise StaleMatchTarget(
            "Both transactions must be pending to confirm a match",
            transaction_ids=not_pending,
        )

    if not await store.commit_match(expense_id, sale_id):
        raise StaleMatchTarget(
            "Transaction was matched or ignored concurrently",
            transaction_ids=[expense_id, sale_id],
        )

    logger.info(
        "Match confirmed manually",
        user_id=str(context.user_id),
        expense_id=str(expense_id),
        sale_id=str(sale_id),
    )
    return (
        await _require(store, TransactionKind.EXPENSE, expense_id),
        await _require(store, TransactionKind.SALE, sale_id),
    )


async def ignore_transaction(
    context: MatchingContext, kind: TransactionKind, transaction_id: UUID
) -> Transaction:
    """Exclude a pending transaction from matching for good.

    Raises:
        TransactionNotFound: the owner has no such transaction.
        StaleMatchTarget: the transaction is already matched or ignored.
    """
    store = context.store
    txn = await _require(store, kind, transaction_id)
    if txn.status != TransactionStatus.PENDING or not await store.set_ignored(kind, transaction_id):
        raise StaleMatchTarget(
            f"{kind.value.capitalize()} {transaction_id} is not pending",
            transaction_ids=[transaction_id],
        )

    logger.info(
        "Transaction ignored",
        user_id=str(context.user_id),
        kind=kind.value,
        transaction_id=str(transaction_id),
    )
    return await _require(store, kind, transaction_id)


async def _require(store: TransactionStore, kind: TransactionKind, transaction_id: UUID) -> Transaction:
    txn = await store.get(kind, transaction_id)
    if txn is None:
        raise TransactionNotFound(f"{kind.value.capitalize()} {transaction_id} not found")
    return txn
