"""Matching API router: auto-match, review queue, confirm and ignore."""

from uuid import UUID

from fastapi import APIRouter, Query

from reconciler.deps import CurrentUserId, DbSession
from reconciler.models import TransactionKind
from reconciler.schemas import (
    AutoMatchResponse,
    AutoMatchResultResponse,
    ConfirmMatchRequest,
    ConfirmMatchResponse,
    ExpenseCandidatesResponse,
    MatchCandidateResponse,
    MatchStatsResponse,
    ReviewQueueResponse,
    TransactionResponse,
)
from reconciler.services import (
    ExpenseCandidates,
    MatchingError,
    calculate_stats,
    candidates_for_expense,
    confirm_match,
    ignore_transaction,
    open_matching_context,
    review_queue,
    run_auto_match,
)
from reconciler.utils import raise_for_matching_error

router = APIRouter(prefix="/matching", tags=["matching"])


def _build_expense_candidates(row: ExpenseCandidates) -> ExpenseCandidatesResponse:
    return ExpenseCandidatesResponse(
        expense=TransactionResponse.model_validate(row.expense),
        candidates=[
            MatchCandidateResponse(
                sale=TransactionResponse.model_validate(candidate.sale),
                score=candidate.score,
                days_apart=candidate.days_apart,
            )
            for candidate in row.candidates
        ],
    )


@router.post("/auto-match", response_model=AutoMatchResponse)
async def auto_match(db: DbSession, user_id: CurrentUserId) -> AutoMatchResponse:
    """Pair every pending expense and sale scoring at or above the owner's threshold."""
    try:
        context = await open_matching_context(db, user_id)
        summary = await run_auto_match(context)
    except MatchingError as exc:
        raise_for_matching_error(exc)

    return AutoMatchResponse(
        matched_count=summary.matched_count,
        total_expenses=summary.total_expenses,
        total_sales=summary.total_sales,
        skipped=summary.skipped,
        matches=[AutoMatchResultResponse.model_validate(result) for result in summary.matches],
    )


@router.get("/review", response_model=ReviewQueueResponse)
async def get_review_queue(db: DbSession, user_id: CurrentUserId) -> ReviewQueueResponse:
    try:
        context = await open_matching_context(db, user_id)
        rows = await review_queue(context)
    except MatchingError as exc:
        raise_for_matching_error(exc)

    return ReviewQueueResponse(items=[_build_expense_candidates(row) for row in rows], total=len(rows))


@router.get("/expenses/{expense_id}/candidates", response_model=ExpenseCandidatesResponse)
async def get_expense_candidates(
    expense_id: UUID,
    db: DbSession,
    user_id: CurrentUserId,
    min_score: int | None = Query(default=None, ge=0, le=100),
    top_n: int | None = Query(default=None, ge=1, le=50),
) -> ExpenseCandidatesResponse:
    try:
        context = await open_matching_context(db, user_id)
        row = await candidates_for_expense(context, expense_id, min_score=min_score, top_n=top_n)
    except MatchingError as exc:
        raise_for_matching_error(exc)

    return _build_expense_candidates(row)


@router.post("/confirm", response_model=ConfirmMatchResponse)
async def confirm(
    payload: ConfirmMatchRequest,
    db: DbSession,
    user_id: CurrentUserId,
) -> ConfirmMatchResponse:
    """Pair an expense with a sale chosen by the reviewer."""
    try:
        context = await open_matching_context(db, user_id)
        expense, sale = await confirm_match(context, payload.expense_id, payload.sale_id)
    except MatchingError as exc:
        raise_for_matching_error(exc)

    return ConfirmMatchResponse(
        expense=TransactionResponse.model_validate(expense),
        sale=TransactionResponse.model_validate(sale),
    )


@router.post("/{kind}/{transaction_id}/ignore", response_model=TransactionResponse)
async def ignore(
    kind: TransactionKind,
    transaction_id: UUID,
    db: DbSession,
    user_id: CurrentUserId,
) -> TransactionResponse:
    try:
        context = await open_matching_context(db, user_id)
        txn = await ignore_transaction(context, kind, transaction_id)
    except MatchingError as exc:
        raise_for_matching_error(exc)

    return TransactionResponse.model_validate(txn)


@router.get("/stats", response_model=MatchStatsResponse)
async def get_stats(db: DbSession, user_id: CurrentUserId) -> MatchStatsResponse:
    try:
        stats = await calculate_stats(db, user_id)
    except MatchingError as exc:
        raise_for_matching_error(exc)

    return MatchStatsResponse.model_validate(stats)
