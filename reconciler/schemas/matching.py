"""Pydantic schemas for matching API."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from reconciler.models import MatchStrategy
from reconciler.schemas.base import BaseResponse
from reconciler.schemas.transactions import TransactionResponse


class MatchSettingsResponse(BaseResponse):
    """Effective match configuration for the current owner."""

    date_tolerance_days: int
    auto_match_threshold: int
    match_strategy: MatchStrategy


class MatchSettingsUpdate(BaseModel):
    """Request body to replace the owner's match configuration.

    Range checks happen in the service so API and direct callers share one
    set of rules.
    """

    date_tolerance_days: int
    auto_match_threshold: int
    match_strategy: MatchStrategy


class MatchCandidateResponse(BaseModel):
    sale: TransactionResponse
    score: int
    days_apart: int


class ExpenseCandidatesResponse(BaseModel):
    """A pending expense with its ranked candidate sales."""

    expense: TransactionResponse
    candidates: list[MatchCandidateResponse] = Field(default_factory=list)


class ReviewQueueResponse(BaseModel):
    items: list[ExpenseCandidatesResponse]
    total: int


class AutoMatchResultResponse(BaseResponse):
    expense_id: UUID
    sale_id: UUID
    confidence: int
    reasons: list[str]


class AutoMatchResponse(BaseModel):
    """Response for an auto-match run."""

    matched_count: int
    total_expenses: int
    total_sales: int
    skipped: int
    matches: list[AutoMatchResultResponse]


class ConfirmMatchRequest(BaseModel):
    """Request body to pair an expense with a sale manually."""

    expense_id: UUID
    sale_id: UUID


class ConfirmMatchResponse(BaseModel):
    expense: TransactionResponse
    sale: TransactionResponse


class MatchStatsResponse(BaseResponse):
    """Dashboard statistics."""

    total_transactions: int
    matched_percentage: int
    pending_count: int
    total_amount: Decimal
