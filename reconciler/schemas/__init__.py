"""Pydantic request/response schemas."""

from reconciler.schemas.base import BaseResponse, ListResponse
from reconciler.schemas.matching import (
    AutoMatchResponse,
    AutoMatchResultResponse,
    ConfirmMatchRequest,
    ConfirmMatchResponse,
    ExpenseCandidatesResponse,
    MatchCandidateResponse,
    MatchSettingsResponse,
    MatchSettingsUpdate,
    MatchStatsResponse,
    ReviewQueueResponse,
)
from reconciler.schemas.transactions import (
    CsvBatchListResponse,
    CsvBatchResponse,
    TransactionListResponse,
    TransactionResponse,
)

__all__ = [
    "AutoMatchResponse",
    "AutoMatchResultResponse",
    "BaseResponse",
    "ConfirmMatchRequest",
    "ConfirmMatchResponse",
    "CsvBatchListResponse",
    "CsvBatchResponse",
    "ExpenseCandidatesResponse",
    "ListResponse",
    "MatchCandidateResponse",
    "MatchSettingsResponse",
    "MatchSettingsUpdate",
    "MatchStatsResponse",
    "ReviewQueueResponse",
    "TransactionListResponse",
    "TransactionResponse",
]
