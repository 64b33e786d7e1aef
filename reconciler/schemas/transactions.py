"""Pydantic schemas for transaction and upload APIs."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from reconciler.models import BatchStatus, TransactionKind, TransactionStatus
from reconciler.schemas.base import BaseResponse, ListResponse


class TransactionResponse(BaseResponse):
    """Expense or sale as returned by the API."""

    id: UUID
    kind: TransactionKind
    txn_date: date
    amount: Decimal
    counterparty_name: str | None
    description: str
    status: TransactionStatus
    matched_counterpart_id: UUID | None
    batch_id: UUID | None
    created_at: datetime


TransactionListResponse = ListResponse[TransactionResponse]


class CsvBatchResponse(BaseResponse):
    id: UUID
    filename: str
    kind: TransactionKind
    total_rows: int
    processed_rows: int
    status: BatchStatus
    uploaded_at: datetime


CsvBatchListResponse = ListResponse[CsvBatchResponse]
