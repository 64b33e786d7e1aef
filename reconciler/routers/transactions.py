"""Transaction upload and listing API router."""

from typing import Annotated

from fastapi import APIRouter, File, Form, Query, UploadFile, status
from sqlalchemy import func, select

from reconciler.config import settings
from reconciler.deps import CurrentUserId, DbSession
from reconciler.logger import get_logger
from reconciler.models import MODEL_BY_KIND, CsvBatch, TransactionKind, TransactionStatus
from reconciler.schemas import (
    CsvBatchListResponse,
    CsvBatchResponse,
    TransactionListResponse,
    TransactionResponse,
)
from reconciler.services import IngestionError, MatchingError, ingest_csv_batch
from reconciler.utils import raise_bad_request, raise_for_matching_error, raise_too_large

router = APIRouter(prefix="/transactions", tags=["transactions"])
logger = get_logger(__name__)


@router.post("/upload", response_model=CsvBatchResponse, status_code=status.HTTP_201_CREATED)
async def upload_csv(
    db: DbSession,
    user_id: CurrentUserId,
    file: UploadFile = File(...),
    kind: Annotated[TransactionKind, Form()] = TransactionKind.EXPENSE,
    day_first: Annotated[bool, Form()] = False,
) -> CsvBatchResponse:
    """Upload a CSV of expenses or sales; every row starts out pending."""
    filename = file.filename or "upload.csv"
    if not filename.lower().endswith(".csv"):
        raise_bad_request("Only CSV files are supported")

    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        raise_too_large(f"File exceeds {settings.max_upload_bytes // (1024 * 1024)}MB limit")

    try:
        batch = await ingest_csv_batch(
            db,
            user_id,
            filename=filename,
            kind=kind,
            content=content,
            day_first=day_first,
        )
    except IngestionError as exc:
        raise_bad_request(str(exc), cause=exc)
    except MatchingError as exc:
        raise_for_matching_error(exc)

    logger.info(
        "CSV batch uploaded",
        user_id=str(user_id),
        batch_id=str(batch.id),
        kind=kind.value,
        processed_rows=batch.processed_rows,
    )
    return CsvBatchResponse.model_validate(batch)


async def _list_transactions(
    db: DbSession,
    user_id: CurrentUserId,
    kind: TransactionKind,
    status_filter: TransactionStatus | None,
    limit: int,
    offset: int,
) -> TransactionListResponse:
    model = MODEL_BY_KIND[kind]
    query = select(model).where(model.user_id == user_id)
    count_query = select(func.count()).select_from(model).where(model.user_id == user_id)
    if status_filter:
        query = query.where(model.status == status_filter)
        count_query = count_query.where(model.status == status_filter)

    result = await db.execute(
        query.order_by(model.txn_date.desc(), model.created_at.desc()).limit(limit).offset(offset)
    )
    total = (await db.execute(count_query)).scalar() or 0
    return TransactionListResponse(
        items=[TransactionResponse.model_validate(txn) for txn in result.scalars().all()],
        total=total,
    )


@router.get("/expenses", response_model=TransactionListResponse)
async def list_expenses(
    db: DbSession,
    user_id: CurrentUserId,
    status_filter: TransactionStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
) -> TransactionListResponse:
    return await _list_transactions(db, user_id, TransactionKind.EXPENSE, status_filter, limit, offset)


@router.get("/sales", response_model=TransactionListResponse)
async def list_sales(
    db: DbSession,
    user_id: CurrentUserId,
    status_filter: TransactionStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
) -> TransactionListResponse:
    return await _list_transactions(db, user_id, TransactionKind.SALE, status_filter, limit, offset)


@router.get("/batches", response_model=CsvBatchListResponse)
async def list_batches(
    db: DbSession,
    user_id: CurrentUserId,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> CsvBatchListResponse:
    """List upload batches, newest first."""
    result = await db.execute(
        select(CsvBatch)
        .where(CsvBatch.user_id == user_id)
        .order_by(CsvBatch.uploaded_at.desc())
        .limit(limit)
        .offset(offset)
    )
    total_result = await db.execute(
        select(func.count()).select_from(CsvBatch).where(CsvBatch.user_id == user_id)
    )
    return CsvBatchListResponse(
        items=[CsvBatchResponse.model_validate(batch) for batch in result.scalars().all()],
        total=total_result.scalar() or 0,
    )
