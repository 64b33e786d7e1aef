"""CSV ingestion of expense and sale batches."""

import csv
import io
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from reconciler.logger import get_logger, log_exception, log_timing
from reconciler.models import MODEL_BY_KIND, BatchStatus, CsvBatch, TransactionKind, TransactionStatus
from reconciler.services.errors import StoreUnavailable
from reconciler.services.transaction_store import store_errors

logger = get_logger(__name__)

COUNTERPARTY_COLUMN = {
    TransactionKind.EXPENSE: "vendor",
    TransactionKind.SALE: "customer",
}

_ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ].*)?$")
_SLASH_DATE = re.compile(r"^(\d{1,2})[/.-](\d{1,2})[/.-](\d{4})$")


class IngestionError(Exception):
    """Uploaded CSV cannot be turned into transactions."""

    pass


@dataclass
class ParsedRow:
    txn_date: date
    amount: Decimal
    counterparty_name: str | None
    description: str


def normalize_date(value: str, *, day_first: bool = False) -> date:
    """Parse ``YYYY-MM-DD``, ``MM/DD/YYYY`` or ``DD/MM/YYYY``.

    Slash dates are read month-first unless ``day_first`` is set or the
    first field cannot be a month.
    """
    raw = value.strip()
    try:
        if iso := _ISO_DATE.match(raw):
            year, month, day = (int(part) for part in iso.groups())
            return date(year, month, day)

        if slash := _SLASH_DATE.match(raw):
            first, second, year = (int(part) for part in slash.groups())
            if day_first or first > 12:
                return date(year, second, first)
            return date(year, first, second)
    except ValueError as exc:
        raise IngestionError(f"Invalid date: {value!r}") from exc

    raise IngestionError(f"Unrecognized date format: {value!r}")


def parse_amount(value: str) -> Decimal:
    """Parse an amount, tolerating currency symbols, thousands separators and (negatives)."""
    raw = value.strip().replace(",", "").replace("$", "").strip()
    negative = raw.startswith("(") and raw.endswith(")")
    if negative:
        raw = raw[1:-1].strip()
    try:
        amount = Decimal(raw)
    except InvalidOperation as exc:
        raise IngestionError(f"Invalid amount: {value!r}") from exc
    if not amount.is_finite():
        raise IngestionError(f"Invalid amount: {value!r}")
    if negative:
        amount = -amount
    return amount.quantize(Decimal("0.01"))


def parse_transactions_csv(
    content: bytes | str,
    kind: TransactionKind,
    *,
    day_first: bool = False,
) -> tuple[list[ParsedRow], int]:
    """Parse an upload into rows.

    Returns the parsed rows and the number of data rows in the file. Rows
    without a date or an amount are skipped; the counterparty falls back to
    the description.

    Raises:
        IngestionError: the file is not UTF-8 text, lacks the required
            columns, or a row holds an unparseable date or amount.
    """
    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise IngestionError("CSV file must be UTF-8 encoded") from exc
    else:
        text = content

    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        raise IngestionError("CSV file is empty")

    columns = {name.strip().lower(): name for name in reader.fieldnames if name}
    missing = [column for column in ("date", "amount") if column not in columns]
    if missing:
        raise IngestionError(f"CSV is missing required column(s): {', '.join(missing)}")

    def cell(row: dict[str, str | None], column: str) -> str:
        source = columns.get(column)
        if source is None:
            return ""
        return (row.get(source) or "").strip()

    counterparty_column = COUNTERPARTY_COLUMN[kind]
    rows: list[ParsedRow] = []
    total = 0
    for line_number, row in enumerate(reader, start=2):
        total += 1
        raw_date = cell(row, "date")
        raw_amount = cell(row, "amount")
        if not raw_date or not raw_amount:
            continue

        try:
            txn_date = normalize_date(raw_date, day_first=day_first)
            amount = parse_amount(raw_amount)
        except IngestionError as exc:
            raise IngestionError(f"Line {line_number}: {exc}") from exc

        description = cell(row, "description")
        rows.append(
            ParsedRow(
                txn_date=txn_date,
                amount=amount,
                counterparty_name=cell(row, counterparty_column) or description or None,
                description=description,
            )
        )
    return rows, total


async def ingest_csv_batch(
    db: AsyncSession,
    user_id: UUID,
    *,
    filename: str,
    kind: TransactionKind,
    content: bytes,
    day_first: bool = False,
) -> CsvBatch:
    """Record a batch and insert its rows as pending transactions.

    The batch row is committed as ``processing`` first so a failed upload
    leaves a ``failed`` batch behind for the owner to see.
    """
    batch = CsvBatch(user_id=user_id, filename=filename, kind=kind, status=BatchStatus.PROCESSING)
    with store_errors("create_batch", user_id=str(user_id)):
        db.add(batch)
        await db.commit()
        await db.refresh(batch)

    model = MODEL_BY_KIND[kind]
    try:
        with log_timing("ingest_csv_batch", logger=logger, batch_id=str(batch.id), kind=kind.value) as timing:
            rows, total = parse_transactions_csv(content, kind, day_first=day_first)
            with store_errors("ingest_csv_batch", batch_id=str(batch.id)):
                db.add_all(
                    model(
                        user_id=user_id,
                        batch_id=batch.id,
                        txn_date=row.txn_date,
                        amount=row.amount,
                        counterparty_name=row.counterparty_name,
                        description=row.description,
                        status=TransactionStatus.PENDING,
                    )
                    for row in rows
                )
                batch.total_rows = total
                batch.processed_rows = len(rows)
                batch.status = BatchStatus.COMPLETED
                await db.commit()
            timing.update(total_rows=total, processed_rows=len(rows))
    except (IngestionError, StoreUnavailable, SQLAlchemyError) as exc:
        log_exception(logger, exc, "CSV batch failed", level="warning", batch_id=str(batch.id), filename=filename)
        await _mark_failed(db, batch.id)
        raise

    return batch


async def _mark_failed(db: AsyncSession, batch_id: UUID) -> None:
    await db.rollback()
    batch = await db.get(CsvBatch, batch_id)
    if batch is not None:
        batch.status = BatchStatus.FAILED
        await db.commit()
