"""CSV upload batch model."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Integer, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from reconciler.database import Base
from reconciler.models.base import UserOwnedMixin, UUIDMixin, utcnow
from reconciler.models.transaction import TransactionKind


class BatchStatus(str, Enum):
    """Processing status of an uploaded CSV batch."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class CsvBatch(UUIDMixin, UserOwnedMixin, Base):
    """Provenance record for one CSV upload."""

    __tablename__ = "csv_batches"

    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    kind: Mapped[TransactionKind] = mapped_column(
        SQLEnum(
            TransactionKind,
            name="transaction_kind_enum",
            values_callable=lambda obj: [e.value for e in obj],
        ),
        nullable=False,
    )
    total_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processed_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[BatchStatus] = mapped_column(
        SQLEnum(
            BatchStatus,
            name="csv_batch_status_enum",
            values_callable=lambda obj: [e.value for e in obj],
        ),
        nullable=False,
        default=BatchStatus.PROCESSING,
    )
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
