"""Expense and sale transaction models."""

from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from reconciler.database import Base
from reconciler.models.base import TimestampMixin, UserOwnedMixin, UUIDMixin


class TransactionKind(str, Enum):
    """Which side of a reconciliation pair a transaction sits on."""

    EXPENSE = "expense"
    SALE = "sale"


class TransactionStatus(str, Enum):
    """Reconciliation status of an expense or sale."""

    PENDING = "pending"
    MATCHED = "matched"
    IGNORED = "ignored"


COUNTERPART_IFF_MATCHED = "(status = 'matched') = (matched_counterpart_id IS NOT NULL)"


class TransactionMixin(UUIDMixin, UserOwnedMixin, TimestampMixin):
    """Columns shared by expenses and sales.

    ``matched_counterpart_id`` points at the paired row of the opposite kind.
    It is set if and only if ``status`` is MATCHED, and the pairing is
    symmetric across the two tables.
    """

    txn_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    counterparty_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[TransactionStatus] = mapped_column(
        SQLEnum(
            TransactionStatus,
            name="transaction_status_enum",
            values_callable=lambda obj: [e.value for e in obj],
        ),
        nullable=False,
        default=TransactionStatus.PENDING,
        index=True,
    )
    matched_counterpart_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    batch_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("csv_batches.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )


class Expense(TransactionMixin, Base):
    """Outgoing transaction paid to a vendor."""

    __tablename__ = "expenses"
    __table_args__ = (CheckConstraint(COUNTERPART_IFF_MATCHED, name="ck_expenses_counterpart_iff_matched"),)

    kind = TransactionKind.EXPENSE


class Sale(TransactionMixin, Base):
    """Incoming transaction received from a customer."""

    __tablename__ = "sales"
    __table_args__ = (CheckConstraint(COUNTERPART_IFF_MATCHED, name="ck_sales_counterpart_iff_matched"),)

    kind = TransactionKind.SALE


Transaction = Expense | Sale

MODEL_BY_KIND: dict[TransactionKind, type[Expense] | type[Sale]] = {
    TransactionKind.EXPENSE: Expense,
    TransactionKind.SALE: Sale,
}
