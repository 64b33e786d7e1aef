"""Owner-scoped persistence for expenses and sales.

Status changes go through conditional updates (``WHERE status = 'pending'``)
so two concurrent confirmations or auto-match runs can never both claim the
same row. A zero row count means the row is no longer available.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction

from reconciler.logger import get_logger
from reconciler.models import (
    MODEL_BY_KIND,
    Expense,
    Sale,
    Transaction,
    TransactionKind,
    TransactionStatus,
)
from reconciler.services.errors import PartialCommitInconsistency, StoreUnavailable

logger = get_logger(__name__)


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (OperationalError, InterfaceError, OSError, TimeoutError)):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


@contextmanager
def store_errors(operation: str, **context: Any) -> Iterator[None]:
    """Translate transient database failures into ``StoreUnavailable``."""
    try:
        yield
    except (SQLAlchemyError, OSError, TimeoutError) as exc:
        if not _is_transient(exc):
            raise
        logger.error(
            "Transaction store unavailable",
            operation=operation,
            error=str(exc),
            error_type=type(exc).__name__,
            **context,
        )
        raise StoreUnavailable(f"Transaction store unavailable during {operation}") from exc


class TransactionStore:
    """Expenses and sales belonging to one owner.

    An instance is created per request (or per engine invocation) and shares
    that request's database session.
    """

    def __init__(self, db: AsyncSession, user_id: UUID) -> None:
        self.db = db
        self.user_id = user_id

    async def list_pending(self, kind: TransactionKind) -> list[Transaction]:
        """Pending transactions of one kind, oldest first."""
        model = MODEL_BY_KIND[kind]
        with store_errors("list_pending", kind=kind.value, user_id=str(self.user_id)):
            result = await self.db.execute(
                select(model)
                .where(model.user_id == self.user_id)
                .where(model.status == TransactionStatus.PENDING)
                .order_by(model.txn_date, model.created_at, model.id)
                .execution_options(populate_existing=True)
            )
            return list(result.scalars().all())

    async def get(self, kind: TransactionKind, transaction_id: UUID) -> Transaction | None:
        """Fresh copy of one transaction, or None when the owner has no such row."""
        model = MODEL_BY_KIND[kind]
        with store_errors("get", kind=kind.value, transaction_id=str(transaction_id)):
            result = await self.db.execute(
                select(model)
                .where(model.id == transaction_id)
                .where(model.user_id == self.user_id)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

    async def commit_match(self, expense_id: UUID, sale_id: UUID) -> bool:
        """Mark both sides matched and cross-link them in one unit.

        Returns False, with nothing written, when either side is no longer
        pending. Each successful pairing is committed immediately so that
        earlier pairings survive a later failure in the same run.

        Raises:
            StoreUnavailable: the database could not be reached.
            PartialCommitInconsistency: one side was written and the revert failed.
        """
        log_context = {
            "user_id": str(self.user_id),
            "expense_id": str(expense_id),
            "sale_id": str(sale_id),
        }
        with store_errors("commit_match", **log_context):
            savepoint = await self.db.begin_nested()
            if not await self._claim(Expense, expense_id, sale_id):
                await savepoint.rollback()
                await self.db.commit()
                logger.info("Expense no longer pending; pairing skipped", **log_context)
                return False

            try:
                sale_claimed = await self._claim(Sale, sale_id, expense_id)
            except SQLAlchemyError:
                await self._revert(savepoint, expense_id, sale_id)
                raise

            if not sale_claimed:
                await self._revert(savepoint, expense_id, sale_id)
                await self.db.commit()
                logger.info("Sale no longer pending; pairing reverted", **log_context)
                return False

            await savepoint.commit()
            await self.db.commit()

        logger.info("Pairing committed", **log_context)
        return True

    async def set_ignored(self, kind: TransactionKind, transaction_id: UUID) -> bool:
        """Move a pending transaction to IGNORED. False if it was not pending."""
        model = MODEL_BY_KIND[kind]
        with store_errors("set_ignored", kind=kind.value, transaction_id=str(transaction_id)):
            result = await self.db.execute(
                update(model)
                .where(model.id == transaction_id)
                .where(model.user_id == self.user_id)
                .where(model.status == TransactionStatus.PENDING)
                .values(status=TransactionStatus.IGNORED)
                .execution_options(synchronize_session=False)
            )
            # Nothing was written when no row matched; commit just ends the transaction
            await self.db.commit()
        return result.rowcount == 1

    async def _claim(self, model: type[Expense] | type[Sale], transaction_id: UUID, counterpart_id: UUID) -> bool:
        result = await self.db.execute(
            update(model)
            .where(model.id == transaction_id)
            .where(model.user_id == self.user_id)
            .where(model.status == TransactionStatus.PENDING)
            .values(status=TransactionStatus.MATCHED, matched_counterpart_id=counterpart_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def _revert(self, savepoint: AsyncSessionTransaction, expense_id: UUID, sale_id: UUID) -> None:
        """Undo a half-applied pairing by rolling back its savepoint."""
        try:
            await savepoint.rollback()
        except SQLAlchemyError as exc:
            logger.critical(
                "Compensating revert failed; pairing left half-applied",
                user_id=str(self.user_id),
                expense_id=str(expense_id),
                sale_id=str(sale_id),
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise PartialCommitInconsistency(
                f"Expense {expense_id} was matched to sale {sale_id} but the sale could not be "
                "updated and the revert failed",
                expense_id=expense_id,
                sale_id=sale_id,
            ) from exc
