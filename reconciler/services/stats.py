"""Dashboard statistics over an owner's expenses and sales."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from reconciler.models import MODEL_BY_KIND, TransactionStatus
from reconciler.services.transaction_store import store_errors


@dataclass
class MatchStats:
    total_transactions: int
    matched_percentage: int
    pending_count: int
    total_amount: Decimal


async def calculate_stats(db: AsyncSession, user_id: UUID) -> MatchStats:
    """Counts by status across both kinds, plus the summed amount."""
    counts: dict[TransactionStatus, int] = dict.fromkeys(TransactionStatus, 0)
    total_amount = Decimal("0")

    with store_errors("calculate_stats", user_id=str(user_id)):
        for model in MODEL_BY_KIND.values():
            result = await db.execute(
                select(model.status, func.count(model.id), func.coalesce(func.sum(model.amount), 0))
                .where(model.user_id == user_id)
                .group_by(model.status)
            )
            for status, count, amount in result.all():
                counts[TransactionStatus(status)] += count
                total_amount += Decimal(str(amount))

    total = sum(counts.values())
    matched_percentage = 0
    if total:
        share = Decimal(counts[TransactionStatus.MATCHED] * 100) / Decimal(total)
        matched_percentage = int(share.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    return MatchStats(
        total_transactions=total,
        matched_percentage=matched_percentage,
        pending_count=counts[TransactionStatus.PENDING],
        total_amount=total_amount.quantize(Decimal("0.01")),
    )
