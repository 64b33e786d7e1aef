"""Tests for dashboard statistics."""

from decimal import Decimal
from uuid import uuid4

from reconciler.models import TransactionStatus
from reconciler.services.stats import calculate_stats
from tests.factories import ExpenseFactory, SaleFactory


async def test_stats_empty(db, test_user):
    stats = await calculate_stats(db, test_user.id)

    assert stats.total_transactions == 0
    assert stats.matched_percentage == 0
    assert stats.pending_count == 0
    assert stats.total_amount == Decimal("0.00")


async def test_stats_across_kinds_and_statuses(db, test_user):
    expense = await ExpenseFactory.create_async(db, user_id=test_user.id, amount=Decimal("100.00"))
    sale_id = uuid4()
    await ExpenseFactory.create_async(
        db,
        user_id=test_user.id,
        amount=Decimal("50.25"),
        status=TransactionStatus.MATCHED,
        matched_counterpart_id=sale_id,
    )
    await SaleFactory.create_async(
        db,
        id=sale_id,
        user_id=test_user.id,
        amount=Decimal("50.25"),
        status=TransactionStatus.MATCHED,
        matched_counterpart_id=expense.id,
    )
    await SaleFactory.create_async(db, user_id=test_user.id, amount=Decimal("10.00"), status=TransactionStatus.IGNORED)
    await SaleFactory.create_async(db, user_id=uuid4(), amount=Decimal("999.00"))

    stats = await calculate_stats(db, test_user.id)

    assert stats.total_transactions == 4
    assert stats.matched_percentage == 50
    assert stats.pending_count == 1
    assert stats.total_amount == Decimal("210.50")


async def test_matched_percentage_rounds_half_up(db, test_user):
    # 1 of 8 matched -> 12.5% -> 13
    await ExpenseFactory.create_async(
        db, user_id=test_user.id, status=TransactionStatus.MATCHED, matched_counterpart_id=uuid4()
    )
    for _ in range(7):
        await SaleFactory.create_async(db, user_id=test_user.id)

    stats = await calculate_stats(db, test_user.id)

    assert stats.matched_percentage == 13
