"""Columns shared by the reconciler tables."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(UTC)


class UUIDMixin:
    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)


class UserOwnedMixin:
    """Row belongs to one owner.

    Owners never see each other's rows: every store query and every
    matching pool is filtered on ``user_id``.
    """

    user_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)


class TimestampMixin:
    # Also bumped by the conditional status updates, which go through ORM update()
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
