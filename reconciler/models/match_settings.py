"""Per-owner matching configuration model."""

from enum import Enum

from sqlalchemy import Integer, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from reconciler.database import Base
from reconciler.models.base import TimestampMixin, UserOwnedMixin, UUIDMixin


class MatchStrategy(str, Enum):
    """Which scoring components are active."""

    AMOUNT_ONLY = "amount_only"
    AMOUNT_AND_DATE = "amount_and_date"
    FUZZY_MATCH = "fuzzy_match"


class MatchSettings(UUIDMixin, UserOwnedMixin, TimestampMixin, Base):
    """Saved matching configuration; one row per owner."""

    __tablename__ = "match_settings"
    __table_args__ = (UniqueConstraint("user_id", name="uq_match_settings_user"),)

    date_tolerance_days: Mapped[int] = mapped_column(Integer, nullable=False, default=7)
    auto_match_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=95)
    match_strategy: Mapped[MatchStrategy] = mapped_column(
        SQLEnum(
            MatchStrategy,
            name="match_strategy_enum",
            values_callable=lambda obj: [e.value for e in obj],
        ),
        nullable=False,
        default=MatchStrategy.AMOUNT_AND_DATE,
    )
