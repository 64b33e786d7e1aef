"""Per-owner match settings with fallback to configured defaults."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reconciler.logger import get_logger
from reconciler.models import MatchSettings, MatchStrategy
from reconciler.services.matching import MatchConfiguration, default_match_configuration
from reconciler.services.transaction_store import store_errors

logger = get_logger(__name__)


async def get_match_settings(db: AsyncSession, user_id: UUID) -> MatchSettings | None:
    """Return the owner's saved settings row, if any."""
    with store_errors("get_match_settings", user_id=str(user_id)):
        result = await db.execute(select(MatchSettings).where(MatchSettings.user_id == user_id))
        return result.scalar_one_or_none()


def configuration_from_row(row: MatchSettings) -> MatchConfiguration:
    return MatchConfiguration(
        date_tolerance_days=row.date_tolerance_days,
        auto_match_threshold=row.auto_match_threshold,
        match_strategy=row.match_strategy,
    )


async def get_match_configuration(db: AsyncSession, user_id: UUID) -> MatchConfiguration:
    """Validated configuration for an owner; defaults when nothing is saved.

    A saved tolerance of 0 is honoured as "same or next day only" rather than
    being replaced by the default.
    """
    row = await get_match_settings(db, user_id)
    if row is None:
        return default_match_configuration()
    return configuration_from_row(row)


async def update_match_settings(
    db: AsyncSession,
    user_id: UUID,
    *,
    date_tolerance_days: int,
    auto_match_threshold: int,
    match_strategy: MatchStrategy | str,
) -> MatchConfiguration:
    """Validate and save the owner's settings.

    Raises:
        InvalidConfiguration: any value is out of range. Nothing is written.
    """
    config = MatchConfiguration(
        date_tolerance_days=date_tolerance_days,
        auto_match_threshold=auto_match_threshold,
        match_strategy=match_strategy,
    )

    row = await get_match_settings(db, user_id)
    with store_errors("update_match_settings", user_id=str(user_id)):
        if row is None:
            row = MatchSettings(user_id=user_id)
            db.add(row)
        row.date_tolerance_days = config.date_tolerance_days
        row.auto_match_threshold = config.auto_match_threshold
        row.match_strategy = config.match_strategy
        await db.commit()

    logger.info(
        "Match settings updated",
        user_id=str(user_id),
        date_tolerance_days=config.date_tolerance_days,
        auto_match_threshold=config.auto_match_threshold,
        match_strategy=config.match_strategy.value,
    )
    return config
