"""Match settings API router."""

from fastapi import APIRouter

from reconciler.deps import CurrentUserId, DbSession
from reconciler.schemas import MatchSettingsResponse, MatchSettingsUpdate
from reconciler.services import MatchingError, get_match_configuration, update_match_settings
from reconciler.utils import raise_for_matching_error

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/matching", response_model=MatchSettingsResponse)
async def get_matching_settings(db: DbSession, user_id: CurrentUserId) -> MatchSettingsResponse:
    """Effective settings; defaults when the owner never saved any."""
    try:
        config = await get_match_configuration(db, user_id)
    except MatchingError as exc:
        raise_for_matching_error(exc)

    return MatchSettingsResponse.model_validate(config)


@router.put("/matching", response_model=MatchSettingsResponse)
async def update_matching_settings(
    payload: MatchSettingsUpdate,
    db: DbSession,
    user_id: CurrentUserId,
) -> MatchSettingsResponse:
    try:
        config = await update_match_settings(
            db,
            user_id,
            date_tolerance_days=payload.date_tolerance_days,
            auto_match_threshold=payload.auto_match_threshold,
            match_strategy=payload.match_strategy,
        )
    except MatchingError as exc:
        raise_for_matching_error(exc)

    return MatchSettingsResponse.model_validate(config)
