"""Annotated FastAPI dependencies shared by routers.

Usage:
    from reconciler.deps import CurrentUserId, DbSession

    async def endpoint(db: DbSession, user_id: CurrentUserId): ...
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reconciler.auth import get_current_user_id
from reconciler.database import get_db

DbSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]

__all__ = ["CurrentUserId", "DbSession"]
