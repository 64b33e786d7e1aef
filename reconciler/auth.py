"""Resolve the owner of the current request from its bearer token."""

from uuid import UUID

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reconciler.database import get_db
from reconciler.models import User
from reconciler.security import decode_access_token
from reconciler.utils import raise_unauthorized

# Token issuance lives in the identity service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


async def get_current_user_id(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> UUID:
    payload = decode_access_token(token)
    if not payload:
        raise_unauthorized("Could not validate credentials")

    subject = payload.get("sub")
    if not subject:
        raise_unauthorized("Token missing subject")

    try:
        user_id = UUID(str(subject))
    except ValueError as exc:
        raise_unauthorized("Invalid user ID format in token", cause=exc)

    result = await db.execute(select(User.id).where(User.id == user_id))
    if result.scalar_one_or_none() is None:
        raise_unauthorized("User not found")

    return user_id
