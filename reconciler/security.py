"""JWT helpers.

Tokens are issued by the identity service; this API only verifies them.
``create_access_token`` exists for local tooling and tests.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from reconciler.config import settings
from reconciler.logger import get_logger

logger = get_logger(__name__)


def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(UTC) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Decode and validate a bearer token; None when it cannot be trusted."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        logger.debug("JWT token expired")
        return None
    except jwt.PyJWTError as exc:
        logger.warning(
            "JWT decode failed",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return None
