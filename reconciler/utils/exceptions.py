"""HTTP error helpers for FastAPI routers."""

from typing import NoReturn

from fastapi import HTTPException, status

from reconciler.services.errors import (
    InvalidConfiguration,
    InvalidTransactionData,
    MatchingError,
    PartialCommitInconsistency,
    StaleMatchTarget,
    StoreUnavailable,
    TransactionNotFound,
)


def raise_bad_request(detail: str, *, cause: Exception | None = None) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=detail,
    ) from cause


def raise_unauthorized(detail: str, *, cause: Exception | None = None) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    ) from cause


def raise_conflict(detail: str, *, cause: Exception | None = None) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=detail,
    ) from cause


def raise_too_large(detail: str, *, cause: Exception | None = None) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_413_CONTENT_TOO_LARGE,
        detail=detail,
    ) from cause


def raise_internal_error(detail: str, *, cause: Exception | None = None) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail,
    ) from cause


def raise_service_unavailable(detail: str, *, cause: Exception | None = None) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=detail,
    ) from cause


def raise_for_matching_error(exc: MatchingError) -> NoReturn:
    """Translate a matching domain error into its HTTP response."""
    if isinstance(exc, TransactionNotFound):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, StaleMatchTarget):
        raise_conflict(str(exc), cause=exc)
    if isinstance(exc, InvalidConfiguration):
        raise_bad_request(str(exc), cause=exc)
    if isinstance(exc, StoreUnavailable):
        raise_service_unavailable("Transaction store is temporarily unavailable", cause=exc)
    if isinstance(exc, PartialCommitInconsistency):
        raise_internal_error(
            f"Match between expense {exc.expense_id} and sale {exc.sale_id} was left incomplete",
            cause=exc,
        )
    if isinstance(exc, InvalidTransactionData):
        raise_internal_error(str(exc), cause=exc)
    raise_internal_error("Matching failed", cause=exc)
