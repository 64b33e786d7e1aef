"""Base schema classes and generic types."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class BaseResponse(BaseModel):
    """Base for all response schemas with from_attributes config."""

    model_config = ConfigDict(from_attributes=True)


class ListResponse(BaseModel, Generic[T]):  # noqa: UP046
    """Generic list response with item count.

    ``total`` counts every row matching the query, which may exceed
    ``len(items)`` when limit/offset are applied.
    """

    items: list[T]
    total: int
