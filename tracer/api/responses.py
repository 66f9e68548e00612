"""Response envelopes and request helpers shared by the v1 routers."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Annotated, Any, Generic, TypeVar

from fastapi import Query
from pydantic import BaseModel, StringConstraints

from tracer.config import settings
from tracer.errors import ValidationError
from tracer.models.ids import OBJECT_ID_PATTERN, is_object_id

T = TypeVar("T")


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class SuccessResponse(BaseModel, Generic[T]):
    success: bool = True
    data: T
    message: str | None = None
    pagination: Pagination | None = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    code: str
    details: Any = None
    timestamp: datetime
    path: str


class PageParams(BaseModel):
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_params(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
) -> PageParams:
    """FastAPI dependency for the page/limit query pair."""
    return PageParams(page=page, limit=limit)


def paginate(params: PageParams, total: int) -> Pagination:
    return Pagination(
        page=params.page,
        limit=params.limit,
        total=total,
        pages=math.ceil(total / params.limit) if total else 0,
    )


def check_object_id(value: str | None, label: str) -> str | None:
    """Reject malformed identifiers before they reach a query.

    ``label`` names the entity in the error message, e.g. "task" gives
    "Invalid task ID format".
    """
    if value is None:
        return None
    if not is_object_id(value):
        raise ValidationError(f"Invalid {label} ID format", details={"id": value})
    return value.lower()


# Body fields carrying an identifier; malformed values fail request validation (400).
ObjectIdStr = Annotated[str, StringConstraints(pattern=OBJECT_ID_PATTERN, to_lower=True)]
