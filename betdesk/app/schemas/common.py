"""Shared schema definitions."""

from __future__ import annotations

from typing import Generic, Optional, Sequence, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PaginationLinks(BaseModel):
    """Relative links to neighbouring pages of the same listing."""

    current: str
    first: Optional[str] = None
    last: Optional[str] = None
    previous: Optional[str] = None
    next: Optional[str] = None


class PaginatedResponse(BaseModel, Generic[T]):
    """Standard shape for paginated listings."""

    items: Sequence[T]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    page_count: int = Field(..., ge=0)
    sort: Optional[str] = None
    links: PaginationLinks
