"""Common Pydantic schemas."""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DocumentModel(BaseModel):
    """Base schema whose wire format uses camelCase document field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        """Serialize to a JSON-ready dict keyed by document field names."""
        return self.model_dump(mode="json", by_alias=True)


class Violation(BaseModel):
    """Validation error violation."""

    path: str = Field(..., description="Document path to the invalid field")
    message: str = Field(..., description="Validation error message")


class Problem(BaseModel):
    """RFC 9457 Problem Details response."""

    type: Optional[str] = Field(None, description="Problem type URI")
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: Optional[str] = Field(None, description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="URI reference for this occurrence")
    violations: Optional[List[Violation]] = Field(None, description="Validation errors")


class PageLink(BaseModel):
    """Pointer to an adjacent page of results."""

    page: int = Field(..., ge=1, description="Page number")
    limit: int = Field(..., ge=1, description="Page size")


class Pagination(BaseModel):
    """Links to the neighbouring pages of a result set."""

    next: Optional[PageLink] = Field(None, description="Next page, absent on the last page")
    prev: Optional[PageLink] = Field(None, description="Previous page, absent on the first page")


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    """Work out next/prev links for a page-number based result set."""
    start_index = (page - 1) * limit
    end_index = page * limit
    return Pagination(
        next=PageLink(page=page + 1, limit=limit) if end_index < total else None,
        prev=PageLink(page=page - 1, limit=limit) if start_index > 0 else None,
    )


class PaginatedResponse(BaseModel):
    """Base class for paginated responses."""

    success: bool = Field(True, description="Whether the request succeeded")
    count: int = Field(..., ge=0, description="Number of items on this page")
    total: int = Field(..., ge=0, description="Number of items matching the filters")
    pagination: Pagination = Field(..., description="Neighbouring page links")
