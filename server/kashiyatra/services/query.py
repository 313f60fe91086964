"""Sorting and paging helpers shared by the search operations."""

from typing import Any, Mapping, Optional

from ..core.config import settings
from ..core.exceptions import ValidationError


def parse_sort(sort: Optional[str], columns: Mapping[str, Any], default: str) -> list:
    """
    Turn a comma-separated sort expression into ORDER BY clauses.

    Each field may carry a ``-`` prefix for descending order. Fields must be
    keys of ``columns``; anything else is rejected so arbitrary columns can
    never be sorted on.

    Raises:
        ValidationError: If a field is not sortable
    """
    expression = sort if sort and sort.strip() else default
    clauses = []
    for raw in expression.split(","):
        field = raw.strip()
        if not field:
            continue
        descending = field.startswith("-")
        name = field[1:] if descending else field
        column = columns.get(name)
        if column is None:
            raise ValidationError(
                detail=f"Cannot sort by '{name}'",
                violations=[{
                    "path": "sort",
                    "message": f"'{name}' is not sortable; allowed: {', '.join(sorted(columns))}",
                }],
            )
        clauses.append(column.desc() if descending else column.asc())
    return clauses


def resolve_limit(limit: Optional[int]) -> int:
    """Page size to use, defaulting and capping from settings."""
    if limit is None:
        return settings.default_page_size
    return min(limit, settings.max_page_size)
