# smis/utils/pagination.py
"""Pagination utilities for consistent API responses."""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel
from math import ceil

class PaginationMeta(BaseModel):
    """Pagination metadata."""
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_previous: bool

class Paginator:
    """Pagination utility class."""

    @staticmethod
    def calculate_offset(page: int, limit: int) -> int:
        """Calculate offset for database queries."""
        return (page - 1) * limit

    @staticmethod
    def create_meta(page: int, limit: int, total: int) -> PaginationMeta:
        """Create pagination metadata."""
        total_pages = ceil(total / limit) if limit > 0 else 0
        return PaginationMeta(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_previous=page > 1
        )

    @staticmethod
    def create_response(
        items: List[Any],
        page: int,
        limit: int,
        total: int,
        additional_info: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Create standardized paginated payload."""
        response = {
            "items": items,
            "pagination": Paginator.create_meta(page, limit, total).model_dump(),
        }
        if additional_info:
            response.update(additional_info)
        return response
