"""
Pagination Schemas

Shared metadata for paginated list responses. Subclasses add an `items`
list of their own element type.
"""

import math
from typing import Any

from pydantic import BaseModel, Field


class PaginatedResponse(BaseModel):
    """
    Pagination metadata:
    - total: Number of matching items
    - page: Current page number (1-indexed)
    - limit: Items per page
    - total_pages: ceil(total / limit), 0 when nothing matched
    """

    total: int = Field(default=0, ge=0, description="Total number of items")
    page: int = Field(..., ge=1, description="Current page number")
    limit: int = Field(..., ge=1, description="Items per page")
    total_pages: int = Field(default=0, ge=0, description="Total number of pages")

    @classmethod
    def build(cls, items: list[Any], total: int, page: int, limit: int):
        total_pages = math.ceil(total / limit) if total > 0 else 0
        return cls(items=items, total=total, page=page, limit=limit, total_pages=total_pages)
