"""
Feed Schemas

A feed page is a newest-first slice of activity records plus pagination
metadata. total_pages is ceil(total / limit), and 0 for an empty feed.
"""

import math
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.schemas.user import FeedActor


class FeedItem(BaseModel):
    """One activity as shown in a feed."""

    id: int
    activity_type: str
    target_id: int
    created_at: datetime
    user: FeedActor | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class FeedPage(BaseModel):
    """Paginated feed response."""

    activities: list[FeedItem] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total_pages: int = Field(default=0, ge=0)

    @classmethod
    def empty(cls, page: int, limit: int) -> "FeedPage":
        return cls(activities=[], total=0, page=page, limit=limit, total_pages=0)

    @classmethod
    def build(cls, items: list[FeedItem], total: int, page: int, limit: int) -> "FeedPage":
        return cls(
            activities=items,
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total > 0 else 0,
        )

    model_config = {
        "json_schema_extra": {
            "example": {
                "activities": [],
                "total": 45,
                "page": 1,
                "limit": 20,
                "total_pages": 3,
            }
        }
    }
