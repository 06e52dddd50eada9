"""
Pagination helpers shared by the paginated read paths (feeds, review
listings, marketplace browse).

Pages are 1-indexed. Out-of-range input is rejected before any query runs,
and total_pages (set by the response schemas) is 0 for an empty result.
"""

from app.config import get_settings
from app.exceptions import ValidationError

settings = get_settings()


def validate_pagination(page: int, limit: int, max_limit: int | None = None) -> None:
    """
    Check page/limit before any query runs.

    Raises:
        ValidationError: page < 1, limit < 1 or limit > max_limit
    """
    if max_limit is None:
        max_limit = settings.feed_max_limit
    if page < 1:
        raise ValidationError("page must be at least 1")
    if limit < 1 or limit > max_limit:
        raise ValidationError(f"limit must be between 1 and {max_limit}")


def offset_for(page: int, limit: int) -> int:
    return (page - 1) * limit
