"""
FastAPI Dependencies Module

Reusable components injected into route handlers with Depends():

- Database sessions (per-request)
- Authentication (JWT bearer token -> User)
- Pagination parameters (feeds, review listings, marketplace browse)
- Marketplace browse filters and sort order
- Process-wide services built in create_app (activity recorder, trending
  service), read from app.state
"""

from datetime import datetime
from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.schemas.book import BookSort
from app.services.activity import ActivityRecorder
from app.services.marketplace import BookFilters
from app.services.trending import TrendingService

if TYPE_CHECKING:
    from app.models.user import User

settings = get_settings()

DbSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# Pagination Parameters
# =============================================================================
class FeedPaginationParams:
    """
    page/limit query parameters for feed endpoints.

    Range checks happen in the feed service so that every caller gets the
    same ValidationError; here they are only parsed and documented.

    Usage in route:
        @router.get("/feed")
        def personal_feed(db: DbSession, pagination: Pagination):
            return get_personal_feed(db, user.id, pagination.page, pagination.limit)
    """

    def __init__(
        self,
        page: int = Query(
            default=1,
            description="Page number (1-indexed)",
            examples=[1, 2],
        ),
        limit: int = Query(
            default=settings.feed_default_limit,
            description=f"Items per page (max {settings.feed_max_limit})",
            examples=[20, 50],
        ),
    ) -> None:
        self.page = page
        self.limit = limit


Pagination = Annotated[FeedPaginationParams, Depends()]


class ListPaginationParams:
    """
    page/limit query parameters for review listings and marketplace browse.

    limit defaults per endpoint (reviews_default_limit or
    browse_default_limit) in the service; range checks happen there too.
    """

    def __init__(
        self,
        page: int = Query(
            default=1,
            description="Page number (1-indexed)",
            examples=[1, 2],
        ),
        limit: int | None = Query(
            default=None,
            description=f"Items per page (max {settings.list_max_limit})",
            examples=[10, 20],
        ),
    ) -> None:
        self.page = page
        self.limit = limit


ListPagination = Annotated[ListPaginationParams, Depends()]


# =============================================================================
# Marketplace Browse Parameters
# =============================================================================
class BrowseParams:
    """
    Filter and sort parameters for marketplace browsing.

    All filters are optional and can be combined.

    Usage:
        GET /api/v1/marketplace/books?category=Fiction&min_rating=4&sort=price-asc
        GET /api/v1/marketplace/books?published_after=2026-01-01&max_price=15
    """

    def __init__(
        self,
        category: str | None = Query(
            default=None,
            min_length=1,
            max_length=100,
            description="Exact category",
            examples=["Fiction"],
        ),
        min_price: float | None = Query(
            default=None,
            description="Minimum price (inclusive)",
            examples=[0, 5.00],
        ),
        max_price: float | None = Query(
            default=None,
            description="Maximum price (inclusive)",
            examples=[20.00],
        ),
        min_rating: float | None = Query(
            default=None,
            description="Minimum average rating (0-5)",
            examples=[4.0],
        ),
        language: str | None = Query(
            default=None,
            min_length=1,
            max_length=50,
            description="Exact language",
            examples=["English"],
        ),
        published_after: datetime | None = Query(
            default=None,
            description="Published on or after (ISO 8601, UTC if no offset)",
        ),
        published_before: datetime | None = Query(
            default=None,
            description="Published on or before (ISO 8601, UTC if no offset)",
        ),
        sort: BookSort = Query(
            default=BookSort.NEWEST,
            description="Sort order",
        ),
    ) -> None:
        self.sort = sort
        self.filters = BookFilters(
            category=category,
            min_price=min_price,
            max_price=max_price,
            min_rating=min_rating,
            language=language,
            published_after=published_after,
            published_before=published_before,
        )


Browse = Annotated[BrowseParams, Depends()]


# =============================================================================
# Application Services
# =============================================================================
# Built once in create_app (app.main) and shared by all requests.
# Tests swap them on app.state.


def get_activity_recorder(request: Request) -> ActivityRecorder:
    return request.app.state.activity_recorder


def get_trending_service(request: Request) -> TrendingService:
    return request.app.state.trending_service


Recorder = Annotated[ActivityRecorder, Depends(get_activity_recorder)]
Trending = Annotated[TrendingService, Depends(get_trending_service)]


# =============================================================================
# JWT Authentication (User Authentication)
# =============================================================================
# Tokens are issued by the marketplace's auth service. The tokenUrl only
# feeds Swagger UI's "Authorize" dialog.

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/v1/auth/login",
    auto_error=True,
)


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
):
    """
    Extract and validate the current user from JWT token.

    This dependency:
    1. Extracts the Bearer token from Authorization header
    2. Decodes and validates the JWT
    3. Looks up the user in the database

    Raises:
        HTTPException: 401 if token is invalid or user not found
    """
    from app.models.user import User
    from app.services.security import verify_token_type

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = verify_token_type(token, "access")
    if payload is None:
        raise credentials_exception

    user_id = payload.get("sub")
    if user_id is None:
        raise credentials_exception

    try:
        user_pk = int(user_id)
    except (TypeError, ValueError):
        raise credentials_exception from None

    stmt = select(User).where(User.id == user_pk)
    user = db.execute(stmt).scalar_one_or_none()

    if user is None:
        raise credentials_exception

    return user


def get_current_active_user(
    current_user=Depends(get_current_user),
):
    """
    Verify the current user is active.

    Raises:
        HTTPException: 403 if user is inactive
    """
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return current_user


ActiveUser = Annotated["User", Depends(get_current_active_user)]
