"""
Social Graph Schemas

Responses for follow/unfollow and follower listings.
"""

from pydantic import BaseModel, Field

from app.schemas.user import UserPublicResponse, WriterSummary


class FollowResult(BaseModel):
    """
    Outcome of a follow or unfollow call.

    Both operations are idempotent: repeating them returns the same
    following/followers_count with created (or removed) set to False.
    """

    following: bool = Field(..., description="Whether the caller now follows the user")
    followers_count: int = Field(..., ge=0, description="Follower count after the call")
    created: bool = Field(default=False, description="A new edge was created")
    removed: bool = Field(default=False, description="An existing edge was removed")


class FollowStatus(BaseModel):
    is_following: bool


class FollowCounts(BaseModel):
    followers_count: int = Field(..., ge=0)
    following_count: int = Field(..., ge=0)


class FollowerListResponse(BaseModel):
    items: list[UserPublicResponse]
    total: int = Field(..., ge=0)


class FollowingListResponse(BaseModel):
    items: list[WriterSummary]
    total: int = Field(..., ge=0)
