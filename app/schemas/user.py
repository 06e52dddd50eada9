"""
User Pydantic Schemas

Public views of users as they appear inside other responses:

- UserPublicResponse: minimal public info (review authors, followers)
- FeedActor: the actor attached to a feed item
- WriterSummary: writer card attached to books and following lists
"""

from pydantic import BaseModel, ConfigDict, Field


class UserPublicResponse(BaseModel):
    """Public user profile (visible to everyone)."""

    id: int = Field(..., description="User ID")
    username: str = Field(..., description="Unique username")
    full_name: str | None = Field(default=None, description="Display name")
    avatar_url: str | None = Field(default=None, description="Avatar URL")
    bio: str | None = Field(default=None, description="Short biography")

    model_config = ConfigDict(from_attributes=True)


class FeedActor(BaseModel):
    """Minimal actor info joined onto feed activities."""

    id: int
    username: str
    display_name: str
    avatar: str | None = None


class WriterSummary(BaseModel):
    """
    Writer card shown next to books.

    followers_count comes from a batched count over the follow graph.
    """

    id: int = Field(..., description="Writer user ID")
    username: str
    profile: str | None = None
    bio: str | None = None
    avatar: str | None = None
    followers_count: int = Field(default=0, ge=0)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 3,
                "username": "orwell",
                "profile": "Essayist and novelist.",
                "bio": "English novelist",
                "avatar": None,
                "followers_count": 120,
            }
        },
    )
