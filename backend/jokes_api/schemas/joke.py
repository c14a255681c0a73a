"""
Jokes API Backend — Joke, Favorite and Comment Schemas
========================================================

What:  Pydantic models for the /api/jokes and favorites routes.

Why the request models accept Optional[str] everywhere:
    "body is required" and "at least one of body/title" are business rules with
    their own error messages (see jokes_api.services.validation). Letting the
    schema reject missing fields would turn them into generic 422 responses.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class JokeCreateRequest(BaseModel):
    title: Optional[str] = Field(default=None, examples=["Crossing"])
    body: Optional[str] = Field(default=None, examples=["Why did the chicken cross the road?"])
    language: Optional[str] = Field(default=None, examples=["en"])


class JokeUpdateRequest(BaseModel):
    title: Optional[str] = None
    body: Optional[str] = None


class CommentCreateRequest(BaseModel):
    body: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class JokeItem(BaseModel):
    """
    What:  A joke row as returned by listing and random-pick.
    Why author_name: clients show "by <username>" without a second request.
    """
    id: int
    author_id: Optional[int] = None
    title: Optional[str] = None
    body: str
    language: str
    score: int
    views: int
    created_at: datetime
    updated_at: datetime
    author_name: Optional[str] = Field(default=None, description="Author username (null if author-less)")
    favorites_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class JokeDetail(JokeItem):
    """Single-joke read: everything in JokeItem plus the comment count."""
    comments_count: int = 0


class JokeCreated(BaseModel):
    id: int
    title: Optional[str] = None
    body: str
    language: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class JokeUpdated(BaseModel):
    id: int
    title: Optional[str] = None
    body: str
    language: str
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaginationMeta(BaseModel):
    """
    Offset pagination metadata.

    total / totalPages come from a COUNT over the same filter predicate as the
    page itself, without LIMIT/OFFSET.
    """
    page: int
    limit: int
    total: int
    total_pages: int = Field(serialization_alias="totalPages")
    has_next: bool = Field(serialization_alias="hasNext")
    has_prev: bool = Field(serialization_alias="hasPrev")


class JokeListResponse(BaseModel):
    items: List[JokeItem]
    pagination: PaginationMeta


class FavoriteJoke(BaseModel):
    """A joke on a user's favorites list, newest favorite first."""
    id: int
    author_id: Optional[int] = None
    title: Optional[str] = None
    body: str
    language: str
    score: int
    views: int
    created_at: datetime
    updated_at: datetime
    author_name: Optional[str] = None
    author_display_name: Optional[str] = None
    favorited_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentResponse(BaseModel):
    id: int
    joke_id: int
    author_id: Optional[int] = None
    author_name: Optional[str] = None
    body: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
