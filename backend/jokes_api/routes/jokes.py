"""
Jokes API Backend — Jokes Route Handlers
==========================================

What:  Listing, random pick, single read, create, update, delete, and comments
       under /api/jokes.
How:   Each handler runs the same pipeline:
           guard (if authenticated) → validation → JokeService → response
       Path ids arrive as plain strings and go through parse_resource_id(), so
       "abc" is a 400 validation_error and never reaches the store.
       page / limit are also taken as strings: unparsable values fall back to
       their defaults instead of failing the request.

Route order matters: /random is declared before /{joke_id}.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from jokes_api.config import Settings
from jokes_api.database import Database, get_database, get_db_session
from jokes_api.routes.dependencies import get_settings, require_identity
from jokes_api.schemas.common import ErrorResponse
from jokes_api.schemas.joke import (
    CommentCreateRequest,
    CommentResponse,
    JokeCreated,
    JokeCreateRequest,
    JokeDetail,
    JokeItem,
    JokeListResponse,
    JokeUpdated,
    JokeUpdateRequest,
)
from jokes_api.services.joke_service import joke_service
from jokes_api.services.query_builder import JokeListQuery
from jokes_api.services.security import Identity
from jokes_api.services.validation import (
    parse_pagination,
    parse_resource_id,
    validate_comment,
    validate_joke_create,
    validate_joke_update,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jokes", tags=["Jokes"])

INVALID_ID = {"description": "Joke id is not an integer", "model": ErrorResponse}
UNAUTHENTICATED = {"description": "Missing or invalid token", "model": ErrorResponse}
NOT_FOUND = {"description": "Joke not found", "model": ErrorResponse}


@router.get(
    "",
    response_model=JokeListResponse,
    summary="List jokes with filters, sorting and pagination",
)
async def list_jokes(
    page: Optional[str] = Query(default=None, description="Page number, from 1"),
    limit: Optional[str] = Query(
        default=None,
        description="Items per page, clamped to [1, PAGE_MAX_LIMIT]",
    ),
    author: Optional[str] = Query(default=None, description="Author username"),
    language: Optional[str] = Query(default=None, description="Language tag, e.g. 'ru'"),
    sort: Optional[str] = Query(
        default=None,
        description="newest (default), oldest, popular (score then views) or random",
    ),
    db: AsyncSession = Depends(get_db_session),
    config: Settings = Depends(get_settings),
) -> JokeListResponse:
    pagination = parse_pagination(
        page,
        limit,
        default_limit=config.page_default_limit,
        max_limit=config.page_max_limit,
    )
    query = JokeListQuery.from_filters(author=author, language=language, sort=sort)
    return await joke_service.list_jokes(db, query, pagination)


@router.get(
    "/random",
    response_model=JokeItem,
    responses={404: {"description": "No jokes match", "model": ErrorResponse}},
    summary="A random joke",
)
async def random_joke(
    background_tasks: BackgroundTasks,
    language: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
    database: Database = Depends(get_database),
) -> JokeItem:
    """The view counter is bumped after the response has been sent."""
    joke = await joke_service.random_joke(db, language=language)
    background_tasks.add_task(joke_service.record_view, database, joke.id)
    return joke


@router.get(
    "/{joke_id}",
    response_model=JokeDetail,
    responses={400: INVALID_ID, 404: NOT_FOUND},
    summary="A single joke with favorites and comments counts",
)
async def get_joke(
    joke_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> JokeDetail:
    return await joke_service.get_joke(db, parse_resource_id(joke_id))


@router.post(
    "",
    response_model=JokeCreated,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Invalid joke", "model": ErrorResponse}, 401: UNAUTHENTICATED},
    summary="Create a joke as the authenticated user",
)
async def create_joke(
    payload: JokeCreateRequest,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
    config: Settings = Depends(get_settings),
) -> JokeCreated:
    draft = validate_joke_create(
        body=payload.body,
        title=payload.title,
        language=payload.language,
        default_language=config.default_language,
    )
    return await joke_service.create_joke(db, identity.user_id, draft)


@router.patch(
    "/{joke_id}",
    response_model=JokeUpdated,
    responses={
        400: INVALID_ID,
        401: UNAUTHENTICATED,
        403: {"description": "Not the author of this joke", "model": ErrorResponse},
        404: NOT_FOUND,
    },
    summary="Update title and/or body of your own joke",
)
async def update_joke(
    joke_id: str,
    payload: JokeUpdateRequest,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
) -> JokeUpdated:
    resource_id = parse_resource_id(joke_id)
    changes = validate_joke_update(body=payload.body, title=payload.title)
    return await joke_service.update_joke(db, resource_id, identity.user_id, changes)


@router.delete(
    "/{joke_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={
        400: INVALID_ID,
        401: UNAUTHENTICATED,
        403: {"description": "Not the author of this joke", "model": ErrorResponse},
        404: NOT_FOUND,
    },
    summary="Delete your own joke",
)
async def delete_joke(
    joke_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await joke_service.delete_joke(db, parse_resource_id(joke_id), identity.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Comments ──────────────────────────────────────────────────────────────


@router.get(
    "/{joke_id}/comments",
    response_model=List[CommentResponse],
    responses={400: INVALID_ID, 404: NOT_FOUND},
    summary="Comments on a joke, oldest first",
)
async def list_comments(
    joke_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> List[CommentResponse]:
    return await joke_service.list_comments(db, parse_resource_id(joke_id))


@router.post(
    "/{joke_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: INVALID_ID, 401: UNAUTHENTICATED, 404: NOT_FOUND},
    summary="Comment on a joke",
)
async def add_comment(
    joke_id: str,
    payload: CommentCreateRequest,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
) -> CommentResponse:
    resource_id = parse_resource_id(joke_id)
    body = validate_comment(payload.body)
    return await joke_service.add_comment(db, resource_id, identity.user_id, body)
