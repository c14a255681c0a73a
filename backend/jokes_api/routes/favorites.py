"""
Jokes API Backend — Favorites Route Handlers
==============================================

What:  POST / DELETE /api/jokes/{id}/favorite and GET /api/users/{id}/favorites.
How:   The same router is mounted twice by create_app(): under /api (documented)
       and under /api/favorites, the older mount point existing clients still
       call (hidden from the OpenAPI schema).
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from jokes_api.database import get_db_session
from jokes_api.routes.dependencies import require_identity
from jokes_api.schemas.common import ErrorResponse
from jokes_api.schemas.joke import FavoriteJoke
from jokes_api.services.favorite_service import favorite_service
from jokes_api.services.security import Identity
from jokes_api.services.validation import parse_resource_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Favorites"])


@router.post(
    "/jokes/{joke_id}/favorite",
    status_code=status.HTTP_201_CREATED,
    response_class=Response,
    responses={
        400: {"description": "Invalid id, or the joke does not exist", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        409: {"description": "Already in favorites", "model": ErrorResponse},
    },
    summary="Add a joke to your favorites",
)
async def add_favorite(
    joke_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await favorite_service.add_favorite(db, identity.user_id, parse_resource_id(joke_id))
    return Response(status_code=status.HTTP_201_CREATED)


@router.delete(
    "/jokes/{joke_id}/favorite",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Remove a joke from your favorites (idempotent)",
)
async def remove_favorite(
    joke_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await favorite_service.remove_favorite(db, identity.user_id, parse_resource_id(joke_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/users/{user_id}/favorites",
    response_model=List[FavoriteJoke],
    summary="Jokes a user has favorited, newest favorite first",
)
async def list_user_favorites(
    user_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> List[FavoriteJoke]:
    return await favorite_service.list_for_user(db, parse_resource_id(user_id, resource="user"))
