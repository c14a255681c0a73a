"""
Jokes API Backend — Favorite Service
======================================

What:  Add/remove a (user, joke) favorite and list a user's favorites.
How:   The composite primary key does the duplicate detection: a second insert
       is a uniqueness violation, translated to DuplicateResourceError (409).
       A favorite on a joke that does not exist is a foreign-key violation,
       translated to InvalidReferenceError (400).
       Removal is idempotent: deleting a missing pair is still a success.
"""

import logging
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from jokes_api.models.favorite import Favorite
from jokes_api.models.joke import Joke
from jokes_api.models.user import User
from jokes_api.schemas.joke import FavoriteJoke
from jokes_api.services.error_translation import translate_store_errors
from jokes_api.services.joke_service import JOKE_COLUMNS

logger = logging.getLogger(__name__)


class FavoriteService:

    async def add_favorite(self, db: AsyncSession, user_id: int, joke_id: int) -> None:
        with translate_store_errors("add favorite"):
            db.add(Favorite(user_id=user_id, joke_id=joke_id))
            await db.flush()
        logger.debug("User %s favorited joke %s", user_id, joke_id)

    async def remove_favorite(self, db: AsyncSession, user_id: int, joke_id: int) -> None:
        with translate_store_errors("remove favorite"):
            result = await db.execute(
                delete(Favorite)
                .where(Favorite.user_id == user_id, Favorite.joke_id == joke_id)
                .execution_options(synchronize_session=False)
            )
        logger.debug(
            "User %s unfavorited joke %s (%d row(s) removed)",
            user_id, joke_id, result.rowcount,
        )

    async def list_for_user(self, db: AsyncSession, user_id: int) -> List[FavoriteJoke]:
        """
        All jokes favorited by `user_id`, most recently favorited first.

        An unknown user simply has no favorites: the result is an empty list.
        """
        stmt = (
            select(
                *JOKE_COLUMNS,
                User.username.label("author_name"),
                User.display_name.label("author_display_name"),
                Favorite.created_at.label("favorited_at"),
            )
            .select_from(Favorite)
            .join(Joke, Favorite.joke_id == Joke.id)
            .outerjoin(User, Joke.author_id == User.id)
            .where(Favorite.user_id == user_id)
            .order_by(Favorite.created_at.desc(), Joke.id.desc())
        )

        with translate_store_errors("list favorites"):
            rows = (await db.execute(stmt)).all()

        return [FavoriteJoke.model_validate(dict(row._mapping)) for row in rows]


favorite_service = FavoriteService()
