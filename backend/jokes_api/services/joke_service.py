"""
Jokes API Backend — Joke Service (Resource Handlers)
======================================================

What:  Listing, random pick, single read, create, owner-only update/delete, and
       the comments attached to a joke.
Why:   Keeps query construction and ownership rules out of the route layer;
       routes only validate input and pick a status code.
How:   Every method receives the request's AsyncSession; store calls run inside
       translate_store_errors() so constraint violations leave as client errors.
Who:   Called by jokes_api.routes.jokes.

Ownership Flow (PATCH / DELETE):
    ┌──────────────────────────────────────────┐
    │ UPDATE/DELETE jokes                      │  1 row  → done
    │ WHERE id = :id AND author_id = :user_id  │──────────────────────▶
    └──────────────────────────────────────────┘
                       │ 0 rows
                       ▼
    ┌──────────────────────────────────────────┐
    │ SELECT author_id FROM jokes WHERE id=:id │  no row → NotFoundError
    └──────────────────────────────────────────┘  row    → ForbiddenError

    The write itself carries the ownership predicate, so there is no window
    between "check" and "write". The follow-up SELECT only picks the error.
    Author-less jokes (author_id NULL) never match and are always Forbidden.
"""

import logging
import math
from typing import List, NoReturn, Optional

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from jokes_api.database import Database
from jokes_api.exceptions import ForbiddenError, NotFoundError
from jokes_api.models.comment import Comment
from jokes_api.models.favorite import Favorite
from jokes_api.models.joke import Joke
from jokes_api.models.user import User, utcnow
from jokes_api.schemas.joke import (
    CommentResponse,
    JokeCreated,
    JokeDetail,
    JokeItem,
    JokeListResponse,
    JokeUpdated,
    PaginationMeta,
)
from jokes_api.services.error_translation import translate_store_errors
from jokes_api.services.query_builder import SORT_RANDOM, JokeListQuery
from jokes_api.services.validation import JokeDraft, Pagination

logger = logging.getLogger(__name__)

JOKE_COLUMNS = (
    Joke.id,
    Joke.author_id,
    Joke.title,
    Joke.body,
    Joke.language,
    Joke.score,
    Joke.views,
    Joke.created_at,
    Joke.updated_at,
)


def favorites_count_column():
    return (
        select(func.count())
        .select_from(Favorite)
        .where(Favorite.joke_id == Joke.id)
        .correlate(Joke)
        .scalar_subquery()
        .label("favorites_count")
    )


def comments_count_column():
    return (
        select(func.count())
        .select_from(Comment)
        .where(Comment.joke_id == Joke.id)
        .correlate(Joke)
        .scalar_subquery()
        .label("comments_count")
    )


def enriched_joke_select(*extra_columns) -> Select:
    """SELECT j.*, u.username AS author_name, <favorites_count> FROM jokes j LEFT JOIN users u."""
    return select(
        *JOKE_COLUMNS,
        User.username.label("author_name"),
        favorites_count_column(),
        *extra_columns,
    ).outerjoin(User, Joke.author_id == User.id)


class JokeService:
    """
    Stateless: the session (and, for background work, the Database handle)
    is passed into every call.
    """

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_jokes(
        self,
        db: AsyncSession,
        query: JokeListQuery,
        pagination: Pagination,
    ) -> JokeListResponse:
        """
        One page of jokes plus pagination metadata.

        The COUNT runs over the same join and predicates as the page, without
        ORDER BY / LIMIT / OFFSET, so `total` always matches the filter.
        """
        page_stmt = (
            query.apply(enriched_joke_select())
            .order_by(*query.ordering())
            .limit(pagination.limit)
            .offset(pagination.offset)
        )
        count_stmt = query.apply(
            select(func.count(Joke.id))
            .select_from(Joke)
            .outerjoin(User, Joke.author_id == User.id)
        )

        with translate_store_errors("list jokes"):
            rows = (await db.execute(page_stmt)).all()
            total = (await db.execute(count_stmt)).scalar_one()

        total_pages = math.ceil(total / pagination.limit) if total else 0
        logger.debug("Listed %d of %d jokes (%r)", len(rows), total, query)

        return JokeListResponse(
            items=[JokeItem.model_validate(dict(row._mapping)) for row in rows],
            pagination=PaginationMeta(
                page=pagination.page,
                limit=pagination.limit,
                total=total,
                total_pages=total_pages,
                has_next=pagination.page < total_pages,
                has_prev=pagination.page > 1,
            ),
        )

    async def random_joke(self, db: AsyncSession, language: Optional[str] = None) -> JokeItem:
        """
        Pick one joke at random, optionally in one language.

        The view counter is NOT bumped here: the route schedules record_view()
        as a background task so the response does not wait on it.
        """
        query = JokeListQuery.from_filters(language=language, sort=SORT_RANDOM)
        stmt = query.apply(enriched_joke_select()).order_by(*query.ordering()).limit(1)

        with translate_store_errors("pick random joke"):
            row = (await db.execute(stmt)).first()

        if row is None:
            raise NotFoundError(
                "joke",
                context={"reason": "No jokes found", "language": language},
            )
        return JokeItem.model_validate(dict(row._mapping))

    async def record_view(self, database: Database, joke_id: int) -> None:
        """
        Fire-and-forget view increment, run after the response is sent.

        Uses its own session because the request session is already closed.
        A failure here is logged and dropped; the read it follows has succeeded.
        Concurrent increments may race (no compare-and-swap).
        """
        try:
            async with database.session() as session:
                await session.execute(
                    update(Joke)
                    .where(Joke.id == joke_id)
                    .values(views=Joke.views + 1)
                    .execution_options(synchronize_session=False)
                )
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Could not record view for joke %s: %s", joke_id, str(e))

    async def get_joke(self, db: AsyncSession, joke_id: int) -> JokeDetail:
        """
        Single read with favorites and comments counts; bumps the view counter.

        The returned `views` is the value before this read was counted.
        """
        logger.debug("Fetching joke with ID: %s", joke_id)
        stmt = enriched_joke_select(comments_count_column()).where(Joke.id == joke_id)

        with translate_store_errors("fetch joke"):
            row = (await db.execute(stmt)).first()
            if row is None:
                raise NotFoundError("joke", str(joke_id))

            await db.execute(
                update(Joke)
                .where(Joke.id == joke_id)
                .values(views=Joke.views + 1)
                .execution_options(synchronize_session=False)
            )

        return JokeDetail.model_validate(dict(row._mapping))

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_joke(self, db: AsyncSession, author_id: int, draft: JokeDraft) -> JokeCreated:
        logger.debug("Creating joke for user: %s", author_id)
        joke = Joke(
            author_id=author_id,
            title=draft.title,
            body=draft.body,
            language=draft.language,
        )
        with translate_store_errors("create joke"):
            db.add(joke)
            await db.flush()

        logger.info("Joke created: id=%s author=%s", joke.id, author_id)
        return JokeCreated.model_validate(joke)

    async def update_joke(
        self,
        db: AsyncSession,
        joke_id: int,
        user_id: int,
        changes: dict,
    ) -> JokeUpdated:
        """
        Apply `changes` (body and/or title) if `user_id` owns the joke.

        Raises:
            NotFoundError:  No joke with this id
            ForbiddenError: The joke exists but belongs to someone else (or no one)
        """
        logger.debug("Updating joke ID: %s by user: %s", joke_id, user_id)
        stmt = (
            update(Joke)
            .where(Joke.id == joke_id, Joke.author_id == user_id)
            .values(**changes, updated_at=utcnow())
            .returning(Joke.id, Joke.title, Joke.body, Joke.language, Joke.updated_at)
            .execution_options(synchronize_session=False)
        )

        with translate_store_errors("update joke"):
            row = (await db.execute(stmt)).first()
            if row is None:
                await self._raise_ownership_failure(db, joke_id, "update")

        logger.info("Joke updated: id=%s", joke_id)
        return JokeUpdated.model_validate(dict(row._mapping))

    async def delete_joke(self, db: AsyncSession, joke_id: int, user_id: int) -> None:
        """Delete the joke if `user_id` owns it; same errors as update_joke()."""
        logger.debug("Deleting joke ID: %s by user: %s", joke_id, user_id)
        stmt = (
            delete(Joke)
            .where(Joke.id == joke_id, Joke.author_id == user_id)
            .execution_options(synchronize_session=False)
        )

        with translate_store_errors("delete joke"):
            result = await db.execute(stmt)
            if result.rowcount == 0:
                await self._raise_ownership_failure(db, joke_id, "delete")

        logger.info("Joke deleted: id=%s", joke_id)

    async def _raise_ownership_failure(self, db: AsyncSession, joke_id: int, verb: str) -> NoReturn:
        exists = (
            await db.execute(select(Joke.author_id).where(Joke.id == joke_id))
        ).first()
        if exists is None:
            raise NotFoundError("joke", str(joke_id))
        raise ForbiddenError(
            f"You can only {verb} your own jokes",
            context={"reason": "Forbidden"},
        )

    # ── Comments ──────────────────────────────────────────────────────────

    async def _require_joke(self, db: AsyncSession, joke_id: int) -> None:
        found = (await db.execute(select(Joke.id).where(Joke.id == joke_id))).first()
        if found is None:
            raise NotFoundError("joke", str(joke_id))

    async def list_comments(self, db: AsyncSession, joke_id: int) -> List[CommentResponse]:
        """Comments on a joke, oldest first."""
        stmt = (
            select(
                Comment.id,
                Comment.joke_id,
                Comment.author_id,
                User.username.label("author_name"),
                Comment.body,
                Comment.created_at,
            )
            .outerjoin(User, Comment.author_id == User.id)
            .where(Comment.joke_id == joke_id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )

        with translate_store_errors("list comments"):
            await self._require_joke(db, joke_id)
            rows = (await db.execute(stmt)).all()

        return [CommentResponse.model_validate(dict(row._mapping)) for row in rows]

    async def add_comment(
        self,
        db: AsyncSession,
        joke_id: int,
        author_id: int,
        body: str,
    ) -> CommentResponse:
        with translate_store_errors("add comment"):
            await self._require_joke(db, joke_id)
            comment = Comment(joke_id=joke_id, author_id=author_id, body=body)
            db.add(comment)
            await db.flush()
            author_name = (
                await db.execute(select(User.username).where(User.id == author_id))
            ).scalar_one_or_none()

        logger.info("Comment %s added to joke %s", comment.id, joke_id)
        return CommentResponse(
            id=comment.id,
            joke_id=comment.joke_id,
            author_id=comment.author_id,
            author_name=author_name,
            body=comment.body,
            created_at=comment.created_at,
        )


# ── Module-level singleton ────────────────────────────────────────────────
joke_service = JokeService()
