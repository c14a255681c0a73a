"""
Jokes API Backend — Listing Query Builder
===========================================

What:  Composes the WHERE / ORDER BY parts of the joke listing from optional
       filters and a sort mode.
Why:   Filters are optional and independent; keeping them as an ordered list of
       (column, value) pairs means every value is a bound parameter and the page
       query and its COUNT query share exactly the same predicate.
How:   `JokeListQuery.where()` appends equality predicates; `apply()` attaches
       them to any select(); `ordering()` returns the ORDER BY for the sort mode.

Sort modes:
    newest   created_at DESC            (default, also for unknown values)
    oldest   created_at ASC
    popular  score DESC, views DESC
    random   RANDOM()                   (different order on every call)
"""

from typing import Any, List, Optional, Tuple

from sqlalchemy import Select, and_, func
from sqlalchemy.sql.elements import ColumnElement

from jokes_api.models.joke import Joke
from jokes_api.models.user import User

SORT_NEWEST = "newest"
SORT_OLDEST = "oldest"
SORT_POPULAR = "popular"
SORT_RANDOM = "random"

SORT_MODES = (SORT_NEWEST, SORT_OLDEST, SORT_POPULAR, SORT_RANDOM)


def normalize_sort(sort: Optional[str]) -> str:
    if sort in SORT_MODES:
        return sort
    return SORT_NEWEST


class JokeListQuery:
    """
    Ordered predicate list plus a sort mode.

    Example:
        query = JokeListQuery.from_filters(author="alice", language="en", sort="popular")
        stmt = query.apply(select(Joke.id).outerjoin(User, Joke.author_id == User.id))
        stmt = stmt.order_by(*query.ordering())
    """

    def __init__(self, sort: Optional[str] = None):
        self.sort = normalize_sort(sort)
        self.predicates: List[Tuple[Any, Any]] = []

    @classmethod
    def from_filters(
        cls,
        author: Optional[str] = None,
        language: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> "JokeListQuery":
        # Empty strings count as "no filter", like a missing query parameter
        query = cls(sort=sort)
        if author:
            query.where(User.username, author)
        if language:
            query.where(Joke.language, language)
        return query

    def where(self, column, value) -> "JokeListQuery":
        self.predicates.append((column, value))
        return self

    def clauses(self) -> List[ColumnElement]:
        return [column == value for column, value in self.predicates]

    def apply(self, stmt: Select) -> Select:
        clauses = self.clauses()
        if not clauses:
            return stmt
        return stmt.where(and_(*clauses))

    def ordering(self) -> List[ColumnElement]:
        if self.sort == SORT_OLDEST:
            return [Joke.created_at.asc(), Joke.id.asc()]
        if self.sort == SORT_POPULAR:
            return [Joke.score.desc(), Joke.views.desc(), Joke.id.desc()]
        if self.sort == SORT_RANDOM:
            return [func.random()]
        return [Joke.created_at.desc(), Joke.id.desc()]

    def __repr__(self) -> str:
        filters = ", ".join(f"{getattr(c, 'key', c)}={v!r}" for c, v in self.predicates)
        return f"<JokeListQuery(sort='{self.sort}', filters=[{filters}])>"
