"""
Jokes API Backend — Error Translator
======================================

What:  Maps store failures to client-facing error categories.
Why:   Constraint violations are the client's problem (duplicate username,
       dangling reference); everything else is ours and must not leak detail.
How:   Reads the SQLSTATE reported by the driver (asyncpg exposes it as
       `sqlstate` / `pgcode`, and the constraint name on the original asyncpg
       exception). SQLite has no SQLSTATE, so its message text is matched instead.
Who:   Every service wraps its store calls in `translate_store_errors(...)`.

Mapping:
    ┌─────────────────────────────────────┬──────────────────────────┐
    │ Store signal                        │ Raised                   │
    ├─────────────────────────────────────┼──────────────────────────┤
    │ 23503 foreign_key_violation         │ InvalidReferenceError    │
    │ 23505 unique_violation (username)   │ DuplicateUsernameError   │
    │ 23505 unique_violation (email)      │ DuplicateEmailError      │
    │ 23505 unique_violation (other)      │ DuplicateResourceError   │
    │ 23514 check_violation               │ ValidationError          │
    │ anything else                       │ BackendUnavailableError  │
    └─────────────────────────────────────┴──────────────────────────┘
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from jokes_api.exceptions import (
    BackendUnavailableError,
    DuplicateEmailError,
    DuplicateResourceError,
    DuplicateUsernameError,
    InvalidReferenceError,
    JokesApiError,
    ValidationError,
)

logger = logging.getLogger(__name__)

FOREIGN_KEY_VIOLATION = "23503"
UNIQUE_VIOLATION = "23505"
CHECK_VIOLATION = "23514"

# SQLite reports constraint failures only through the message text
_SQLITE_MESSAGES = (
    ("unique constraint failed", UNIQUE_VIOLATION),
    ("foreign key constraint failed", FOREIGN_KEY_VIOLATION),
    ("check constraint failed", CHECK_VIOLATION),
)


def _driver_error(exc: DBAPIError):
    return getattr(exc, "orig", None)


def get_sqlstate(exc: DBAPIError) -> Optional[str]:
    """SQLSTATE of the failure, or a synthesized one for recognised SQLite messages."""
    orig = _driver_error(exc)
    for candidate in (orig, getattr(orig, "__cause__", None)):
        for attr in ("sqlstate", "pgcode"):
            code = getattr(candidate, attr, None)
            if code:
                return str(code)

    message = str(orig or exc).lower()
    for needle, code in _SQLITE_MESSAGES:
        if needle in message:
            return code
    return None


def get_constraint_text(exc: DBAPIError) -> str:
    """
    Text that names the violated constraint.

    asyncpg: the constraint name (e.g. "users_username_key").
    SQLite:  the message, which lists the columns ("... users.username").
    """
    orig = _driver_error(exc)
    for candidate in (orig, getattr(orig, "__cause__", None)):
        name = getattr(candidate, "constraint_name", None)
        if name:
            return str(name).lower()
    return str(orig or exc).lower()


def translate_database_error(exc: Exception, action: str = "database operation") -> JokesApiError:
    """
    Convert a store exception into the application exception to raise.

    Args:
        exc:    The exception raised by SQLAlchemy or the driver
        action: Short description for the server-side log line

    Returns:
        A JokesApiError subclass instance (never raises itself)
    """
    if isinstance(exc, DBAPIError):
        sqlstate = get_sqlstate(exc)

        if sqlstate == UNIQUE_VIOLATION:
            constraint = get_constraint_text(exc)
            logger.info("Uniqueness violation during %s: %s", action, constraint)
            if "username" in constraint:
                return DuplicateUsernameError()
            if "email" in constraint:
                return DuplicateEmailError()
            return DuplicateResourceError()

        if sqlstate == FOREIGN_KEY_VIOLATION:
            logger.info("Foreign key violation during %s", action)
            return InvalidReferenceError()

        if sqlstate == CHECK_VIOLATION:
            logger.info("Check constraint violation during %s", action)
            return ValidationError(message="Invalid data provided", context={"reason": "Validation error"})

    logger.error(
        "Database error during %s: %s: %s",
        action,
        type(exc).__name__,
        str(exc),
    )
    return BackendUnavailableError(
        context={"action": action, "error_type": type(exc).__name__},
    )


@contextmanager
def translate_store_errors(action: str) -> Iterator[None]:
    """
    Wrap a block of store calls so failures leave it already translated.

    Application exceptions raised inside the block (NotFoundError, ForbiddenError...)
    pass through untouched. No retries: the first store failure is final.

    Example:
        with translate_store_errors("create joke"):
            db.add(joke)
            await db.flush()
    """
    try:
        yield
    except JokesApiError:
        raise
    except (SQLAlchemyError, OSError) as e:
        raise translate_database_error(e, action) from e
