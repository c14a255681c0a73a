"""
Jokes API Backend — Validation Layer
======================================

What:  Per-endpoint input predicates, run before any data access.
Why:   A request that can be rejected from its own contents never opens a
       store session. Each failed predicate raises ValidationError with a short
       reason (details.reason) and a human-readable message.
Who:   Called by route handlers right after the authorization guard.

Rules:
    Joke create:   body required, non-empty after trim, ≤ 5000 chars;
                   title optional, ≤ 200 chars; language optional, ≤ 10 chars
    Joke update:   at least one of body/title; body non-empty after trim if given
    Pagination:    page/limit parsed as integers (fallback 1 / default limit),
                   page ≥ 1, limit clamped to [1, max limit]
    Registration:  username, email, password required; password ≥ 6 chars;
                   email shaped like local@domain.tld
    Login:         username and password required
    Resource ids:  decimal integers within BIGINT range
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, NoReturn, Optional

from jokes_api.exceptions import ValidationError

MAX_JOKE_BODY_LENGTH = 5000
MAX_JOKE_TITLE_LENGTH = 200
MAX_LANGUAGE_LENGTH = 10
MAX_COMMENT_LENGTH = 2000
MIN_PASSWORD_LENGTH = 6
MAX_USERNAME_LENGTH = 30
MAX_DISPLAY_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 255

# BIGSERIAL upper bound; larger ids cannot exist and would overflow the driver
MAX_RESOURCE_ID = 2**63 - 1

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
INTEGER_PATTERN = re.compile(r"-?\d+")


def _fail(reason: str, message: str, field: Optional[str] = None) -> NoReturn:
    raise ValidationError(message=message, field=field, context={"reason": reason})


# ══════════════════════════════════════════════════════════════════════════
# Jokes
# ══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class JokeDraft:
    body: str
    title: Optional[str]
    language: str


def validate_joke_create(
    body: Optional[str],
    title: Optional[str],
    language: Optional[str],
    default_language: str = "ru",
) -> JokeDraft:
    if body is None or not body.strip():
        _fail("Missing required field", "Joke body is required", field="body")

    if len(body) > MAX_JOKE_BODY_LENGTH:
        _fail(
            "Joke too long",
            f"Joke body must be at most {MAX_JOKE_BODY_LENGTH} characters",
            field="body",
        )

    if title is not None and len(title) > MAX_JOKE_TITLE_LENGTH:
        _fail(
            "Title too long",
            f"Title must be at most {MAX_JOKE_TITLE_LENGTH} characters",
            field="title",
        )

    language = language or default_language
    if len(language) > MAX_LANGUAGE_LENGTH:
        _fail(
            "Invalid language",
            f"Language tag must be at most {MAX_LANGUAGE_LENGTH} characters",
            field="language",
        )

    return JokeDraft(body=body, title=title, language=language)


def validate_joke_update(body: Optional[str], title: Optional[str]) -> Dict[str, Any]:
    """
    Returns the column changes to apply; only fields that were sent are included.

    An empty string does not count as a provided field: {"title": ""} alone is
    rejected like {}.
    """
    if not body and not title:
        _fail(
            "No fields to update",
            "Provide at least one field to update (body or title)",
        )

    changes: Dict[str, Any] = {}

    if body is not None:
        if not body.strip():
            _fail("Invalid body", "Joke body cannot be empty", field="body")
        if len(body) > MAX_JOKE_BODY_LENGTH:
            _fail(
                "Joke too long",
                f"Joke body must be at most {MAX_JOKE_BODY_LENGTH} characters",
                field="body",
            )
        changes["body"] = body

    if title is not None:
        if len(title) > MAX_JOKE_TITLE_LENGTH:
            _fail(
                "Title too long",
                f"Title must be at most {MAX_JOKE_TITLE_LENGTH} characters",
                field="title",
            )
        changes["title"] = title

    return changes


def validate_comment(body: Optional[str]) -> str:
    if body is None or not body.strip():
        _fail("Missing required field", "Comment body is required", field="body")
    if len(body) > MAX_COMMENT_LENGTH:
        _fail(
            "Comment too long",
            f"Comment must be at most {MAX_COMMENT_LENGTH} characters",
            field="body",
        )
    return body


# ══════════════════════════════════════════════════════════════════════════
# Pagination and identifiers
# ══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _parse_int(raw: Optional[str], fallback: int) -> int:
    if raw is None:
        return fallback
    try:
        return int(str(raw).strip())
    except ValueError:
        return fallback


def parse_pagination(
    page: Optional[str],
    limit: Optional[str],
    default_limit: int = 10,
    max_limit: int = 50,
) -> Pagination:
    """
    Never fails: unparsable values fall back to defaults, then bounds are applied.

    >>> parse_pagination("0", "500")
    Pagination(page=1, limit=50)
    """
    parsed_page = _parse_int(page, 1)
    parsed_limit = _parse_int(limit, default_limit)
    return Pagination(
        page=max(1, parsed_page),
        limit=min(max_limit, max(1, parsed_limit)),
    )


def parse_resource_id(raw: Any, resource: str = "joke") -> int:
    """
    Parse a path identifier.

    A non-integer id is a client error, never a not-found: "abc", "1.5" and
    "12abc" are all rejected here before any query runs.
    """
    text = str(raw).strip() if raw is not None else ""
    if not INTEGER_PATTERN.fullmatch(text):
        _fail("Invalid ID", f"Please provide a valid {resource} ID", field="id")
    value = int(text)
    if abs(value) > MAX_RESOURCE_ID:
        _fail("Invalid ID", f"Please provide a valid {resource} ID", field="id")
    return value


# ══════════════════════════════════════════════════════════════════════════
# Accounts
# ══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Registration:
    username: str
    email: str
    password: str
    display_name: str


def validate_registration(
    username: Optional[str],
    email: Optional[str],
    password: Optional[str],
    display_name: Optional[str] = None,
) -> Registration:
    if not username or not email or not password:
        _fail("Missing required fields", "Username, email and password are required")

    if len(password) < MIN_PASSWORD_LENGTH:
        _fail(
            "Password too short",
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            field="password",
        )

    if len(email) > MAX_EMAIL_LENGTH or not EMAIL_PATTERN.fullmatch(email):
        _fail("Invalid email format", "Please provide a valid email address", field="email")

    if len(username) > MAX_USERNAME_LENGTH:
        _fail(
            "Username too long",
            f"Username must be at most {MAX_USERNAME_LENGTH} characters",
            field="username",
        )

    display_name = display_name or username
    if len(display_name) > MAX_DISPLAY_NAME_LENGTH:
        _fail(
            "Display name too long",
            f"Display name must be at most {MAX_DISPLAY_NAME_LENGTH} characters",
            field="display_name",
        )

    return Registration(
        username=username,
        email=email,
        password=password,
        display_name=display_name,
    )


def validate_login(username: Optional[str], password: Optional[str]) -> None:
    if not username or not password:
        _fail("Missing required fields", "Username and password are required")
