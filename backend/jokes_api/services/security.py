"""
Jokes API Backend — Credential Service
========================================

What:  Password hashing/verification and session-token issuance/verification.
Why:   Keeps every cryptographic decision in one place; routes and services only
       see "hash this", "does this match", "issue a token for user N",
       "who does this token belong to".
How:   passlib CryptContext with the bcrypt scheme (deliberately slow, salted,
       constant-time comparison inside verify) and PyJWT HS256 tokens carrying
       the user id in `sub` and a fixed expiration window in `exp`.

Token format:
    {"sub": "<user id>", "iat": <issued at>, "exp": <issued at + JWT_EXPIRE_HOURS>}
    Stateless: there is no revocation list, a token is valid until it expires.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from passlib.context import CryptContext

from jokes_api.config import Settings
from jokes_api.exceptions import InvalidCredentialError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, as decoded from a verified session token."""
    user_id: int


class CredentialService:
    """
    Password hashing and token handling.

    Attributes:
        pwd_context: passlib context configured for bcrypt
        secret:      HMAC secret used to sign and verify tokens
        algorithm:   JWT signing algorithm (HS256)
        expires_in:  Token lifetime
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expire_hours: int = 24,
        bcrypt_rounds: int = 10,
    ):
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=bcrypt_rounds,
        )
        self.secret = secret
        self.algorithm = algorithm
        self.expires_in = timedelta(hours=expire_hours)

    @classmethod
    def from_settings(cls, config: Settings) -> "CredentialService":
        return cls(
            secret=config.jwt_secret,
            algorithm=config.jwt_algorithm,
            expire_hours=config.jwt_expire_hours,
            bcrypt_rounds=config.bcrypt_rounds,
        )

    # ── Passwords ─────────────────────────────────────────────────────────

    def hash_password(self, password: str) -> str:
        return self.pwd_context.hash(password)

    def verify_password(self, password: str, password_hash: Optional[str]) -> bool:
        """
        Compare a plain password against a stored hash.

        A missing or malformed stored hash counts as a mismatch. When there is
        no stored hash at all a dummy verification still runs, so an unknown
        username costs the same time as a wrong password.
        """
        if not password_hash:
            self.pwd_context.dummy_verify()
            return False
        try:
            return self.pwd_context.verify(password, password_hash)
        except (ValueError, TypeError):
            logger.warning("Stored password hash could not be parsed")
            return False

    # ── Tokens ────────────────────────────────────────────────────────────

    def issue_token(self, user_id: int, now: Optional[datetime] = None) -> str:
        """Sign a token for `user_id` that expires `expires_in` after `now`."""
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "iat": issued_at,
            "exp": issued_at + self.expires_in,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Identity:
        """
        Verify signature and expiration, and return the identity inside.

        Raises:
            InvalidCredentialError: bad signature, expired, malformed, or a
                                    subject that is not a user id
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidCredentialError("Token has expired")
        except jwt.InvalidTokenError as e:
            logger.debug("Rejected token: %s", str(e))
            raise InvalidCredentialError()

        try:
            return Identity(user_id=int(payload["sub"]))
        except (TypeError, ValueError):
            raise InvalidCredentialError()
