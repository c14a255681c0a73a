"""
Jokes API Backend — User Service
==================================

What:  Registration, login, profile lookup and the availability hint.
Why:   Login must not reveal whether a username exists: an unknown username and
       a wrong password produce the same AuthenticationFailedError, and both
       paths spend one bcrypt verification.

Registration Flow:
    validated input → bcrypt hash → INSERT users → token for the new id
    A racing duplicate is caught by the UNIQUE constraints, not by a pre-check.
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from jokes_api.exceptions import AuthenticationFailedError, NotFoundError
from jokes_api.models.user import User, utcnow
from jokes_api.schemas.user import (
    AvailabilityResponse,
    LoginResponse,
    ProfileResponse,
    PublicUser,
    RegisterResponse,
)
from jokes_api.services.error_translation import translate_store_errors
from jokes_api.services.security import CredentialService
from jokes_api.services.validation import Registration

logger = logging.getLogger(__name__)


class UserService:
    """
    Attributes:
        credentials: Hashing and token service (swappable in tests)
    """

    def __init__(self, credentials: CredentialService):
        self.credentials = credentials

    async def register(self, db: AsyncSession, registration: Registration) -> RegisterResponse:
        logger.debug("Registration attempt for username: %s", registration.username)
        user = User(
            username=registration.username,
            email=registration.email,
            display_name=registration.display_name,
            password_hash=self.credentials.hash_password(registration.password),
        )

        with translate_store_errors("register user"):
            db.add(user)
            await db.flush()

        logger.info("User registered: id=%s username=%s", user.id, user.username)
        return RegisterResponse(
            id=user.id,
            username=user.username,
            display_name=user.display_name,
            email=user.email,
            token=self.credentials.issue_token(user.id),
        )

    async def login(self, db: AsyncSession, username: str, password: str) -> LoginResponse:
        """
        Verify credentials and refresh last_seen_at.

        Raises:
            AuthenticationFailedError: unknown username or wrong password (same message)
        """
        logger.debug("Login attempt for username: %s", username)

        with translate_store_errors("login"):
            user = (
                await db.execute(select(User).where(User.username == username))
            ).scalar_one_or_none()

        stored_hash = user.password_hash if user is not None else None
        if not self.credentials.verify_password(password, stored_hash) or user is None:
            logger.info("Failed login for username: %s", username)
            raise AuthenticationFailedError()

        with translate_store_errors("login"):
            await db.execute(
                update(User)
                .where(User.id == user.id)
                .values(last_seen_at=utcnow())
                .execution_options(synchronize_session=False)
            )

        logger.info("User logged in: id=%s", user.id)
        return LoginResponse(
            token=self.credentials.issue_token(user.id),
            user=PublicUser.model_validate(user),
        )

    async def get_profile(self, db: AsyncSession, user_id: int) -> ProfileResponse:
        with translate_store_errors("fetch profile"):
            user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError("user", str(user_id))
        return ProfileResponse.model_validate(user)

    async def check_availability(
        self,
        db: AsyncSession,
        username: str | None = None,
        email: str | None = None,
    ) -> AvailabilityResponse:
        """
        Report, independently for each value given, whether it is still free.

        Only a hint for the registration form: a value can be taken between this
        check and the actual registration, which then fails with a 409.
        """
        response = AvailabilityResponse()

        with translate_store_errors("check availability"):
            if username:
                taken = (
                    await db.execute(select(User.id).where(User.username == username))
                ).first()
                response.username_available = taken is None
            if email:
                taken = (
                    await db.execute(select(User.id).where(User.email == email))
                ).first()
                response.email_available = taken is None

        return response
