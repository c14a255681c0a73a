"""
Jokes API Backend — Route Dependencies and Authorization Guard
================================================================

What:  FastAPI dependencies resolving the per-app objects create_app() puts on
       app.state (settings, CredentialService, UserService), and the guard that
       turns `Authorization: Bearer <token>` into an Identity.
How:   HTTPBearer(auto_error=False) extracts the credential without rejecting
       anything itself, so both failure modes use the application's own errors:
           no/empty credential      → UnauthenticatedError  (401 unauthenticated)
           bad signature / expired  → InvalidCredentialError (401 invalid_credential)
       On success the identity is also attached to request.state.user.
Who:   Every route that needs an authenticated caller declares
       `identity: Identity = Depends(require_identity)`.

Runs before the request body is validated and before any session is opened
against the store (the guard itself never touches the database).
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from jokes_api.config import Settings
from jokes_api.exceptions import UnauthenticatedError
from jokes_api.services.security import CredentialService, Identity
from jokes_api.services.user_service import UserService

bearer_scheme = HTTPBearer(auto_error=False, description="Session token from /api/auth/login")


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_credential_service(request: Request) -> CredentialService:
    return request.app.state.credentials


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


async def require_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    credential_service: CredentialService = Depends(get_credential_service),
) -> Identity:
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError()

    identity = credential_service.verify_token(credentials.credentials)
    request.state.user = identity
    return identity
