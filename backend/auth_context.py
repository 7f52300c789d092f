"""
backend/auth_context.py

Shared authentication context primitives for FastAPI dependency injection.

Contains:
- AuthContext: Immutable identity of the caller, re-read from the user store
- get_services: Access to the component container built by create_app()
- require_auth_context: FastAPI dependency for auth enforcement

This module MUST NOT import backend.main to avoid circular dependencies.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ConfigDict

from backend.errors import AuthError, ForbiddenError
from backend.services import Services

logger = logging.getLogger(__name__)

# auto_error=False: a missing header is reported as 401 by require_auth_context
security = HTTPBearer(auto_error=False)


class AuthContext(BaseModel):
    """
    Identity of the authenticated caller.

    Built from the stored user record (source of truth), not from token claims,
    so a role change or deleted user takes effect immediately.
    Never trust user ids from request bodies or query params.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str
    email: str
    role: str
    first_name: str
    last_name: str


def get_services(request: Request) -> Services:
    return request.app.state.services


def require_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    services: Services = Depends(get_services),
) -> AuthContext:
    """
    Authentication gate for protected routes.

    Process:
    1. Require "Authorization: Bearer <token>"
    2. Verify JWT signature and expiration
    3. Re-fetch the user by the token's subject
    4. Require the user to still exist and to have a role

    Raises:
        AuthError(401): Missing/invalid/expired token or user no longer exists
        ForbiddenError(403): Stored user has no role
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthError("You are not logged in! Please log in to get access.")

    payload = services.auth.verify_token(credentials.credentials)
    user_id = payload.get("sub")
    if not user_id:
        logger.warning("[AUTH] Token without subject")
        raise AuthError("Invalid token payload.")

    user = services.users.get_by_id(str(user_id))
    if user is None:
        logger.info("[AUTH] Token for missing user_id=%s", user_id)
        raise AuthError("The user belonging to this token no longer exists.")

    if not user.role:
        logger.warning("[AUTH] User without role user_id=%s", user_id)
        raise ForbiddenError("User role is not defined.")

    return AuthContext(
        user_id=user.id,
        email=user.email,
        role=user.role,
        first_name=user.first_name,
        last_name=user.last_name,
    )
