"""
backend/dependencies.py

Reusable FastAPI dependencies for role enforcement.
"""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import Depends

from backend.auth_context import AuthContext, require_auth_context
from backend.errors import ForbiddenError
from backend.rbac import role_allowed

logger = logging.getLogger(__name__)


def require_roles(*roles: str) -> Callable[..., AuthContext]:
    """
    FastAPI dependency factory for role-whitelist authorization.

    Runs the authentication gate first (401 on failure), then requires the
    caller's role to be one of `roles` (403 otherwise).

    Usage in routes:
        @router.post("/listings")
        def create(ctx: AuthContext = Depends(require_roles("Agent", "Admin"))):
            ...
    """
    allowed = frozenset(roles)

    def _check_role(ctx: AuthContext = Depends(require_auth_context)) -> AuthContext:
        if not role_allowed(ctx.role, allowed):
            logger.info("[AUTHZ] Role denied: role=%s allowed=%s", ctx.role, sorted(allowed))
            raise ForbiddenError("You do not have permission to perform this action.")
        return ctx

    return _check_role
