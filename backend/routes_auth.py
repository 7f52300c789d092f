"""
backend/routes_auth.py

Signup, login and current-user endpoints.

- POST /auth/signup: public; role "Agent" honoured, anything else -> Buyer
- POST /auth/login: public; unknown email and wrong password share one 401
- GET  /auth/me: authenticated; user record plus role capabilities
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from backend.auth_context import AuthContext, get_services, require_auth_context
from backend.errors import AuthError
from backend.rbac import capabilities_for
from backend.schemas_auth import AuthResponse, LoginRequest, MeResponse, SignupRequest
from backend.services import Services

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(body: SignupRequest, services: Services = Depends(get_services)) -> AuthResponse:
    """
    Register a user and return a session token.

    Raises:
        ValidationError(400): Missing fields, short password or duplicate email
    """
    result = services.auth.register(
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
        role=body.role,
    )
    return AuthResponse(token=result.token, user=result.user)


@router.post("/login", response_model=AuthResponse)
def login(body: LoginRequest, services: Services = Depends(get_services)) -> AuthResponse:
    result = services.auth.login(body.email, body.password)
    return AuthResponse(token=result.token, user=result.user)


@router.get("/me", response_model=MeResponse)
def me(
    ctx: AuthContext = Depends(require_auth_context),
    services: Services = Depends(get_services),
) -> MeResponse:
    user = services.users.get_by_id(ctx.user_id)
    if user is None:
        raise AuthError("The user belonging to this token no longer exists.")
    return MeResponse(user=user, capabilities=sorted(capabilities_for(user.role)))
