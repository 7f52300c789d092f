"""
backend/auth_service.py

Registration, login and session-token issuance/verification.

- Passwords: bcrypt with a per-record salt; plaintext is never stored or returned
- Tokens: HS256 JWT carrying sub, email, role, firstName, lastName, iat, exp
- Login failures are undifferentiated: unknown email and wrong password
  produce the same AuthError message
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt

from backend.config import Settings
from backend.errors import AuthError, ValidationError
from backend.models import User, UserRole
from backend.user_repository import UserRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
# bcrypt only accepts up to 72 bytes of input
MAX_PASSWORD_BYTES = 72
BAD_CREDENTIALS = "Incorrect email or password"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash or len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def resolve_signup_role(requested: Optional[str]) -> str:
    """Only an explicit "Agent" request is honoured; everything else is a Buyer."""
    if requested == UserRole.agent.value:
        return UserRole.agent.value
    return UserRole.buyer.value


@dataclass(frozen=True)
class AuthResult:
    user: User
    token: str


class AuthService:
    def __init__(self, settings: Settings, users: UserRepository):
        self.settings = settings
        self.users = users

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------
    def issue_token(self, user: User, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": user.id,
            "email": user.email,
            "role": user.role,
            "firstName": user.first_name,
            "lastName": user.last_name,
            "iat": issued_at,
            "exp": issued_at + self.settings.token_ttl,
        }
        return jwt.encode(payload, self.settings.jwt_secret, algorithm=self.settings.jwt_algorithm)

    def verify_token(self, token: Optional[str]) -> Dict[str, Any]:
        """
        Decode and validate a session token.

        Raises:
            AuthError: Missing, malformed, expired or wrongly signed token
        """
        if not token:
            raise AuthError("You are not logged in! Please log in to get access.")
        try:
            payload = jwt.decode(
                token,
                self.settings.jwt_secret,
                algorithms=[self.settings.jwt_algorithm],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthError("Your session has expired. Please log in again.")
        except jwt.InvalidTokenError:
            raise AuthError("Invalid or expired token. Please log in again.")
        return payload

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------
    def register(
        self,
        email: Optional[str],
        password: Optional[str],
        first_name: Optional[str],
        last_name: Optional[str],
        phone: Optional[str] = None,
        role: Optional[str] = None,
    ) -> AuthResult:
        """
        Create a user and log them in.

        Raises:
            ValidationError: Missing required field, password too short or too long, duplicate email
        """
        if not all(value and value.strip() for value in (email, password, first_name, last_name)):
            raise ValidationError("Missing required fields.")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")

        final_role = resolve_signup_role(role)
        user = self.users.create(
            email=email,
            password_hash=hash_password(password),
            role=final_role,
            first_name=first_name,
            last_name=last_name,
            phone=phone or None,
        )
        logger.info("[AUTH] Registered user_id=%s role=%s", user.id, final_role)
        return AuthResult(user=user, token=self.issue_token(user))

    def login(self, email: Optional[str], password: Optional[str]) -> AuthResult:
        """
        Raises:
            ValidationError: Email or password missing
            AuthError: Unknown email or wrong password (same message for both)
        """
        if not email or not password:
            raise ValidationError("Please provide email and password!")

        user = self.users.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("[AUTH] Login rejected")
            raise AuthError(BAD_CREDENTIALS)

        logger.info("[AUTH] Login ok user_id=%s", user.id)
        return AuthResult(user=user, token=self.issue_token(user))
