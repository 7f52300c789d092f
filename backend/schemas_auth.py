"""
backend/schemas_auth.py

Pydantic schemas for signup, login and the current-user endpoint.

Request fields are optional at the schema level so that missing fields
reach AuthService and produce its own 400 messages.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from backend.models import CamelModel, User


class SignupRequest(CamelModel):
    email: Optional[str] = Field(None, max_length=255)
    password: Optional[str] = Field(None, max_length=72)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    # Only "Agent" is honoured; anything else registers a Buyer
    role: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class AuthResponse(CamelModel):
    token: str
    user: User


class MeResponse(CamelModel):
    user: User
    capabilities: List[str] = Field(default_factory=list)
