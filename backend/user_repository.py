"""
backend/user_repository.py

Credential store: user records keyed by id and (unique, lower-cased) email.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from sqlalchemy import insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from backend.db import new_id, users, utcnow
from backend.errors import ValidationError
from backend.models import User


def normalize_email(email: str) -> str:
    return email.strip().lower()


def row_to_user(row: Mapping[str, Any]) -> User:
    return User(
        id=row["id"],
        email=row["email"],
        role=row["role"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        phone=row["phone"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        password_hash=row["password_hash"],
    )


class UserRepository:
    def __init__(self, engine: Engine):
        self.engine = engine

    def create(
        self,
        email: str,
        password_hash: str,
        role: str,
        first_name: str,
        last_name: str,
        phone: Optional[str] = None,
    ) -> User:
        now = utcnow()
        values = {
            "id": new_id(),
            "email": normalize_email(email),
            "password_hash": password_hash,
            "role": role,
            "first_name": first_name.strip(),
            "last_name": last_name.strip(),
            "phone": phone,
            "created_at": now,
            "updated_at": now,
        }
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(users).values(**values))
        except IntegrityError:
            raise ValidationError("Email already registered")
        return row_to_user(values)

    def get_by_id(self, user_id: str) -> Optional[User]:
        with self.engine.connect() as conn:
            row = conn.execute(select(users).where(users.c.id == user_id)).mappings().first()
        return row_to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(users).where(users.c.email == normalize_email(email))
            ).mappings().first()
        return row_to_user(row) if row else None

