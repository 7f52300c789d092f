"""
backend/conftest.py

Shared fixtures: an app on a throwaway SQLite file, fake media store and
email dispatcher, and helpers to create users/listings directly.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from backend.auth_service import hash_password
from backend.config import Settings
from backend.errors import UpstreamError
from backend.main import create_app
from backend.media import MediaAsset
from backend.models import LeadContact

TEST_SECRET = "test-only-secret-key-that-is-long-enough"
PASSWORD = "secret123"


class FakeMedia:
    """In-memory media store. fail_on_call makes the n-th upload (1-based) raise upload_error."""

    def __init__(self) -> None:
        self.uploaded: List[MediaAsset] = []
        self.deleted: List[str] = []
        self.upload_calls = 0
        self.fail_on_call: Optional[int] = None
        self.fail_deletes = False
        self.upload_error: Exception = UpstreamError("Failed to upload image.")
        self.delete_error: Exception = UpstreamError("Failed to delete image.")

    def upload(self, data: bytes, folder: str, filename: str, content_type: str) -> MediaAsset:
        self.upload_calls += 1
        if self.fail_on_call is not None and self.upload_calls == self.fail_on_call:
            raise self.upload_error
        external_id = f"realestate/{folder}/{uuid.uuid4().hex[:12]}"
        asset = MediaAsset(url=f"https://images.test/{external_id}.jpg", external_id=external_id)
        self.uploaded.append(asset)
        return asset

    def delete(self, external_id: str) -> None:
        if self.fail_deletes:
            raise self.delete_error
        self.deleted.append(external_id)


class FakeNotifier:
    def __init__(self) -> None:
        self.sent: List[Dict[str, Any]] = []
        self.fail = False
        self.error: Exception = UpstreamError("Failed to send email notification to agent.")

    def notify_new_lead(self, agent_email: str, listing_title: str, lead: LeadContact) -> None:
        if self.fail:
            raise self.error
        self.sent.append({"to": agent_email, "title": listing_title, "lead": lead})


LISTING_FIELDS = {
    "title": "Sunny Bungalow",
    "description": "Two bedroom bungalow near the park",
    "price": 350000,
    "address": "12 Elm St",
    "city": "Austin",
    "state": "TX",
    "zip_code": "78701",
    "latitude": 30.27,
    "longitude": -97.74,
    "property_type": "House",
    "bedrooms": 2,
    "bathrooms": 1.5,
    "sq_ft": 1200,
    "year_built": 1995,
}


def listing_form(**overrides: Any) -> Dict[str, str]:
    """Wire-format (camelCase, string-valued) listing fields for multipart requests."""
    form = {
        "title": "Sunny Bungalow",
        "description": "Two bedroom bungalow near the park",
        "price": "350000",
        "address": "12 Elm St",
        "city": "Austin",
        "state": "TX",
        "zipCode": "78701",
        "latitude": "30.27",
        "longitude": "-97.74",
        "propertyType": "House",
        "bedrooms": "2",
        "bathrooms": "1.5",
        "sqFt": "1200",
        "yearBuilt": "1995",
    }
    form.update(overrides)
    return form


def image_file(name: str = "photo.jpg", size: int = 64, content_type: str = "image/jpeg"):
    return ("images", (name, b"\xff\xd8" + b"0" * size, content_type))


# ---------------------------------------------------------
# App fixtures
# ---------------------------------------------------------
@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(jwt_secret=TEST_SECRET, database_url=f"sqlite:///{tmp_path / 'test.db'}")


@pytest.fixture
def media() -> FakeMedia:
    return FakeMedia()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def app(settings, media, notifier):
    app = create_app(settings, media=media, notifier=notifier)
    yield app
    app.state.services.engine.dispose()


@pytest.fixture
def client(app):
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def services(app):
    return app.state.services


# ---------------------------------------------------------
# Data helpers
# ---------------------------------------------------------
def make_user(services, role: str = "Agent", email: Optional[str] = None, password: str = PASSWORD) -> Dict[str, Any]:
    email = email or f"{role.lower()}-{uuid.uuid4().hex[:8]}@example.com"
    user = services.users.create(
        email=email,
        password_hash=hash_password(password),
        role=role,
        first_name=role,
        last_name="Tester",
        phone="555-0100",
    )
    token = services.auth.issue_token(user)
    return {"user": user, "token": token, "headers": {"Authorization": f"Bearer {token}"}}


def make_listing(services, agent_id: str, status: str = "Active", created_at: Optional[datetime] = None, **overrides: Any):
    repo = services.listings.listings
    listing = repo.create(agent_id, dict(LISTING_FIELDS, **overrides), created_at=created_at)
    if status != "Draft":
        repo.update(listing.id, {"status": status})
    return repo.get(listing.id)


@pytest.fixture
def agent(services):
    return make_user(services, "Agent")


@pytest.fixture
def other_agent(services):
    return make_user(services, "Agent")


@pytest.fixture
def admin(services):
    return make_user(services, "Admin")


@pytest.fixture
def buyer(services):
    return make_user(services, "Buyer")


@pytest.fixture
def base_time() -> datetime:
    return datetime(2024, 1, 1, tzinfo=timezone.utc)


def hours_after(base: datetime, hours: int) -> datetime:
    return base + timedelta(hours=hours)
