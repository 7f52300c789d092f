"""
backend/services.py

Component wiring. create_app() builds one Services container and stores it
on app.state; route dependencies read it back through get_services().
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine

from backend.auth_service import AuthService
from backend.config import Settings
from backend.lead_repository import LeadRepository
from backend.lead_service import LeadService
from backend.listing_repository import ListingRepository
from backend.listing_service import ListingService
from backend.media import MediaUploader, build_media_uploader
from backend.notifications import NotificationDispatcher, build_notifier
from backend.user_repository import UserRepository


@dataclass(frozen=True)
class Services:
    settings: Settings
    engine: Engine
    users: UserRepository
    auth: AuthService
    listings: ListingService
    leads: LeadService


def build_services(
    settings: Settings,
    engine: Engine,
    media: Optional[MediaUploader] = None,
    notifier: Optional[NotificationDispatcher] = None,
) -> Services:
    """
    Raises:
        ConfigError: No media uploader given and Cloudinary credentials missing
    """
    if media is None:
        media = build_media_uploader(settings)
    if notifier is None:
        notifier = build_notifier(settings)

    users = UserRepository(engine)
    listing_repo = ListingRepository(engine)
    return Services(
        settings=settings,
        engine=engine,
        users=users,
        auth=AuthService(settings, users),
        listings=ListingService(listing_repo, media),
        leads=LeadService(LeadRepository(engine), listing_repo, users, notifier),
    )
