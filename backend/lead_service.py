"""
backend/lead_service.py

Lead capture and the agent's lead inbox.

- create_lead: public; listing must be Active; the owning agent is emailed
  after the lead is stored, and a failed email never fails the request
- find_for_agent: leads across every listing the agent owns
- update_status: validation (400) -> existence (404) -> ownership (403)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from backend.errors import AppError, NotFoundError, UpstreamError, ValidationError
from backend.lead_repository import LeadRepository
from backend.listing_repository import ListingRepository
from backend.models import Lead, LeadContact, LeadStatus, LeadView, ListingStatus
from backend.notifications import NotificationDispatcher
from backend.rbac import ensure_owner_or_admin
from backend.user_repository import UserRepository

logger = logging.getLogger(__name__)

LEAD_STATUSES = frozenset(status.value for status in LeadStatus)


@dataclass(frozen=True)
class LeadCreation:
    lead: Lead
    notified: bool


class LeadService:
    def __init__(
        self,
        leads: LeadRepository,
        listings: ListingRepository,
        users: UserRepository,
        notifier: NotificationDispatcher,
    ):
        self.leads = leads
        self.listings = listings
        self.users = users
        self.notifier = notifier

    def create_lead(
        self,
        listing_id: Optional[str],
        name: Optional[str],
        email: Optional[str],
        message: Optional[str],
        phone: Optional[str] = None,
    ) -> LeadCreation:
        """
        Raises:
            ValidationError: Required field missing
            NotFoundError: Listing missing or not Active
            AppError(500): Listing has no resolvable agent
        """
        if not all(value and value.strip() for value in (listing_id, name, email, message)):
            raise ValidationError("Missing required fields: listingId, name, email, message.")

        listing = self.listings.get(listing_id)
        if listing is None or listing.status != ListingStatus.active.value:
            raise NotFoundError("Listing not found or is not active.")

        agent = self.users.get_by_id(listing.agent_id)
        if agent is None:
            logger.error("[LEADS] Listing %s has no resolvable agent", listing_id)
            raise AppError("Could not find the agent for this listing.")

        contact = LeadContact(name=name.strip(), email=email.strip(), phone=phone or None, message=message)
        lead = self.leads.create(listing_id, contact)
        self.listings.increment_leads(listing_id)
        logger.info("[LEADS] Captured lead_id=%s listing_id=%s", lead.id, listing_id)

        notified = True
        try:
            self.notifier.notify_new_lead(agent.email, listing.title, contact)
        except UpstreamError as e:
            notified = False
            logger.error("[LEADS] Notification failed for lead_id=%s: %s", lead.id, e.message)
        except Exception:
            notified = False
            logger.exception("[LEADS] Unexpected notification error for lead_id=%s", lead.id)

        return LeadCreation(lead=lead, notified=notified)

    def find_for_agent(self, agent_id: str) -> List[LeadView]:
        listing_ids = self.listings.ids_for_agent(agent_id)
        return self.leads.find_for_listings(listing_ids)

    def update_status(self, lead_id: str, status: Optional[str], user_id: str, role: str) -> Lead:
        """
        Raises:
            ValidationError: status not one of New/Contacted/Converted/Closed
            NotFoundError: Lead or its listing missing
            ForbiddenError: Caller neither owns the listing nor is an Admin
        """
        if status not in LEAD_STATUSES:
            raise ValidationError(f"Invalid status. Must be one of: {', '.join(s.value for s in LeadStatus)}.")

        lead = self.leads.get(lead_id)
        if lead is None:
            raise NotFoundError("Lead not found.")

        listing = self.listings.get(lead.listing_id)
        if listing is None:
            raise NotFoundError("Associated listing not found.")

        ensure_owner_or_admin(user_id, role, listing.agent_id, "You do not have permission to update this lead.")

        updated = self.leads.update_status(lead_id, status)
        logger.info("[LEADS] lead_id=%s status=%s by user_id=%s", lead_id, status, user_id)
        return updated
