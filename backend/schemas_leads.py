"""
backend/schemas_leads.py

Pydantic schemas for lead capture and the agent lead inbox.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from backend.models import CamelModel, Lead, LeadView


class LeadCreateRequest(CamelModel):
    listing_id: Optional[str] = None
    name: Optional[str] = Field(None, max_length=200)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    message: Optional[str] = Field(None, max_length=5000)


class LeadStatusUpdate(CamelModel):
    # Checked against LeadStatus by LeadService so a bad value is a plain 400
    status: Optional[str] = None


class LeadPublic(CamelModel):
    """What the buyer gets back after submitting a lead."""
    id: str
    listing: str
    name: str
    email: str
    phone: Optional[str] = None
    status: str
    created_at: datetime

    @classmethod
    def from_lead(cls, lead: Lead) -> "LeadPublic":
        return cls(
            id=lead.id,
            listing=lead.listing_id,
            name=lead.name,
            email=lead.email,
            phone=lead.phone,
            status=lead.status,
            created_at=lead.created_at,
        )


class LeadCreateResponse(CamelModel):
    lead: LeadPublic


class LeadResponse(CamelModel):
    lead: Lead


class LeadListResponse(CamelModel):
    results: int
    leads: List[LeadView] = Field(default_factory=list)
