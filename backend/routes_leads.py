"""
backend/routes_leads.py

Lead endpoints.

- POST  /leads            public lead capture against an Active listing
- GET   /leads/mylistings Agent only; leads across the caller's listings
- PATCH /leads/{lead_id}  Agent/Admin; owner of the lead's listing or Admin
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from backend.auth_context import AuthContext, get_services
from backend.dependencies import require_roles
from backend.rbac import AGENT_LEADS_ROLES, LEAD_UPDATE_ROLES
from backend.schemas_leads import (
    LeadCreateRequest,
    LeadCreateResponse,
    LeadListResponse,
    LeadPublic,
    LeadResponse,
    LeadStatusUpdate,
)
from backend.services import Services

router = APIRouter(prefix="/leads", tags=["leads"])


@router.post("", response_model=LeadCreateResponse, status_code=status.HTTP_201_CREATED)
def create_lead(body: LeadCreateRequest, services: Services = Depends(get_services)) -> LeadCreateResponse:
    """
    Capture a buyer inquiry and email the listing's agent.

    The response does not depend on whether the email went out.

    Raises:
        ValidationError(400): listingId, name, email or message missing
        NotFoundError(404): Listing missing or not Active
    """
    created = services.leads.create_lead(
        listing_id=body.listing_id,
        name=body.name,
        email=body.email,
        message=body.message,
        phone=body.phone,
    )
    return LeadCreateResponse(lead=LeadPublic.from_lead(created.lead))


@router.get("/mylistings", response_model=LeadListResponse)
def my_leads(
    ctx: AuthContext = Depends(require_roles(*AGENT_LEADS_ROLES)),
    services: Services = Depends(get_services),
) -> LeadListResponse:
    leads = services.leads.find_for_agent(ctx.user_id)
    return LeadListResponse(results=len(leads), leads=leads)


@router.patch("/{lead_id}", response_model=LeadResponse)
def update_lead_status(
    lead_id: str,
    body: LeadStatusUpdate,
    ctx: AuthContext = Depends(require_roles(*LEAD_UPDATE_ROLES)),
    services: Services = Depends(get_services),
) -> LeadResponse:
    """
    Raises:
        ValidationError(400): Unknown status
        NotFoundError(404): Lead or its listing missing
        ForbiddenError(403): Caller does not own the listing and is not Admin
    """
    lead = services.leads.update_status(lead_id, body.status, ctx.user_id, ctx.role)
    return LeadResponse(lead=lead)
