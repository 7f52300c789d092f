"""
backend/rbac.py

Role-Based Access Control for listings and leads.

Two rules decide every protected operation:
1. Role gate - the caller's role must be in the operation's whitelist
2. Ownership - mutations on a listing (or a lead of that listing) require the
   caller to be the listing's agent, unless the caller is an Admin

Pure Python logic - no FastAPI imports, no database access.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Iterable, Set

from backend.errors import ForbiddenError
from backend.models import UserRole


class Capability(str, Enum):
    """Operations a role may perform."""

    LISTING_VIEW = "listing:view"
    LISTING_CREATE = "listing:create"
    LISTING_MANAGE = "listing:manage"
    LISTING_LIST_OWN = "listing:list_own"
    LEAD_SUBMIT = "lead:submit"
    LEAD_LIST_OWN = "lead:list_own"
    LEAD_UPDATE = "lead:update"


# ============================================================================
# Role whitelists per operation
# ============================================================================

LISTING_WRITE_ROLES: FrozenSet[str] = frozenset({UserRole.agent.value, UserRole.admin.value})
AGENT_LISTINGS_ROLES: FrozenSet[str] = frozenset({UserRole.agent.value, UserRole.admin.value})
LEAD_UPDATE_ROLES: FrozenSet[str] = frozenset({UserRole.agent.value, UserRole.admin.value})
AGENT_LEADS_ROLES: FrozenSet[str] = frozenset({UserRole.agent.value})


ROLE_CAPABILITIES: Dict[str, Set[str]] = {
    "Buyer": {
        Capability.LISTING_VIEW,
        Capability.LEAD_SUBMIT,
    },
    "Agent": {
        Capability.LISTING_VIEW,
        Capability.LEAD_SUBMIT,
        Capability.LISTING_CREATE,
        Capability.LISTING_MANAGE,
        Capability.LISTING_LIST_OWN,
        Capability.LEAD_LIST_OWN,
        Capability.LEAD_UPDATE,
    },
    "Admin": {
        # Admin manages any listing/lead but has no "own leads" inbox
        Capability.LISTING_VIEW,
        Capability.LEAD_SUBMIT,
        Capability.LISTING_CREATE,
        Capability.LISTING_MANAGE,
        Capability.LISTING_LIST_OWN,
        Capability.LEAD_UPDATE,
    },
}


def capabilities_for(role: str) -> Set[str]:
    """Capabilities for a role; empty set for unknown roles."""
    return {cap.value for cap in ROLE_CAPABILITIES.get(role, set())}


def role_allowed(role: str, allowed_roles: Iterable[str]) -> bool:
    return bool(role) and role in set(allowed_roles)


def is_admin(role: str) -> bool:
    return role == UserRole.admin.value


def ensure_owner_or_admin(user_id: str, role: str, owner_id: str, message: str = "You do not have permission to modify this listing.") -> None:
    """
    Raises:
        ForbiddenError: Caller neither owns the resource nor is an Admin
    """
    if is_admin(role):
        return
    if user_id and user_id == owner_id:
        return
    raise ForbiddenError(message)
