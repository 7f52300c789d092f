"""
backend/test_rbac.py

Pure tests for role whitelists, ownership rule and capability table.

Run:
    pytest backend/test_rbac.py -v
"""

import pytest

from backend.errors import ForbiddenError
from backend.rbac import (
    AGENT_LEADS_ROLES,
    LEAD_UPDATE_ROLES,
    LISTING_WRITE_ROLES,
    Capability,
    capabilities_for,
    ensure_owner_or_admin,
    role_allowed,
)


@pytest.mark.parametrize(
    "role, allowed",
    [("Agent", True), ("Admin", True), ("Buyer", False), ("", False), ("agent", False)],
)
def test_listing_write_whitelist(role, allowed):
    assert role_allowed(role, LISTING_WRITE_ROLES) is allowed


def test_lead_inbox_is_agent_only():
    assert role_allowed("Agent", AGENT_LEADS_ROLES)
    assert not role_allowed("Admin", AGENT_LEADS_ROLES)
    assert role_allowed("Admin", LEAD_UPDATE_ROLES)


def test_owner_passes():
    ensure_owner_or_admin("u1", "Agent", "u1")


def test_admin_passes_for_any_owner():
    ensure_owner_or_admin("admin-1", "Admin", "someone-else")


def test_non_owner_is_forbidden_with_message():
    with pytest.raises(ForbiddenError) as exc:
        ensure_owner_or_admin("u2", "Agent", "u1", "You do not have permission to update this lead.")
    assert exc.value.status_code == 403
    assert exc.value.message == "You do not have permission to update this lead."


def test_empty_user_id_never_matches():
    with pytest.raises(ForbiddenError):
        ensure_owner_or_admin("", "Agent", "")


def test_capability_table():
    buyer = capabilities_for("Buyer")
    assert buyer == {Capability.LISTING_VIEW.value, Capability.LEAD_SUBMIT.value}
    assert Capability.LEAD_LIST_OWN.value in capabilities_for("Agent")
    assert Capability.LEAD_LIST_OWN.value not in capabilities_for("Admin")
    assert Capability.LISTING_MANAGE.value in capabilities_for("Admin")
    assert capabilities_for("Ghost") == set()
