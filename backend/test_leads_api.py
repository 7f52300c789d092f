"""
backend/test_leads_api.py

Lead capture, agent inbox and lead status updates.

Run:
    pytest backend/test_leads_api.py -v
"""

import pytest
from sqlalchemy import delete, func, select

from backend.db import leads, users
from conftest import make_listing

CONTACT = {
    "name": "Bob Buyer",
    "email": "bob@example.com",
    "phone": "555-0199",
    "message": "Is the garden south facing?",
}


def lead_count(services) -> int:
    with services.engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(leads)).scalar_one()


# ---------------------------------------------------------
# Capture
# ---------------------------------------------------------
def test_lead_on_active_listing_notifies_agent(client, services, agent, notifier):
    listing = make_listing(services, agent["user"].id, title="Lake House")

    res = client.post("/leads", json=dict(CONTACT, listingId=listing.id))

    assert res.status_code == 201
    lead = res.json()["lead"]
    assert lead["listing"] == listing.id
    assert lead["status"] == "New"
    assert lead["name"] == "Bob Buyer"
    assert "createdAt" in lead

    assert len(notifier.sent) == 1
    sent = notifier.sent[0]
    assert sent["to"] == agent["user"].email
    assert sent["title"] == "Lake House"
    assert sent["lead"].message == CONTACT["message"]

    assert services.listings.listings.get(listing.id).leads_count == 1


@pytest.mark.parametrize("status", ["Draft", "Pending", "Sold"])
def test_lead_on_non_active_listing_is_404(client, services, agent, notifier, status):
    listing = make_listing(services, agent["user"].id, status=status)

    res = client.post("/leads", json=dict(CONTACT, listingId=listing.id))

    assert res.status_code == 404
    assert lead_count(services) == 0
    assert notifier.sent == []


def test_lead_on_unknown_listing_is_404(client, services):
    res = client.post("/leads", json=dict(CONTACT, listingId="missing"))
    assert res.status_code == 404
    assert lead_count(services) == 0


@pytest.mark.parametrize("missing", ["listingId", "name", "email", "message"])
def test_lead_requires_fields(client, services, agent, missing):
    listing = make_listing(services, agent["user"].id)
    payload = dict(CONTACT, listingId=listing.id)
    payload.pop(missing)

    res = client.post("/leads", json=payload)
    assert res.status_code == 400
    assert lead_count(services) == 0


def test_notification_failure_does_not_fail_lead(client, services, agent, notifier):
    listing = make_listing(services, agent["user"].id)
    notifier.fail = True

    res = client.post("/leads", json=dict(CONTACT, listingId=listing.id))

    assert res.status_code == 201
    assert lead_count(services) == 1


def test_unexpected_notifier_error_does_not_fail_lead(client, services, agent, notifier):
    listing = make_listing(services, agent["user"].id)
    notifier.fail = True
    notifier.error = KeyError("template")

    res = client.post("/leads", json=dict(CONTACT, listingId=listing.id))

    assert res.status_code == 201
    assert lead_count(services) == 1
    assert services.listings.listings.get(listing.id).leads_count == 1


def test_service_reports_notification_outcome(services, agent, notifier):
    listing = make_listing(services, agent["user"].id)

    ok = services.leads.create_lead(listing.id, "Ann", "ann@example.com", "Hello")
    notifier.fail = True
    failed = services.leads.create_lead(listing.id, "Ann", "ann@example.com", "Hello again")

    assert ok.notified is True
    assert failed.notified is False
    assert failed.lead.status == "New"


def test_lead_without_resolvable_agent_is_500(client, services, agent):
    listing = make_listing(services, agent["user"].id)
    with services.engine.begin() as conn:
        conn.execute(delete(users).where(users.c.id == agent["user"].id))

    res = client.post("/leads", json=dict(CONTACT, listingId=listing.id))

    assert res.status_code == 500
    assert res.json()["status"] == "error"
    assert lead_count(services) == 0


# ---------------------------------------------------------
# Agent inbox
# ---------------------------------------------------------
def test_agent_sees_leads_for_own_listings_only(client, services, agent, other_agent):
    mine = make_listing(services, agent["user"].id, title="Mine", price=123000)
    theirs = make_listing(services, other_agent["user"].id, title="Theirs")

    services.leads.create_lead(mine.id, "First", "first@example.com", "one")
    services.leads.create_lead(theirs.id, "Other", "other@example.com", "two")
    services.leads.create_lead(mine.id, "Second", "second@example.com", "three")

    res = client.get("/leads/mylistings", headers=agent["headers"])
    assert res.status_code == 200
    body = res.json()
    assert body["results"] == 2
    assert [l["name"] for l in body["leads"]] == ["Second", "First"]
    assert body["leads"][0]["listing"] == {"id": mine.id, "title": "Mine", "price": 123000}


def test_agent_with_no_listings_gets_empty_inbox(client, agent):
    res = client.get("/leads/mylistings", headers=agent["headers"])
    assert res.status_code == 200
    assert res.json() == {"results": 0, "leads": []}


@pytest.mark.parametrize("role_fixture", ["buyer", "admin"])
def test_inbox_is_agent_only(client, request, role_fixture):
    caller = request.getfixturevalue(role_fixture)
    assert client.get("/leads/mylistings", headers=caller["headers"]).status_code == 403


# ---------------------------------------------------------
# Status updates
# ---------------------------------------------------------
@pytest.fixture
def captured_lead(services, agent):
    listing = make_listing(services, agent["user"].id)
    return services.leads.create_lead(listing.id, "Bob", "bob@example.com", "Hi").lead


def test_owner_updates_lead_status(client, services, agent, captured_lead):
    res = client.patch(f"/leads/{captured_lead.id}", json={"status": "Contacted"}, headers=agent["headers"])
    assert res.status_code == 200
    assert res.json()["lead"]["status"] == "Contacted"
    assert services.leads.leads.get(captured_lead.id).status == "Contacted"


def test_bogus_status_is_rejected_and_unchanged(client, services, agent, captured_lead):
    res = client.patch(f"/leads/{captured_lead.id}", json={"status": "Bogus"}, headers=agent["headers"])
    assert res.status_code == 400
    assert services.leads.leads.get(captured_lead.id).status == "New"


def test_status_is_validated_before_existence(client, agent):
    res = client.patch("/leads/missing", json={"status": "Bogus"}, headers=agent["headers"])
    assert res.status_code == 400


def test_unknown_lead_is_404(client, agent):
    res = client.patch("/leads/missing", json={"status": "Closed"}, headers=agent["headers"])
    assert res.status_code == 404


def test_non_owner_agent_is_403_admin_succeeds(client, services, other_agent, admin, captured_lead):
    denied = client.patch(f"/leads/{captured_lead.id}", json={"status": "Closed"}, headers=other_agent["headers"])
    assert denied.status_code == 403
    assert services.leads.leads.get(captured_lead.id).status == "New"

    allowed = client.patch(f"/leads/{captured_lead.id}", json={"status": "Converted"}, headers=admin["headers"])
    assert allowed.status_code == 200
    assert allowed.json()["lead"]["status"] == "Converted"


def test_buyer_cannot_update_lead(client, buyer, captured_lead):
    res = client.patch(f"/leads/{captured_lead.id}", json={"status": "Closed"}, headers=buyer["headers"])
    assert res.status_code == 403


def test_lead_of_deleted_listing_is_404(client, services, agent, captured_lead):
    services.listings.delete(captured_lead.listing_id, agent["user"].id, "Agent")

    res = client.patch(f"/leads/{captured_lead.id}", json={"status": "Closed"}, headers=agent["headers"])
    assert res.status_code == 404
    assert res.json()["detail"] == "Associated listing not found."
    # Leads outlive their listing
    assert services.leads.leads.get(captured_lead.id) is not None
