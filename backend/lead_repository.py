"""
backend/lead_repository.py

Lead persistence. Leads reference their listing by id only and are never
deleted when the listing is.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Engine

from backend.db import leads, listings, new_id, utcnow
from backend.models import Lead, LeadContact, LeadStatus, LeadView, ListingSummary


def row_to_lead(row: Mapping[str, Any]) -> Lead:
    return Lead(
        id=row["id"],
        listing_id=row["listing_id"],
        name=row["name"],
        email=row["email"],
        phone=row["phone"],
        message=row["message"],
        status=row["status"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def row_to_lead_view(row: Mapping[str, Any]) -> LeadView:
    listing = None
    if row["listing_title"] is not None:
        listing = ListingSummary(id=row["listing_id"], title=row["listing_title"], price=row["listing_price"])
    return LeadView(listing=listing, **row_to_lead(row).model_dump())


class LeadRepository:
    def __init__(self, engine: Engine):
        self.engine = engine

    def create(self, listing_id: str, contact: LeadContact) -> Lead:
        now = utcnow()
        values = {
            "id": new_id(),
            "listing_id": listing_id,
            "name": contact.name,
            "email": contact.email,
            "phone": contact.phone,
            "message": contact.message,
            "status": LeadStatus.new.value,
            "created_at": now,
            "updated_at": now,
        }
        with self.engine.begin() as conn:
            conn.execute(insert(leads).values(**values))
        return row_to_lead(values)

    def get(self, lead_id: str) -> Optional[Lead]:
        with self.engine.connect() as conn:
            row = conn.execute(select(leads).where(leads.c.id == lead_id)).mappings().first()
        return row_to_lead(row) if row else None

    def find_for_listings(self, listing_ids: Sequence[str]) -> List[LeadView]:
        """Leads on any of the given listings, newest first, with listing title/price."""
        if not listing_ids:
            return []
        stmt = (
            select(
                leads,
                listings.c.title.label("listing_title"),
                listings.c.price.label("listing_price"),
            )
            .select_from(leads.outerjoin(listings, listings.c.id == leads.c.listing_id))
            .where(leads.c.listing_id.in_(list(listing_ids)))
            .order_by(leads.c.created_at.desc(), leads.c.id)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [row_to_lead_view(row) for row in rows]

    def update_status(self, lead_id: str, status: str) -> Optional[Lead]:
        with self.engine.begin() as conn:
            conn.execute(
                update(leads)
                .where(leads.c.id == lead_id)
                .values(status=status, updated_at=utcnow())
            )
            row = conn.execute(select(leads).where(leads.c.id == lead_id)).mappings().first()
        return row_to_lead(row) if row else None
