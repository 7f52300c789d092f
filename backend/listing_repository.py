"""
backend/listing_repository.py

Listing persistence and read paths.

Read paths that return listings to clients join the owning agent
(first/last name, email, phone) and return ListingView objects.
Counters are updated with single-statement increments so concurrent
requests never lose updates.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import and_, delete, insert, or_, select, update
from sqlalchemy.engine import Engine

from backend.db import listings, new_id, users, utcnow
from backend.listing_query import ListingQuery
from backend.models import AgentSummary, Listing, ListingImage, ListingStatus, ListingView

# Columns a partial update may touch (agent, counters and images are managed elsewhere)
UPDATABLE_COLUMNS = frozenset({
    "title",
    "description",
    "price",
    "address",
    "city",
    "state",
    "zip_code",
    "latitude",
    "longitude",
    "property_type",
    "bedrooms",
    "bathrooms",
    "sq_ft",
    "year_built",
    "status",
    "is_featured",
})

_OPERATORS = {
    "eq": lambda col, value: col == value,
    "gte": lambda col, value: col >= value,
    "lte": lambda col, value: col <= value,
}


def images_to_storage(images: List[ListingImage]) -> List[Dict[str, Any]]:
    return [
        {
            "url": image.url,
            "external_id": image.external_id,
            "alt_text": image.alt_text,
            "order_index": image.order_index,
        }
        for image in images
    ]


def _row_to_listing_fields(row: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "agent_id": row["agent_id"],
        "title": row["title"],
        "description": row["description"],
        "price": row["price"],
        "address": row["address"],
        "city": row["city"],
        "state": row["state"],
        "zip_code": row["zip_code"],
        "latitude": row["latitude"],
        "longitude": row["longitude"],
        "property_type": row["property_type"],
        "bedrooms": row["bedrooms"],
        "bathrooms": row["bathrooms"],
        "sq_ft": row["sq_ft"],
        "year_built": row["year_built"],
        "status": row["status"],
        "images": [ListingImage(**image) for image in (row["images"] or [])],
        "is_featured": row["is_featured"],
        "views_count": row["views_count"],
        "leads_count": row["leads_count"],
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }


def row_to_listing(row: Mapping[str, Any]) -> Listing:
    return Listing(**_row_to_listing_fields(row))


def row_to_listing_view(row: Mapping[str, Any]) -> ListingView:
    agent = None
    if row["agent_first_name"] is not None:
        agent = AgentSummary(
            id=row["agent_id"],
            first_name=row["agent_first_name"],
            last_name=row["agent_last_name"],
            email=row["agent_email"],
            phone=row["agent_phone"],
        )
    return ListingView(agent=agent, **_row_to_listing_fields(row))


def _select_listing_view():
    """SELECT listings.* plus the owning agent's public contact fields."""
    return select(
        listings,
        users.c.first_name.label("agent_first_name"),
        users.c.last_name.label("agent_last_name"),
        users.c.email.label("agent_email"),
        users.c.phone.label("agent_phone"),
    ).select_from(listings.outerjoin(users, users.c.id == listings.c.agent_id))


class ListingRepository:
    def __init__(self, engine: Engine):
        self.engine = engine

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def search(self, query: ListingQuery) -> List[ListingView]:
        """Execute a public search built by listing_query.build_search_query()."""
        stmt = _select_listing_view()

        clauses = [_OPERATORS[cond.op](listings.c[cond.column], cond.value) for cond in query.conditions]
        if query.keyword:
            clauses.append(or_(*[
                listings.c[column].icontains(query.keyword, autoescape=True)
                for column in query.keyword_columns
            ]))
        if clauses:
            stmt = stmt.where(and_(*clauses))

        sort_column = listings.c[query.sort_column]
        stmt = stmt.order_by(sort_column.desc() if query.sort_descending else sort_column.asc(), listings.c.id)
        stmt = stmt.limit(query.limit).offset(query.skip)

        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [row_to_listing_view(row) for row in rows]

    def find_by_agent(self, agent_id: str) -> List[ListingView]:
        """Every listing the agent owns, any status, newest first."""
        stmt = (
            _select_listing_view()
            .where(listings.c.agent_id == agent_id)
            .order_by(listings.c.created_at.desc(), listings.c.id)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [row_to_listing_view(row) for row in rows]

    def find_active_and_count_view(self, listing_id: str) -> Optional[ListingView]:
        """
        Fetch an Active listing and increment its view counter.

        The increment is a single UPDATE (views_count = views_count + 1) and the
        row is read back inside the same transaction, so the returned document
        reflects this request's increment.

        Returns:
            ListingView after the increment, or None if no Active listing matches
        """
        with self.engine.begin() as conn:
            result = conn.execute(
                update(listings)
                .where(listings.c.id == listing_id, listings.c.status == ListingStatus.active.value)
                .values(views_count=listings.c.views_count + 1)
            )
            if result.rowcount == 0:
                return None
            row = conn.execute(
                _select_listing_view().where(listings.c.id == listing_id)
            ).mappings().first()
        return row_to_listing_view(row) if row else None

    def get(self, listing_id: str) -> Optional[Listing]:
        """Fetch any listing regardless of status (owner/admin paths)."""
        with self.engine.connect() as conn:
            row = conn.execute(select(listings).where(listings.c.id == listing_id)).mappings().first()
        return row_to_listing(row) if row else None

    def get_view(self, listing_id: str) -> Optional[ListingView]:
        with self.engine.connect() as conn:
            row = conn.execute(
                _select_listing_view().where(listings.c.id == listing_id)
            ).mappings().first()
        return row_to_listing_view(row) if row else None

    def ids_for_agent(self, agent_id: str) -> List[str]:
        with self.engine.connect() as conn:
            rows = conn.execute(select(listings.c.id).where(listings.c.agent_id == agent_id)).all()
        return [row[0] for row in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def create(self, agent_id: str, fields: Dict[str, Any], created_at: Optional[datetime] = None) -> Listing:
        """
        Insert a listing owned by agent_id.

        Status, images and counters in fields are ignored: new listings always
        start as Draft with no images.
        """
        now = created_at or utcnow()
        values = {key: value for key, value in fields.items() if key in UPDATABLE_COLUMNS}
        values.update(
            id=new_id(),
            agent_id=agent_id,
            status=ListingStatus.draft.value,
            images=[],
            views_count=0,
            leads_count=0,
            created_at=now,
            updated_at=now,
        )
        values.setdefault("is_featured", False)
        with self.engine.begin() as conn:
            conn.execute(insert(listings).values(**values))
            row = conn.execute(select(listings).where(listings.c.id == values["id"])).mappings().first()
        return row_to_listing(row)

    def set_images(self, listing_id: str, images: List[ListingImage]) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                update(listings)
                .where(listings.c.id == listing_id)
                .values(images=images_to_storage(images), updated_at=utcnow())
            )

    def update(self, listing_id: str, changes: Dict[str, Any], images: Optional[List[ListingImage]] = None) -> Optional[ListingView]:
        """Apply a partial update; unknown keys are dropped."""
        values = {key: value for key, value in changes.items() if key in UPDATABLE_COLUMNS}
        if images is not None:
            values["images"] = images_to_storage(images)
        values["updated_at"] = utcnow()

        with self.engine.begin() as conn:
            conn.execute(update(listings).where(listings.c.id == listing_id).values(**values))
            row = conn.execute(
                _select_listing_view().where(listings.c.id == listing_id)
            ).mappings().first()
        return row_to_listing_view(row) if row else None

    def delete(self, listing_id: str) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(delete(listings).where(listings.c.id == listing_id))
        return result.rowcount > 0

    def increment_leads(self, listing_id: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                update(listings)
                .where(listings.c.id == listing_id)
                .values(leads_count=listings.c.leads_count + 1)
            )

    def activate_drafts(self) -> int:
        """Flip every Draft listing to Active. Returns the number changed."""
        with self.engine.begin() as conn:
            result = conn.execute(
                update(listings)
                .where(listings.c.status == ListingStatus.draft.value)
                .values(status=ListingStatus.active.value, updated_at=utcnow())
            )
        return result.rowcount
