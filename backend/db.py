# backend/db.py
# Storage layer: SQLAlchemy Core tables for users, listings and leads.
# SQLite for local dev/tests, any SQLAlchemy URL (PostgreSQL) in production.

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from urllib.parse import urlparse

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    text,
)
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("role", String(16), nullable=False, default="Buyer"),
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("phone", String(50)),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

listings = Table(
    "listings",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("agent_id", String(32), ForeignKey("users.id"), nullable=False),
    Column("title", String(200), nullable=False),
    Column("description", Text, nullable=False),
    Column("price", Float, nullable=False),
    Column("address", String(200), nullable=False),
    Column("city", String(100), nullable=False),
    Column("state", String(50), nullable=False),
    Column("zip_code", String(20), nullable=False),
    Column("latitude", Float, nullable=False),
    Column("longitude", Float, nullable=False),
    Column("property_type", String(20), nullable=False),
    Column("bedrooms", Integer, nullable=False),
    Column("bathrooms", Float, nullable=False),
    Column("sq_ft", Integer, nullable=False),
    Column("year_built", Integer, nullable=False),
    Column("status", String(16), nullable=False, default="Draft"),
    # Ordered list of {url, external_id, alt_text, order_index}
    Column("images", JSON, nullable=False, default=list),
    Column("is_featured", Boolean, nullable=False, default=False),
    Column("views_count", Integer, nullable=False, default=0),
    Column("leads_count", Integer, nullable=False, default=0),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Index("idx_listings_status_created", "status", "created_at"),
    Index("idx_listings_agent_id", "agent_id"),
)

# listing_id is a lookup reference only: leads outlive their listing
leads = Table(
    "leads",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("listing_id", String(32), nullable=False),
    Column("name", String(200), nullable=False),
    Column("email", String(255), nullable=False),
    Column("phone", String(50)),
    Column("message", Text, nullable=False),
    Column("status", String(16), nullable=False, default="New"),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Index("idx_leads_listing_id", "listing_id"),
)


def new_id() -> str:
    """Opaque document id."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_db_engine(database_url: str) -> Engine:
    """Create the SQLAlchemy engine for the configured URL."""
    parsed = urlparse(database_url)
    if not parsed.scheme:
        raise ValueError(f"Invalid DATABASE_URL: {database_url[:20]}...")

    if parsed.scheme.startswith("sqlite"):
        # Handlers run in FastAPI's threadpool
        engine = create_engine(database_url, connect_args={"check_same_thread": False, "timeout": 15})
        logger.info("[DB] Using SQLite (%s)", parsed.path or "memory")
        return engine

    engine = create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,  # Verify connections before use
    )
    logger.info("[DB] Using %s (%s)", parsed.scheme, parsed.hostname)
    return engine


def init_db(engine: Engine) -> None:
    """Create tables and indexes if missing (idempotent)."""
    metadata.create_all(engine)
    logger.info("[DB] Ensured tables: %s", ", ".join(sorted(metadata.tables)))


def check_database_connection(engine: Engine) -> bool:
    """Return True if the database answers a trivial query."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error("[DB] Connection check failed: %s", e)
        return False
