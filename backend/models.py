from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# Enums
class UserRole(str, Enum):
    buyer = "Buyer"
    agent = "Agent"
    admin = "Admin"


class ListingStatus(str, Enum):
    draft = "Draft"
    active = "Active"
    pending = "Pending"
    sold = "Sold"


class PropertyType(str, Enum):
    house = "House"
    condo = "Condo"
    townhouse = "Townhouse"
    land = "Land"
    apartment = "Apartment"


class LeadStatus(str, Enum):
    new = "New"
    contacted = "Contacted"
    converted = "Converted"
    closed = "Closed"


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)


# Models
class User(CamelModel):
    id: str
    email: str
    role: UserRole = UserRole.buyer
    first_name: str
    last_name: str
    phone: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    password_hash: Optional[str] = Field(default=None, exclude=True, repr=False)


class AgentSummary(CamelModel):
    id: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None


class ListingImage(CamelModel):
    url: str
    external_id: str
    alt_text: Optional[str] = None
    order_index: int = 0


class Listing(CamelModel):
    id: str
    agent_id: str
    title: str
    description: str
    price: float
    address: str
    city: str
    state: str
    zip_code: str
    latitude: float
    longitude: float
    property_type: PropertyType
    bedrooms: int
    bathrooms: float
    sq_ft: int
    year_built: int
    status: ListingStatus = ListingStatus.draft
    images: List[ListingImage] = Field(default_factory=list)
    is_featured: bool = False
    views_count: int = 0
    leads_count: int = 0
    created_at: datetime
    updated_at: datetime


class ListingView(Listing):
    """Listing as returned by read paths, with the owning agent expanded."""
    agent: Optional[AgentSummary] = None


class ListingSummary(CamelModel):
    id: str
    title: str
    price: float


class Lead(CamelModel):
    id: str
    listing_id: str
    name: str
    email: str
    phone: Optional[str] = None
    message: str
    status: LeadStatus = LeadStatus.new
    created_at: datetime
    updated_at: datetime


class LeadView(Lead):
    """Lead with its listing's title/price expanded."""
    listing: Optional[ListingSummary] = None


class LeadContact(BaseModel):
    """Buyer contact details forwarded to the agent."""
    name: str
    email: str
    phone: Optional[str] = None
    message: str
