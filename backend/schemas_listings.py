"""
backend/schemas_listings.py

Pydantic schemas for listing endpoints.

Create/update bodies arrive either as JSON or as multipart form fields
(strings), so parse_listing_fields() validates a plain dict and reports
failures as a 400 naming the offending fields, never their values.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Type

from pydantic import ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from backend.errors import ValidationError
from backend.models import CamelModel, ListingStatus, ListingView, PropertyType


class ListingCreateRequest(CamelModel):
    """
    Fields an agent supplies for a new listing.

    Status, images, agent and counters are not accepted: new listings are
    always Draft, owned by the caller, with images taken from the upload.
    """
    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    address: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=50)
    zip_code: str = Field(..., min_length=1, max_length=20)
    latitude: float
    longitude: float
    property_type: PropertyType
    bedrooms: int = Field(..., ge=0)
    bathrooms: float = Field(..., ge=0)
    sq_ft: int = Field(..., ge=0)
    year_built: int
    is_featured: bool = False

    @field_validator("title", "description", "address", "city", "state", "zip_code", mode="before")
    @classmethod
    def trim_text(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class ListingUpdateRequest(CamelModel):
    """Partial update; only fields present in the request are applied."""
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    address: Optional[str] = Field(None, min_length=1, max_length=200)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    state: Optional[str] = Field(None, min_length=1, max_length=50)
    zip_code: Optional[str] = Field(None, min_length=1, max_length=20)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    property_type: Optional[PropertyType] = None
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[float] = Field(None, ge=0)
    sq_ft: Optional[int] = Field(None, ge=0)
    year_built: Optional[int] = None
    status: Optional[ListingStatus] = None
    is_featured: Optional[bool] = None


class ListingResponse(CamelModel):
    listing: ListingView


class ListingListResponse(CamelModel):
    results: int
    listings: List[ListingView] = Field(default_factory=list)


def parse_listing_fields(model: Type[CamelModel], data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate raw request fields against model.

    Returns:
        Snake_case dict of the fields that were supplied

    Raises:
        ValidationError: Missing or invalid fields (names only in the message)
    """
    try:
        parsed = model.model_validate(data)
    except PydanticValidationError as e:
        names = sorted({".".join(str(part) for part in err["loc"]) for err in e.errors()})
        raise ValidationError(f"Missing or invalid fields: {', '.join(names)}.") from e
    return parsed.model_dump(exclude_unset=True, exclude_none=True)
