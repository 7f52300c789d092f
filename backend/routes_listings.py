"""
backend/routes_listings.py

Listing endpoints.

Public:
- GET /listings                  search Active listings (filters, sort, paging)
- GET /listings/{listing_id}     Active listing detail, counts a view

Agent/Admin:
- GET    /listings/agent/my-listings
- POST   /listings               JSON or multipart; files under "images"
- PATCH  /listings/{listing_id}  JSON or multipart; optional imagesToDelete
- DELETE /listings/{listing_id}

Upload routes are async so the multipart body can be awaited; service calls
block and run in the threadpool.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, Query, Request, Response, status
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from backend.auth_context import AuthContext, get_services
from backend.dependencies import require_roles
from backend.errors import ValidationError
from backend.listing_query import ListingSearchParams
from backend.listing_service import UploadedImage
from backend.rbac import AGENT_LISTINGS_ROLES, LISTING_WRITE_ROLES
from backend.schemas_listings import (
    ListingCreateRequest,
    ListingListResponse,
    ListingResponse,
    ListingUpdateRequest,
    parse_listing_fields,
)
from backend.services import Services

router = APIRouter(prefix="/listings", tags=["listings"])

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def _parse_external_ids(value: Any) -> List[str]:
    """imagesToDelete may be a list, a JSON-encoded list or a single id."""
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return [str(v) for v in value if v]
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            try:
                decoded = json.loads(text)
            except json.JSONDecodeError:
                raise ValidationError("imagesToDelete must be a list of image ids.")
            if not isinstance(decoded, list):
                raise ValidationError("imagesToDelete must be a list of image ids.")
            return [str(v) for v in decoded if v]
        return [text]
    raise ValidationError("imagesToDelete must be a list of image ids.")


async def _read_listing_payload(request: Request) -> Tuple[Dict[str, Any], List[UploadedImage], List[str]]:
    """
    Split a create/update request into (fields, uploaded images, ids to delete).

    Empty form values are treated as absent.
    """
    content_type = request.headers.get("content-type", "")
    fields: Dict[str, Any] = {}
    files: List[UploadedImage] = []
    images_to_delete: List[str] = []

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                data = await value.read()
                if key == "images" and (value.filename or data):
                    files.append(UploadedImage(
                        filename=value.filename or "image",
                        content_type=value.content_type or "",
                        data=data,
                    ))
                continue
            if key == "imagesToDelete":
                images_to_delete.extend(_parse_external_ids(value))
            elif value != "":
                fields[key] = value
        return fields, files, images_to_delete

    raw = await request.body()
    if not raw:
        return fields, files, images_to_delete
    try:
        body = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError("Request body must be valid JSON.")
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object.")

    images_to_delete = _parse_external_ids(body.pop("imagesToDelete", None))
    return body, files, images_to_delete


# ============================================================================
# Public reads
# ============================================================================

@router.get("", response_model=ListingListResponse)
def search_listings(
    price_min: Optional[float] = Query(None, alias="priceMin"),
    price_max: Optional[float] = Query(None, alias="priceMax"),
    beds: Optional[int] = Query(None),
    baths: Optional[float] = Query(None),
    property_type: Optional[str] = Query(None, alias="propertyType"),
    keyword: Optional[str] = Query(None, max_length=200),
    limit: Optional[int] = Query(None),
    skip: Optional[int] = Query(None),
    sort: Optional[str] = Query(None),
    services: Services = Depends(get_services),
) -> ListingListResponse:
    """
    Search Active listings.

    limit is clamped to [0, 100] (missing or 0 means 10), skip to >= 0; sort accepts
    price, createdAt, viewsCount, bedrooms, bathrooms with optional "-" prefix.
    """
    params = ListingSearchParams(
        price_min=price_min,
        price_max=price_max,
        beds=beds,
        baths=baths,
        property_type=property_type,
        keyword=keyword,
        limit=limit,
        skip=skip,
        sort=sort,
    )
    listings = services.listings.search(params)
    return ListingListResponse(results=len(listings), listings=listings)


@router.get("/agent/my-listings", response_model=ListingListResponse)
def my_listings(
    ctx: AuthContext = Depends(require_roles(*AGENT_LISTINGS_ROLES)),
    services: Services = Depends(get_services),
) -> ListingListResponse:
    """Every listing the caller owns, any status, newest first."""
    listings = services.listings.find_by_agent(ctx.user_id)
    return ListingListResponse(results=len(listings), listings=listings)


@router.get("/{listing_id}", response_model=ListingResponse)
def get_listing(listing_id: str, services: Services = Depends(get_services)) -> ListingResponse:
    """
    Raises:
        NotFoundError(404): Listing missing or not Active
    """
    return ListingResponse(listing=services.listings.get_active(listing_id))


# ============================================================================
# Agent writes
# ============================================================================

@router.post("", response_model=ListingResponse, status_code=status.HTTP_201_CREATED)
async def create_listing(
    request: Request,
    ctx: AuthContext = Depends(require_roles(*LISTING_WRITE_ROLES)),
    services: Services = Depends(get_services),
) -> ListingResponse:
    """
    Create a Draft listing owned by the caller.

    Raises:
        ValidationError(400): Missing/invalid fields or invalid image set
        ForbiddenError(403): Caller is not Agent/Admin
        UpstreamError(502): Image upload failed (nothing is kept)
    """
    raw_fields, files, _ = await _read_listing_payload(request)
    fields = parse_listing_fields(ListingCreateRequest, raw_fields)
    listing = await run_in_threadpool(services.listings.create, ctx.user_id, fields, files)
    return ListingResponse(listing=listing)


@router.patch("/{listing_id}", response_model=ListingResponse)
async def update_listing(
    listing_id: str,
    request: Request,
    ctx: AuthContext = Depends(require_roles(*LISTING_WRITE_ROLES)),
    services: Services = Depends(get_services),
) -> ListingResponse:
    """
    Raises:
        ValidationError(400): Invalid fields or image set
        ForbiddenError(403): Caller is neither owner nor Admin
        NotFoundError(404): No listing with that id
    """
    raw_fields, files, images_to_delete = await _read_listing_payload(request)
    changes = parse_listing_fields(ListingUpdateRequest, raw_fields)
    listing = await run_in_threadpool(
        services.listings.update,
        listing_id,
        ctx.user_id,
        ctx.role,
        changes,
        files,
        images_to_delete,
    )
    return ListingResponse(listing=listing)


@router.delete("/{listing_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_listing(
    listing_id: str,
    ctx: AuthContext = Depends(require_roles(*LISTING_WRITE_ROLES)),
    services: Services = Depends(get_services),
) -> Response:
    services.listings.delete(listing_id, ctx.user_id, ctx.role)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
