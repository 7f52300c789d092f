"""
frontend/api_client.py
Centralized API client for all backend requests.

This module ensures:
1. Protected calls attach the Authorization header when authenticated
2. Consistent handling of 401 (session expired) and 403 (not allowed)
3. Backend error envelopes ({"status": "fail", "detail": ...}) become user-facing text
4. Page code never builds URLs or calls requests directly
"""

from typing import Any, Dict, List, Literal, Optional, Sequence, Tuple

import requests
import streamlit as st

from frontend.auth import clear_auth, get_auth_header
from frontend.config import IS_DEV, PAGE_SIZE, get_api_base_url

__all__ = [
    "api_request",
    "error_message",
    "build_search_params",
    "search_listings",
    "get_listing",
    "submit_lead",
    "login",
    "signup",
    "my_listings",
    "create_listing",
    "update_listing",
    "delete_listing",
    "my_leads",
    "update_lead_status",
]

PUBLIC_PATHS = ("/auth/login", "/auth/signup", "/leads")

# (filename, bytes, content type) as collected from st.file_uploader
ImageUpload = Tuple[str, bytes, str]


def is_public_endpoint(method: str, path: str) -> bool:
    """Public endpoints never carry a token. GET /listings[/{id}] is public too."""
    if method == "POST" and path in PUBLIC_PATHS:
        return True
    return method == "GET" and path.startswith("/listings") and not path.startswith("/listings/agent")


def error_message(resp: Optional[requests.Response], default: str = "Request failed.") -> str:
    """Extract the backend's error detail without ever raising."""
    if resp is None:
        return default
    try:
        body = resp.json()
    except ValueError:
        return default
    if isinstance(body, dict) and isinstance(body.get("detail"), str):
        return body["detail"]
    return default


def api_request(
    method: Literal["GET", "POST", "PATCH", "DELETE"],
    path: str,
    json: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, Any]] = None,
    data: Optional[Any] = None,
    files: Optional[List[Tuple[str, ImageUpload]]] = None,
    timeout: int = 30,
) -> Optional[requests.Response]:
    """
    Make an API request with automatic auth header attachment and error handling.

    This is the ONLY function that should make backend API calls.

    Security:
    - Never logs or prints tokens/auth headers
    - Uses configured base URL with environment validation

    Returns:
        Response object (any status) or None on connection/config error;
        never raises, user-facing messages are shown via st.error
    """
    try:
        base_url = get_api_base_url()
    except (RuntimeError, ValueError) as e:
        st.error(f"Configuration error: {e}")
        return None

    headers = {"Accept": "application/json"}
    if not is_public_endpoint(method, path):
        headers.update(get_auth_header())

    try:
        resp = requests.request(
            method,
            f"{base_url}{path}",
            headers=headers,
            json=json,
            params=params,
            data=data,
            files=files,
            timeout=timeout,
        )
    except requests.exceptions.Timeout:
        if IS_DEV:
            print(f"[API] Timeout on {method} {path}")
        st.error(f"Request timed out after {timeout}s. Please try again.")
        return None
    except requests.exceptions.RequestException as e:
        if IS_DEV:
            print(f"[API] {type(e).__name__} on {method} {path}")
        st.error(f"Cannot connect to backend at {base_url}. Please check your connection.")
        return None

    if resp.status_code == 401 and "Authorization" in headers:
        st.warning("Your session has expired. Please log in again.")
        clear_auth()
        st.session_state["nav_page"] = "Login"
    elif resp.status_code == 403:
        st.error("You don't have permission to perform this action.")

    return resp


# ============================================================================
# Listings
# ============================================================================

def build_search_params(
    keyword: str = "",
    price_min: Optional[float] = None,
    price_max: Optional[float] = None,
    beds: Optional[int] = None,
    baths: Optional[float] = None,
    property_type: Optional[str] = None,
    sort: Optional[str] = None,
    page: int = 0,
    page_size: int = PAGE_SIZE,
) -> Dict[str, Any]:
    """Query params for GET /listings; empty filters are left out."""
    params: Dict[str, Any] = {"limit": page_size, "skip": max(page, 0) * page_size}
    if keyword and keyword.strip():
        params["keyword"] = keyword.strip()
    if price_min:
        params["priceMin"] = price_min
    if price_max:
        params["priceMax"] = price_max
    if beds:
        params["beds"] = beds
    if baths:
        params["baths"] = baths
    if property_type and property_type != "Any":
        params["propertyType"] = property_type
    if sort:
        params["sort"] = sort
    return params


def _json_or(resp: Optional[requests.Response], key: str, default: Any) -> Any:
    if resp is None or resp.status_code >= 400:
        return default
    return resp.json().get(key, default)


def search_listings(params: Dict[str, Any]) -> List[Dict[str, Any]]:
    return _json_or(api_request("GET", "/listings", params=params), "listings", [])


def get_listing(listing_id: str) -> Optional[Dict[str, Any]]:
    return _json_or(api_request("GET", f"/listings/{listing_id}"), "listing", None)


def my_listings() -> List[Dict[str, Any]]:
    return _json_or(api_request("GET", "/listings/agent/my-listings"), "listings", [])


def _image_files(images: Sequence[ImageUpload]) -> List[Tuple[str, ImageUpload]]:
    return [("images", image) for image in images]


def create_listing(fields: Dict[str, Any], images: Sequence[ImageUpload] = ()) -> Optional[requests.Response]:
    return api_request("POST", "/listings", data=fields, files=_image_files(images) or None, timeout=120)


def update_listing(
    listing_id: str,
    fields: Dict[str, Any],
    images: Sequence[ImageUpload] = (),
    images_to_delete: Sequence[str] = (),
) -> Optional[requests.Response]:
    """JSON when no files are attached, multipart otherwise."""
    if not images:
        body = dict(fields)
        if images_to_delete:
            body["imagesToDelete"] = list(images_to_delete)
        return api_request("PATCH", f"/listings/{listing_id}", json=body)

    form: List[Tuple[str, Any]] = list(fields.items())
    form.extend(("imagesToDelete", external_id) for external_id in images_to_delete)
    return api_request("PATCH", f"/listings/{listing_id}", data=form, files=_image_files(images), timeout=120)


def delete_listing(listing_id: str) -> bool:
    resp = api_request("DELETE", f"/listings/{listing_id}")
    return resp is not None and resp.status_code == 204


# ============================================================================
# Auth + leads
# ============================================================================

def login(email: str, password: str) -> Optional[requests.Response]:
    return api_request("POST", "/auth/login", json={"email": email, "password": password})


def signup(payload: Dict[str, Any]) -> Optional[requests.Response]:
    return api_request("POST", "/auth/signup", json=payload)


def submit_lead(listing_id: str, name: str, email: str, message: str, phone: str = "") -> Optional[requests.Response]:
    payload = {"listingId": listing_id, "name": name, "email": email, "message": message}
    if phone:
        payload["phone"] = phone
    return api_request("POST", "/leads", json=payload)


def my_leads() -> List[Dict[str, Any]]:
    return _json_or(api_request("GET", "/leads/mylistings"), "leads", [])


def update_lead_status(lead_id: str, status: str) -> Optional[requests.Response]:
    return api_request("PATCH", f"/leads/{lead_id}", json={"status": status})
