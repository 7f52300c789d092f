# frontend/config.py
# Settings for the listings frontend, read once from the environment at import

import os
from typing import Literal
from urllib.parse import urlparse

Env = Literal["local", "staging", "production"]

_KNOWN_ENVS = ("local", "staging", "production")
LOCAL_BACKEND_URL = "http://127.0.0.1:8000"


def _detect_env() -> Env:
    """Unknown or missing ENV values are treated as production."""
    raw = os.environ.get("ENV", "").strip().lower()
    return raw if raw in _KNOWN_ENVS else "production"  # type: ignore[return-value]


ENV: Env = _detect_env()
IS_DEV = ENV == "local"

PAGE_SIZE = int(os.environ.get("PAGE_SIZE", "10"))
PROPERTY_TYPES = ["House", "Condo", "Townhouse", "Land", "Apartment"]
LISTING_STATUSES = ["Draft", "Active", "Pending", "Sold"]
LEAD_STATUSES = ["New", "Contacted", "Converted", "Closed"]
SORT_OPTIONS = {
    "Newest": "-createdAt",
    "Oldest": "createdAt",
    "Price: low to high": "price",
    "Price: high to low": "-price",
    "Most viewed": "-viewsCount",
    "Bedrooms": "-bedrooms",
}


def validate_api_url(url: str, env: str) -> None:
    """
    Reject backend URLs that are unusable or unsafe for the given environment.

    Outside local development the backend must be reached over HTTPS on a
    real host name.

    Raises:
        ValueError: describing the offending URL
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ValueError(f"BACKEND_URL is not a valid http(s) URL: {url!r}")
    if env == "local":
        return
    if parsed.scheme != "https":
        raise ValueError(f"BACKEND_URL must use HTTPS in {env}. Got: {url}")
    if parsed.hostname in ("localhost", "127.0.0.1", "0.0.0.0"):
        raise ValueError(f"BACKEND_URL cannot point at this machine in {env}. Got: {url}")


def get_api_base_url() -> str:
    """
    BACKEND_URL wins when set; local development falls back to the
    uvicorn default address.

    Raises:
        RuntimeError: staging/production without BACKEND_URL
        ValueError: BACKEND_URL rejected by validate_api_url
    """
    configured = os.environ.get("BACKEND_URL", "").strip().rstrip("/")
    if configured:
        validate_api_url(configured, ENV)
        return configured
    if IS_DEV:
        return LOCAL_BACKEND_URL
    raise RuntimeError(f"BACKEND_URL must be set when ENV={ENV}.")
