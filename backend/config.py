# backend/config.py
# Environment-aware configuration for the listings backend

from __future__ import annotations

import logging
import os
import re
import sys
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Literal, Mapping, Optional, Tuple

from backend.errors import ConfigError

logger = logging.getLogger(__name__)

# Local frontend origins (Streamlit default + Vite dev server)
DEFAULT_CORS_ORIGINS = (
    "http://localhost:8501",
    "http://127.0.0.1:8501",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
)

DEFAULT_DATABASE_URL = "sqlite:///realestate.db"
DEFAULT_SENDER_EMAIL = "noreply@realestate-app.com"

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": "seconds", "s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def parse_duration(value: str) -> timedelta:
    """
    Parse a token lifetime such as "7d", "12h", "30m" or "3600".

    Raises:
        ConfigError: If the value is not a positive duration
    """
    match = _DURATION_RE.match(value or "")
    if not match:
        raise ConfigError(f"Invalid duration: {value!r} (expected e.g. 7d, 12h, 30m)")
    amount = int(match.group(1))
    if amount <= 0:
        raise ConfigError(f"Duration must be positive: {value!r}")
    return timedelta(**{_DURATION_UNITS[match.group(2)]: amount})


@dataclass(frozen=True)
class Settings:
    """
    Immutable process-wide configuration.

    Built once at startup by load_settings() and handed to every component
    by create_app(). Nothing reads os.environ after this point.
    """
    jwt_secret: str
    env: Literal["dev", "staging", "prod"] = "dev"
    jwt_algorithm: str = "HS256"
    token_ttl: timedelta = timedelta(days=7)
    database_url: str = DEFAULT_DATABASE_URL
    cors_origins: Tuple[str, ...] = DEFAULT_CORS_ORIGINS
    cloudinary_cloud_name: Optional[str] = None
    cloudinary_api_key: Optional[str] = field(default=None, repr=False)
    cloudinary_api_secret: Optional[str] = field(default=None, repr=False)
    sendgrid_api_key: Optional[str] = field(default=None, repr=False)
    sender_email: str = DEFAULT_SENDER_EMAIL
    log_level: str = "INFO"

    @property
    def is_dev(self) -> bool:
        return self.env == "dev"

    @property
    def is_prod(self) -> bool:
        return self.env == "prod"

    @property
    def has_media_credentials(self) -> bool:
        return bool(self.cloudinary_cloud_name and self.cloudinary_api_key and self.cloudinary_api_secret)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Read configuration from the environment (or the given mapping).

    Raises:
        ConfigError: If JWT_SECRET is missing or a value is malformed
    """
    env_vars = os.environ if environ is None else environ

    env = env_vars.get("ENV", "dev").strip().lower()
    if env not in ("dev", "staging", "prod"):
        raise ConfigError(f"Unknown ENV: {env!r}")

    jwt_secret = env_vars.get("JWT_SECRET", "").strip()
    if not jwt_secret:
        raise ConfigError("JWT_SECRET is not defined in environment variables.")

    # Extra origins are appended to the local defaults (comma separated)
    cors_origins = list(DEFAULT_CORS_ORIGINS)
    extra_origins = env_vars.get("CORS_ORIGINS", "")
    for origin in extra_origins.split(","):
        origin = origin.strip().rstrip("/")
        if origin and origin not in cors_origins:
            cors_origins.append(origin)

    return Settings(
        env=env,  # type: ignore[arg-type]
        jwt_secret=jwt_secret,
        token_ttl=parse_duration(env_vars.get("JWT_EXPIRES_IN", "7d")),
        database_url=env_vars.get("DATABASE_URL", "").strip() or DEFAULT_DATABASE_URL,
        cors_origins=tuple(cors_origins),
        cloudinary_cloud_name=env_vars.get("CLOUDINARY_CLOUD_NAME") or None,
        cloudinary_api_key=env_vars.get("CLOUDINARY_API_KEY") or None,
        cloudinary_api_secret=env_vars.get("CLOUDINARY_API_SECRET") or None,
        sendgrid_api_key=env_vars.get("SENDGRID_API_KEY") or None,
        sender_email=env_vars.get("SENDER_EMAIL") or DEFAULT_SENDER_EMAIL,
        log_level=env_vars.get("LOG_LEVEL", "INFO").upper(),
    )


def setup_logging(settings: Settings) -> None:
    """Configure the root logger once for the process."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )
    # Keep HTTP client chatter out of request logs
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)

    logger.info("[CONFIG] Environment: %s", settings.env)
    logger.info("[CONFIG] Database: %s", settings.database_url.split("://", 1)[0])
    logger.info("[CONFIG] Token lifetime: %s", settings.token_ttl)
    logger.info("[CONFIG] CORS origins: %s", ", ".join(settings.cors_origins))
