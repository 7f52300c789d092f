# ---------------------------------------------------------
# backend/main.py
# Real-estate listings backend
#
# Run: uvicorn backend.main:create_app --factory --reload (from repo root)
#
# - FastAPI + SQLAlchemy (SQLite locally, any SQLAlchemy URL in production)
# - /auth/signup, /auth/login, /auth/me : accounts and session tokens (JWT)
# - /listings                          : public search + agent CRUD with images
# - /leads                             : lead capture + agent inbox
# - every route is also served under /api
# ---------------------------------------------------------

from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.config import Settings, load_settings, setup_logging
from backend.db import create_db_engine, init_db
from backend.errors import AppError
from backend.media import MediaUploader
from backend.notifications import NotificationDispatcher
from backend import routes_auth, routes_leads, routes_listings
from backend.services import build_services

logger = logging.getLogger(__name__)

API_PREFIX = "/api"
GENERIC_ERROR = "Something went wrong!"


# ---------------------------------------------------------
# Error rendering
# ---------------------------------------------------------
def _error_body(status_code: int, message: str) -> Dict[str, str]:
    return {"status": "fail" if status_code < 500 else "error", "detail": message}


async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("[API] %s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.status_code, exc.message))


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.status_code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Field names only; submitted values are never echoed back
    names = sorted({
        ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path"))
        for err in exc.errors()
    } - {""})
    message = "Missing or invalid fields."
    if names:
        message = f"Missing or invalid fields: {', '.join(names)}."
    return JSONResponse(status_code=400, content=_error_body(400, message))


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("[API] Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=_error_body(500, GENERIC_ERROR))


# ---------------------------------------------------------
# App factory
# ---------------------------------------------------------
def create_app(
    settings: Optional[Settings] = None,
    media: Optional[MediaUploader] = None,
    notifier: Optional[NotificationDispatcher] = None,
    engine: Optional[Engine] = None,
) -> FastAPI:
    """
    Build the API application.

    Components are created once here and shared by every request via
    app.state.services. media/notifier/engine may be injected (tests);
    otherwise they are built from settings.

    Raises:
        ConfigError: JWT_SECRET missing, or Cloudinary credentials missing
                     when no media uploader is injected
    """
    settings = settings or load_settings()
    setup_logging(settings)

    engine = engine or create_db_engine(settings.database_url)
    init_db(engine)

    app = FastAPI(title="Real Estate Listings API", version="1.0")
    app.state.services = build_services(settings, engine, media=media, notifier=notifier)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    for router in (routes_auth.router, routes_listings.router, routes_leads.router):
        app.include_router(router)
        app.include_router(router, prefix=API_PREFIX, include_in_schema=False)

    logger.info("[API] Ready (env=%s)", settings.env)
    return app
