"""
FastAPI application entry point for the catalog admin backend.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException
from starlette.middleware.sessions import SessionMiddleware

from catalog_admin.auth import SessionStore
from catalog_admin.config import Settings, get_settings
from catalog_admin.dependencies import build_backend
from catalog_admin.middleware import RequestLoggingMiddleware
from catalog_admin.routes import pages_router, router

logger = logging.getLogger(__name__)


async def http_exception_handler(request: Request, exc: HTTPException):
    """Render errors as {"error": message} like the rest of the API."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Catalog Admin Backend", version="0.1.0")
    app.state.settings = settings
    app.state.backend = build_backend(settings)
    app.state.sessions = SessionStore(max_age=settings.session_max_age)

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        max_age=settings.session_max_age,
        https_only=False,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.client_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=[
            "Origin",
            "X-Requested-With",
            "Content-Type",
            "Accept",
            "Authorization",
        ],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)

    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(pages_router)
    if os.path.isdir(settings.public_dir):
        app.mount(
            "/", StaticFiles(directory=settings.public_dir), name="public"
        )
    else:
        logger.warning(
            "Public directory %s not found; static files disabled",
            settings.public_dir,
        )
    return app


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    settings = get_settings()
    app = create_app(settings)
    mode = (
        "Remote store (images saved to bucket)"
        if app.state.backend.is_remote
        else "Local files (images kept in public/uploads)"
    )
    logger.info("=" * 50)
    logger.info("Catalog admin server starting")
    logger.info("API:   http://localhost:%s%s", settings.port, settings.api_prefix)
    logger.info("Admin: http://localhost:%s/admin-login.html", settings.port)
    logger.info("Mode:  %s", mode)
    logger.info("=" * 50)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
