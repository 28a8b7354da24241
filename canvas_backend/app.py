"""
FastAPI application entry point for the restaurant backend.
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from canvas_backend.auth import ensure_default_admin
from canvas_backend.config import Settings, get_settings
from canvas_backend.logging_config import setup_logging
from canvas_backend.records import EntityKind
from canvas_backend.routes import router
from canvas_backend.selector import select_backend


async def _http_error(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
        headers=exc.headers,
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    # Chosen once here and never revisited for the life of the process.
    backend = select_backend(settings)
    ensure_default_admin(backend.facade_for(EntityKind.ADMINS), settings)

    app = FastAPI(title="Culinary Canvas Backend (FastAPI)", version="1.0.0")
    app.state.settings = settings
    app.state.backend = backend
    app.add_exception_handler(HTTPException, _http_error)
    app.include_router(router, prefix=settings.api_prefix)
    return app
