"""
Dependency wiring for the FastAPI app.

The backend is chosen once in ``create_app`` and kept on ``app.state``;
these helpers only read that value, they never decide anything themselves.
"""

from __future__ import annotations

from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from canvas_backend.auth import admin_id_from_token
from canvas_backend.config import Settings
from canvas_backend.records import EntityKind, Record, public_view
from canvas_backend.selector import BackendSelection
from canvas_backend.store import StorageFacade


def get_backend(request: Request) -> BackendSelection:
    return request.app.state.backend


def get_menu_store(request: Request) -> StorageFacade:
    return get_backend(request).facade_for(EntityKind.MENU)


def get_gallery_store(request: Request) -> StorageFacade:
    return get_backend(request).facade_for(EntityKind.GALLERY)


def get_admin_store(request: Request) -> StorageFacade:
    return get_backend(request).facade_for(EntityKind.ADMINS)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


# auto_error=False so a missing header is a 401 like any other bad token.
security = HTTPBearer(auto_error=False)


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_app_settings),
    admins: StorageFacade = Depends(get_admin_store),
) -> Record:
    """Resolve the bearer token to an active admin, without the password hash."""
    if credentials is None:
        raise _unauthorized("Access denied. No token provided.")
    try:
        admin_id = admin_id_from_token(credentials.credentials, settings)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token expired.")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid token.")

    admin = admins.find_by_id(admin_id)
    if admin is None or not admin.get("isActive", True):
        raise _unauthorized("Invalid token. Admin not found.")
    return public_view(admin, ["password"])
