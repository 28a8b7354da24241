"""
HTTP routes for the restaurant backend API.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from canvas_backend.auth import authenticate, issue_token
from canvas_backend.config import Settings
from canvas_backend.dependencies import (
    get_admin_store,
    get_app_settings,
    get_backend,
    get_current_admin,
    get_gallery_store,
    get_menu_store,
)
from canvas_backend.records import CREATED_AT, Record, public_view
from canvas_backend.schemas import (
    GalleryImageCreate,
    GalleryImagePatch,
    GalleryReorderRequest,
    HealthResponse,
    LoginRequest,
    LoginResponse,
    MenuItemCreate,
    MenuItemPatch,
    MessageResponse,
    ProfileResponse,
    RecordListResponse,
    RecordResponse,
    StatsResponse,
)
from canvas_backend.selector import BackendSelection
from canvas_backend.stats import gallery_stats, menu_stats
from canvas_backend.store import StorageFacade

router = APIRouter()

admin_only = [Depends(get_current_admin)]


def _newest_first(records: list[Record]) -> list[Record]:
    # Reversing first keeps later inserts ahead when timestamps tie.
    return sorted(
        reversed(records), key=lambda record: record.get(CREATED_AT, ""), reverse=True
    )


def _require(record: Optional[Record], label: str) -> Record:
    if record is None:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return record


def _stored(record: Optional[Record], action: str) -> Record:
    if record is None:
        raise HTTPException(status_code=500, detail=f"Error {action}")
    return record


@router.get("/health", response_model=HealthResponse)
def health(
    backend: BackendSelection = Depends(get_backend),
    settings: Settings = Depends(get_app_settings),
):
    return HealthResponse(
        message="Culinary Canvas API is running",
        backend=backend.kind.value,
        ready=backend.ready,
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/menu", response_model=RecordListResponse)
def list_menu_items(
    category: Optional[str] = Query(None),
    available: Optional[bool] = Query(None),
    store: StorageFacade = Depends(get_menu_store),
):
    query: dict = {}
    if category:
        query["category"] = category
    if available is not None:
        query["isAvailable"] = available
    items = _newest_first(store.find(query))
    return RecordListResponse(count=len(items), data=items)


@router.get("/menu/stats", response_model=StatsResponse)
def get_menu_stats(store: StorageFacade = Depends(get_menu_store)):
    return StatsResponse(data=menu_stats(store.find()))


@router.get("/menu/{item_id}", response_model=RecordResponse)
def get_menu_item(item_id: str, store: StorageFacade = Depends(get_menu_store)):
    return RecordResponse(data=_require(store.find_by_id(item_id), "Menu item"))


@router.post(
    "/menu", response_model=RecordResponse, status_code=201, dependencies=admin_only
)
def create_menu_item(
    payload: MenuItemCreate, store: StorageFacade = Depends(get_menu_store)
):
    item = _stored(store.create(payload), "creating menu item")
    return RecordResponse(data=item, message="Menu item created successfully")


@router.patch("/menu/{item_id}", response_model=RecordResponse, dependencies=admin_only)
def update_menu_item(
    item_id: str,
    payload: MenuItemPatch,
    store: StorageFacade = Depends(get_menu_store),
):
    _require(store.find_by_id(item_id), "Menu item")
    item = _stored(store.update(item_id, payload), "updating menu item")
    return RecordResponse(data=item, message="Menu item updated successfully")


@router.delete(
    "/menu/{item_id}", response_model=MessageResponse, dependencies=admin_only
)
def delete_menu_item(item_id: str, store: StorageFacade = Depends(get_menu_store)):
    # Image files belong to the upload layer; removing them is the caller's job.
    _require(store.find_by_id(item_id), "Menu item")
    if not store.delete(item_id):
        raise HTTPException(status_code=500, detail="Error deleting menu item")
    return MessageResponse(success=True, message="Menu item deleted successfully")


@router.get("/gallery", response_model=RecordListResponse)
def list_gallery_images(
    active: Optional[bool] = Query(None),
    store: StorageFacade = Depends(get_gallery_store),
):
    query = {"isActive": active} if active is not None else {}
    images = sorted(
        _newest_first(store.find(query)), key=lambda image: image.get("order", 0)
    )
    return RecordListResponse(count=len(images), data=images)


@router.get("/gallery/stats", response_model=StatsResponse, dependencies=admin_only)
def get_gallery_stats(store: StorageFacade = Depends(get_gallery_store)):
    return StatsResponse(data=gallery_stats(store.find()))


@router.post("/gallery/reorder", response_model=MessageResponse, dependencies=admin_only)
def reorder_gallery_images(
    payload: GalleryReorderRequest, store: StorageFacade = Depends(get_gallery_store)
):
    # Unknown ids are skipped; the rest of the batch still applies.
    for entry in payload.image_orders:
        if store.find_by_id(entry.id) is None:
            continue
        _stored(
            store.update(entry.id, GalleryImagePatch(order=entry.order)),
            "reordering gallery images",
        )
    return MessageResponse(success=True, message="Gallery order updated successfully")


@router.get("/gallery/{image_id}", response_model=RecordResponse)
def get_gallery_image(image_id: str, store: StorageFacade = Depends(get_gallery_store)):
    return RecordResponse(data=_require(store.find_by_id(image_id), "Image"))


@router.post("/gallery", response_model=RecordResponse, status_code=201)
def create_gallery_image(
    payload: GalleryImageCreate,
    store: StorageFacade = Depends(get_gallery_store),
    admin: Record = Depends(get_current_admin),
):
    if payload.uploaded_by is None:
        payload = payload.model_copy(update={"uploaded_by": str(admin["_id"])})
    image = _stored(store.create(payload), "saving image")
    return RecordResponse(data=image, message="Image uploaded successfully")


@router.patch(
    "/gallery/{image_id}", response_model=RecordResponse, dependencies=admin_only
)
def update_gallery_image(
    image_id: str,
    payload: GalleryImagePatch,
    store: StorageFacade = Depends(get_gallery_store),
):
    _require(store.find_by_id(image_id), "Image")
    image = _stored(store.update(image_id, payload), "updating image")
    return RecordResponse(data=image, message="Image updated successfully")


@router.delete(
    "/gallery/{image_id}", response_model=MessageResponse, dependencies=admin_only
)
def delete_gallery_image(
    image_id: str, store: StorageFacade = Depends(get_gallery_store)
):
    _require(store.find_by_id(image_id), "Image")
    if not store.delete(image_id):
        raise HTTPException(status_code=500, detail="Error deleting image")
    return MessageResponse(success=True, message="Image deleted successfully")


@router.post("/admin/login", response_model=LoginResponse)
def admin_login(
    payload: LoginRequest,
    admins: StorageFacade = Depends(get_admin_store),
    settings: Settings = Depends(get_app_settings),
):
    admin = authenticate(admins, payload.login, payload.password)
    if admin is None:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return LoginResponse(
        message="Login successful",
        token=issue_token(admin, settings),
        admin=public_view(admin, ["password"]),
    )


@router.get("/admin/profile", response_model=ProfileResponse)
def admin_profile(admin: Record = Depends(get_current_admin)):
    return ProfileResponse(
        admin={
            "id": admin["_id"],
            "username": admin.get("username"),
            "email": admin.get("email"),
            "role": admin.get("role"),
            "lastLogin": admin.get("lastLogin"),
        }
    )
