"""
Pydantic schemas for the restaurant backend.

Stored records use camelCase field names, so every model serialises by
alias. The ``*Patch`` models are partial updates: every field is optional
and only the fields a caller actually sets end up in the stored merge.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MenuCategory = Literal["Breakfast", "Lunch", "Dinner", "Drinks", "Desserts", "Appetizers"]
AdminRole = Literal["admin", "super-admin"]


class RecordModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="forbid",
    )


def _reject_null(value):
    if value is None:
        raise ValueError("may be omitted but cannot be null")
    return value


class MenuItemCreate(RecordModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    price: float = Field(..., ge=0)
    category: MenuCategory = "Lunch"
    image: Optional[str] = None
    is_available: bool = True
    featured: bool = False


class MenuItemPatch(RecordModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[MenuCategory] = None
    image: Optional[str] = None
    is_available: Optional[bool] = None
    featured: Optional[bool] = None

    @field_validator("name", "price", "category", "is_available", "featured")
    @classmethod
    def reject_null(cls, value):
        return _reject_null(value)


class GalleryImageCreate(RecordModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    image_url: str
    filename: str
    size: int = Field(..., ge=0)
    mime_type: str
    is_active: bool = True
    order: int = 0
    uploaded_by: Optional[str] = None


class GalleryImagePatch(RecordModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    is_active: Optional[bool] = None
    order: Optional[int] = None

    @field_validator("title", "is_active", "order")
    @classmethod
    def reject_null(cls, value):
        return _reject_null(value)


class AdminCreate(RecordModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: str
    password: str = Field(..., description="bcrypt hash, never the plain password")
    role: AdminRole = "admin"
    is_active: bool = True
    last_login: Optional[str] = None


class AdminPatch(RecordModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[AdminRole] = None
    is_active: Optional[bool] = None
    last_login: Optional[str] = None

    @field_validator("username", "email", "password", "role", "is_active")
    @classmethod
    def reject_null(cls, value):
        return _reject_null(value)


class RecordResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]
    message: Optional[str] = None


class RecordListResponse(BaseModel):
    success: bool = True
    count: int
    data: list[dict[str, Any]]


class MessageResponse(BaseModel):
    success: bool
    message: str


class HealthResponse(BaseModel):
    success: Literal[True] = True
    message: str
    backend: str
    ready: bool
    environment: str
    timestamp: datetime


class LoginRequest(BaseModel):
    login: str = Field(..., min_length=1, description="email or username")
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    success: Literal[True] = True
    message: str
    token: str
    admin: dict[str, Any]


class ProfileResponse(BaseModel):
    success: Literal[True] = True
    admin: dict[str, Any]


class ImageOrder(BaseModel):
    id: str = Field(..., min_length=1)
    order: int


class GalleryReorderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_orders: list[ImageOrder] = Field(..., alias="imageOrders")


class StatsResponse(BaseModel):
    success: Literal[True] = True
    data: dict[str, Any]
