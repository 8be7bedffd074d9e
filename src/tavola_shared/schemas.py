"""
Pydantic schemas for request validation.

Order and reservation payloads are validated by their engines, which report
the catalogued error codes (MISSING_FIELDS, INVALID_ITEMS, ...) in a fixed
order; these models cover the remaining request bodies.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from tavola_shared.validation import validate_delivery_zones, validate_opening_hours


class UpdateStatusRequest(BaseModel):
    status: str | None = None


class CheckoutRequest(BaseModel):
    order_id: str | None = Field(default=None, alias="orderId")

    model_config = {"populate_by_name": True}


class ChatRequest(BaseModel):
    # Shape is checked by the orchestrator so a non-string message maps to INVALID_MESSAGE.
    message: Any = None
    session_token: str | None = Field(default=None, alias="sessionToken")

    model_config = {"populate_by_name": True}


class MenuCategoryCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=80)
    description: str | None = None
    sort_order: int = 0
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class MenuItemCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    category_id: str = Field(..., min_length=1)
    price: float = Field(..., gt=0)
    description: str | None = None
    image_url: str | None = None
    allergens: list[str] = Field(default_factory=list)
    dietary_labels: list[str] = Field(default_factory=list)
    is_available: bool = True
    is_featured: bool = False
    sort_order: int = 0

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class MenuItemUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=120)
    category_id: str | None = None
    price: float | None = Field(None, gt=0)
    description: str | None = None
    image_url: str | None = None
    allergens: list[str] | None = None
    dietary_labels: list[str] | None = None
    is_available: bool | None = None
    is_featured: bool | None = None
    sort_order: int | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class LocationUpsertRequest(BaseModel):
    id: str | None = None
    name: str = Field(..., min_length=1, max_length=120)
    address: str = Field(..., min_length=1)
    city: str | None = None
    phone: str = Field(..., min_length=1)
    email: str | None = None
    opening_hours: dict[str, dict[str, str]] = Field(default_factory=dict)
    delivery_zones: list[str] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("opening_hours")
    @classmethod
    def check_opening_hours(cls, v: dict[str, dict[str, str]]) -> dict[str, dict[str, str]]:
        validate_opening_hours(v)
        return v

    @field_validator("delivery_zones")
    @classmethod
    def check_delivery_zones(cls, v: list[str]) -> list[str]:
        validate_delivery_zones(v)
        return v
