"""
Menu reads for the public site and the chat assistant, plus admin edits.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from tavola_shared.error_catalog import ServiceError
from tavola_shared.jwt_service import require_admin
from tavola_shared.logging_config import get_logger
from tavola_shared.models import MenuCategory, MenuItem
from tavola_shared.schemas import (
    MenuCategoryCreateRequest,
    MenuItemCreateRequest,
    MenuItemUpdateRequest,
)
from tavola_shared.serializers import serialize_menu_category, serialize_menu_item
from tavola_shared.store import StoreHandle

logger = get_logger(__name__)

NOT_NULL_FIELDS = {
    "name",
    "category_id",
    "price",
    "allergens",
    "dietary_labels",
    "is_available",
    "is_featured",
    "sort_order",
}


class MenuError(ServiceError):
    """Raised for missing menu rows and empty admin updates."""


def list_menu(store: StoreHandle, category_id: str | None = None) -> list[dict[str, Any]]:
    """Available items ordered for display, each with its category."""
    stmt = (
        select(MenuItem)
        .options(selectinload(MenuItem.category))
        .where(MenuItem.is_available.is_(True))
        .order_by(MenuItem.sort_order.asc(), MenuItem.name.asc())
    )
    if category_id:
        stmt = stmt.where(MenuItem.category_id == category_id)
    items = store.session.execute(stmt).scalars().all()
    return [serialize_menu_item(item, include_category=True) for item in items]


def list_categories(store: StoreHandle) -> list[dict[str, Any]]:
    stmt = (
        select(MenuCategory)
        .where(MenuCategory.is_active.is_(True))
        .order_by(MenuCategory.sort_order.asc(), MenuCategory.name.asc())
    )
    return [serialize_menu_category(c) for c in store.session.execute(stmt).scalars().all()]


def get_menu_item(store: StoreHandle, item_id: str) -> dict[str, Any]:
    item = store.session.execute(
        select(MenuItem)
        .options(selectinload(MenuItem.category))
        .where(MenuItem.id == item_id, MenuItem.is_available.is_(True))
    ).scalar_one_or_none()
    if item is None:
        raise MenuError("MENU_ITEM_NOT_FOUND", "Menu item not found")
    return serialize_menu_item(item, include_category=True)


def search_menu(
    store: StoreHandle,
    search_term: str | None = None,
    category: str | None = None,
    dietary_filter: str | None = None,
) -> list[dict[str, Any]]:
    """
    Search available items for the chat assistant.

    Args:
        search_term: Case-insensitive substring of name or description
        category: Category name, compared case-insensitively
        dietary_filter: Case-insensitive substring of any dietary label

    Returns:
        Matching items ordered by name, with the category name inlined
    """
    stmt = (
        select(MenuItem)
        .options(selectinload(MenuItem.category))
        .where(MenuItem.is_available.is_(True))
        .order_by(MenuItem.name.asc())
    )
    if category:
        stmt = stmt.join(MenuItem.category).where(
            func.lower(MenuCategory.name) == category.strip().lower()
        )
    items = store.session.execute(stmt).scalars().all()

    if search_term:
        term = search_term.lower()
        items = [
            item
            for item in items
            if term in item.name.lower() or term in (item.description or "").lower()
        ]

    if dietary_filter:
        wanted = dietary_filter.lower()
        items = [
            item
            for item in items
            if any(wanted in label.lower() for label in item.dietary_labels or [])
        ]

    return [
        {
            "id": item.id,
            "name": item.name,
            "description": item.description,
            "price": float(item.price),
            "dietary_labels": item.dietary_labels or [],
            "allergens": item.allergens or [],
            "category": item.category.name if item.category else None,
        }
        for item in items
    ]


def _require_category(session, category_id: str) -> None:
    if session.get(MenuCategory, category_id) is None:
        raise MenuError("MENU_CATEGORY_NOT_FOUND", f"Menu category {category_id} not found")


def create_menu_item(
    store: StoreHandle, principal: dict | None, payload: Mapping[str, Any]
) -> dict[str, Any]:
    require_admin(principal)
    session = store.require_privileged("create menu item")
    data = MenuItemCreateRequest.model_validate(payload)
    _require_category(session, data.category_id)

    values = data.model_dump()
    values["price"] = Decimal(str(values["price"]))
    item = MenuItem(**values)
    session.add(item)
    session.commit()

    logger.info("Menu item %s created: %s", item.id, item.name)
    return serialize_menu_item(item, include_category=True)


def update_menu_item(
    store: StoreHandle, principal: dict | None, item_id: str, payload: Mapping[str, Any]
) -> dict[str, Any]:
    """
    Apply a partial update limited to the editable menu fields.

    Raises:
        MenuError: NO_FIELDS when nothing editable is present,
            MENU_ITEM_NOT_FOUND when the item does not exist
    """
    require_admin(principal)
    session = store.require_privileged("update menu item")
    data = MenuItemUpdateRequest.model_validate(payload)

    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise MenuError("NO_FIELDS", "No valid fields provided for update")
    nulled = sorted(field for field in NOT_NULL_FIELDS if field in changes and changes[field] is None)
    if nulled:
        raise MenuError(
            "INVALID_PAYLOAD", f"Fields cannot be null: {', '.join(nulled)}", {"fields": nulled}
        )

    item = session.get(MenuItem, item_id)
    if item is None:
        raise MenuError("MENU_ITEM_NOT_FOUND", "Menu item not found")
    if "category_id" in changes:
        _require_category(session, changes["category_id"])
    if "price" in changes:
        changes["price"] = Decimal(str(changes["price"]))

    for field, value in changes.items():
        setattr(item, field, value)
    session.commit()

    logger.info("Menu item %s updated (%s)", item_id, ", ".join(sorted(changes)))
    return serialize_menu_item(item, include_category=True)


def delete_menu_item(store: StoreHandle, principal: dict | None, item_id: str) -> dict[str, Any]:
    """Logical delete: the row stays so historical order lines keep their reference."""
    require_admin(principal)
    session = store.require_privileged("delete menu item")

    item = session.get(MenuItem, item_id)
    if item is None:
        raise MenuError("MENU_ITEM_NOT_FOUND", "Menu item not found")
    item.is_available = False
    session.commit()

    logger.info("Menu item %s marked unavailable", item_id)
    return {"message": "Menu item deleted"}


def create_category(
    store: StoreHandle, principal: dict | None, payload: Mapping[str, Any]
) -> dict[str, Any]:
    require_admin(principal)
    session = store.require_privileged("create menu category")
    data = MenuCategoryCreateRequest.model_validate(payload)

    category = MenuCategory(**data.model_dump())
    session.add(category)
    session.commit()

    logger.info("Menu category %s created: %s", category.id, category.name)
    return serialize_menu_category(category)
