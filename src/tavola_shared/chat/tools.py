"""
Tools the chat model may call.

Each tool name maps to a pydantic argument model and a handler. Failures are
returned to the model as ``{"error": ...}`` so the conversation can continue.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError

from tavola_shared.constants import CreatedVia
from tavola_shared.error_catalog import ServiceError
from tavola_shared.logging_config import get_logger
from tavola_shared.services import location_service, menu_service, order_service, reservation_service
from tavola_shared.store import StoreHandle

logger = get_logger(__name__)


class LookupMenuArgs(BaseModel):
    search_term: str | None = None
    category: str | None = None
    dietary_filter: str | None = None


class CreateReservationArgs(BaseModel):
    # Presence and field rules are enforced by the reservation engine, which
    # reports every missing field back to the model at once.
    model_config = ConfigDict(extra="ignore")

    customer_name: str | None = None
    customer_phone: str | None = None
    party_size: float | None = None
    reservation_date: str | None = None
    reservation_time: str | None = None
    location_id: str | None = None
    customer_email: str | None = None
    notes: str | None = None


class OrderLineArgs(BaseModel):
    menu_item_id: str | None = None
    quantity: float | None = None
    special_instructions: str | None = None


class CreateOrderArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")

    customer_name: str | None = None
    customer_phone: str | None = None
    order_type: str | None = None
    location_id: str | None = None
    items: list[OrderLineArgs] | None = None
    delivery_address: str | None = None
    customer_email: str | None = None


class GetLocationInfoArgs(BaseModel):
    location_name: str | None = None


def _whole_numbers(values: dict[str, Any], *fields: str) -> dict[str, Any]:
    """Models send JSON numbers; integral floats go back to ints for the engines."""
    for name in fields:
        value = values.get(name)
        if isinstance(value, float) and value.is_integer():
            values[name] = int(value)
    return values


def lookup_menu(store: StoreHandle, args: LookupMenuArgs) -> dict[str, Any]:
    items = menu_service.search_menu(
        store,
        search_term=args.search_term,
        category=args.category,
        dietary_filter=args.dietary_filter,
    )
    if not items:
        return {"message": "No menu items found matching these criteria."}
    return {"items": items}


def create_reservation(store: StoreHandle, args: CreateReservationArgs) -> dict[str, Any]:
    payload = _whole_numbers(args.model_dump(exclude_none=True), "party_size")
    payload["created_via"] = CreatedVia.CHATBOT.value
    reservation = reservation_service.create_reservation(store, payload)
    return {
        "success": True,
        "message": reservation["message"],
        "reservation_id": reservation["id"],
        "date": args.reservation_date,
        "time": args.reservation_time,
        "party_size": payload["party_size"],
    }


def create_order(store: StoreHandle, args: CreateOrderArgs) -> dict[str, Any]:
    payload = args.model_dump(exclude_none=True)
    if "items" in payload:
        payload["items"] = [_whole_numbers(item, "quantity") for item in payload["items"]]
    order = order_service.create_order(store, payload)
    return {
        "success": True,
        "order_id": order["id"],
        "total": order["total"],
        "order_type": order["order_type"],
        "status": order["status"],
    }


def get_location_info(store: StoreHandle, args: GetLocationInfoArgs) -> dict[str, Any]:
    locations = location_service.get_location_info(store, args.location_name)
    if not locations:
        return {"message": "No locations found."}
    return {"locations": locations}


@dataclass(frozen=True)
class ChatTool:
    name: str
    args_model: type[BaseModel]
    handler: Callable[[StoreHandle, Any], dict[str, Any]]


TOOL_REGISTRY: dict[str, ChatTool] = {
    tool.name: tool
    for tool in (
        ChatTool("lookup_menu", LookupMenuArgs, lookup_menu),
        ChatTool("create_reservation", CreateReservationArgs, create_reservation),
        ChatTool("create_order", CreateOrderArgs, create_order),
        ChatTool("get_location_info", GetLocationInfoArgs, get_location_info),
    )
}


def execute_tool_call(store: StoreHandle, name: str, raw_arguments: str | None) -> dict[str, Any]:
    """
    Run one tool call and return its JSON-serialisable result.

    Args:
        store: Privileged store handle
        name: Tool name chosen by the model
        raw_arguments: JSON-encoded argument object from the model

    Returns:
        The handler's result, or ``{"error": ...}``
    """
    tool = TOOL_REGISTRY.get(name)
    if tool is None:
        logger.warning("Model requested unknown tool %s", name)
        return {"error": f"Unknown function: {name}"}

    try:
        arguments = json.loads(raw_arguments or "{}")
        args = tool.args_model.model_validate(arguments)
    except (ValueError, PydanticValidationError) as e:
        logger.warning("Invalid arguments for %s: %s", name, e)
        return {"error": f"Invalid arguments for {name}"}

    try:
        result = tool.handler(store, args)
    except ServiceError as e:
        logger.info("Tool %s rejected: %s (%s)", name, e.message, e.code)
        rejection: dict[str, Any] = {"error": e.message}
        if e.details:
            rejection["details"] = e.details
        return rejection
    except SQLAlchemyError as e:
        store.session.rollback()
        logger.error("Tool %s failed on the store: %s", name, e, exc_info=True)
        return {"error": f"Could not complete {name}"}

    logger.debug("Tool %s executed", name)
    return result
