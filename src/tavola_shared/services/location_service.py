"""
Restaurant locations: public listing, chat lookup and admin upsert.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy import func, select

from tavola_shared.error_catalog import ServiceError
from tavola_shared.jwt_service import require_admin
from tavola_shared.logging_config import get_logger
from tavola_shared.models import Location
from tavola_shared.schemas import LocationUpsertRequest
from tavola_shared.serializers import serialize_location
from tavola_shared.store import StoreHandle

logger = get_logger(__name__)


def list_locations(store: StoreHandle, active_only: bool = True) -> list[dict[str, Any]]:
    stmt = select(Location).order_by(Location.name.asc())
    if active_only:
        stmt = stmt.where(Location.is_active.is_(True))
    return [serialize_location(loc) for loc in store.session.execute(stmt).scalars().all()]


def get_location_info(store: StoreHandle, location_name: str | None = None) -> list[dict[str, Any]]:
    """
    Active locations whose name contains ``location_name`` (case-insensitive).

    An empty name or "all" returns every active location.
    """
    stmt = select(Location).where(Location.is_active.is_(True)).order_by(Location.name.asc())
    name = (location_name or "").strip()
    if name and name.lower() != "all":
        stmt = stmt.where(func.lower(Location.name).contains(name.lower(), autoescape=True))

    return [
        {
            "id": loc.id,
            "name": loc.name,
            "address": loc.address,
            "city": loc.city,
            "phone": loc.phone,
            "email": loc.email,
            "opening_hours": loc.opening_hours or {},
        }
        for loc in store.session.execute(stmt).scalars().all()
    ]


def upsert_location(
    store: StoreHandle, principal: dict | None, payload: Mapping[str, Any]
) -> tuple[dict[str, Any], bool]:
    """
    Create a location, or replace the editable fields of an existing one.

    Opening hours must satisfy open < close for every listed day and delivery
    zones must be 4-digit postal prefixes.

    Returns:
        Tuple of (serialized location, created flag)
    """
    require_admin(principal)
    session = store.require_privileged("upsert location")
    data = LocationUpsertRequest.model_validate(payload)
    values = data.model_dump(exclude={"id"})

    location = session.get(Location, data.id) if data.id else None
    if data.id and location is None:
        raise ServiceError("LOCATION_NOT_FOUND", "Location not found")

    created = location is None
    if created:
        location = Location(**values)
        session.add(location)
    else:
        for field, value in values.items():
            setattr(location, field, value)
    session.commit()

    logger.info("Location %s %s", location.id, "created" if created else "updated")
    return serialize_location(location), created
