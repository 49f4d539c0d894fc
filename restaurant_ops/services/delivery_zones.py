from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.orm import Session

from restaurant_ops.core.errors import NotFoundError, ValidationError
from restaurant_ops.models.delivery_zone import DeliveryZone
from restaurant_ops.services.geo import coordinates_to_public, coordinates_to_storage, to_public_format
from restaurant_ops.utils.slug import normalize_sub_domain

logger = logging.getLogger(__name__)

ZONE_TYPES = ("polygon", "simple", "radius")
ZONE_STATUSES = ("0", "1")
ZONE_NAME_MAX_LENGTH = 200

# Campos que o PATCH pode alterar; o resto é fixo após a criação.
_UPDATABLE_FIELDS = (
    "zone_name",
    "delivery_cost",
    "minimum_order",
    "estimated_time",
    "allows_free_delivery",
    "minimum_for_free_delivery",
    "zone_type",
    "coordinates",
    "radius_km",
    "status",
)


def _require_non_negative(zone: Mapping[str, Any], field: str, *, required: bool = True) -> None:
    value = zone.get(field)
    if value is None:
        if required:
            raise ValidationError(f"{field} is required")
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be a number")
    if value < 0:
        raise ValidationError(f"{field} must be greater than or equal to 0")


def validate_zone(zone: Mapping[str, Any]) -> None:
    """Check a zone before it is normalized and stored.

    ``coordinates`` may hold public ``{latitude, longitude}`` objects or stored
    ``[lng, lat]`` pairs; error messages always use the public field names.
    """
    zone_type = zone.get("zone_type")
    if zone_type not in ZONE_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(ZONE_TYPES)}")

    zone_name = zone.get("zone_name")
    if not zone_name or not str(zone_name).strip():
        raise ValidationError("zoneName is required")
    if len(str(zone_name)) > ZONE_NAME_MAX_LENGTH:
        raise ValidationError(f"zoneName must be at most {ZONE_NAME_MAX_LENGTH} characters")

    coordinates = zone.get("coordinates")
    if coordinates is None:
        coordinates = []
    if not isinstance(coordinates, (list, tuple)):
        raise ValidationError("coordinates must be a list")

    if zone_type == "polygon" and len(coordinates) < 3:
        raise ValidationError("Polygon zones require at least 3 coordinates")
    if zone_type in ("simple", "radius") and len(coordinates) != 1:
        raise ValidationError(f"{zone_type.capitalize()} zones require exactly one center coordinate")

    for index, point in enumerate(coordinates):
        public_point = to_public_format(point, index)
        if not -90 <= public_point["latitude"] <= 90:
            raise ValidationError(f"coordinates[{index}].latitude must be between -90 and 90")
        if not -180 <= public_point["longitude"] <= 180:
            raise ValidationError(f"coordinates[{index}].longitude must be between -180 and 180")

    radius_km = zone.get("radius_km")
    if zone_type == "radius":
        if radius_km is None or isinstance(radius_km, bool) or not isinstance(radius_km, (int, float)) or radius_km <= 0:
            raise ValidationError("radiusKm must be greater than 0 for radius zones")
    elif radius_km is not None:
        if isinstance(radius_km, bool) or not isinstance(radius_km, (int, float)) or radius_km <= 0:
            raise ValidationError("radiusKm must be greater than 0")

    _require_non_negative(zone, "delivery_cost")
    _require_non_negative(zone, "minimum_order")
    _require_non_negative(zone, "estimated_time")
    _require_non_negative(zone, "minimum_for_free_delivery", required=False)

    status = zone.get("status")
    if status is not None and status not in ZONE_STATUSES:
        raise ValidationError("status must be '0' or '1'")


def serialize_zone(zone: DeliveryZone) -> dict[str, Any]:
    return {
        "id": zone.id,
        "zoneName": zone.zone_name,
        "deliveryCost": zone.delivery_cost,
        "minimumOrder": zone.minimum_order,
        "estimatedTime": zone.estimated_time,
        "allowsFreeDelivery": bool(zone.allows_free_delivery),
        "minimumForFreeDelivery": zone.minimum_for_free_delivery,
        "type": zone.zone_type,
        "coordinates": coordinates_to_public(zone.coordinates),
        "radiusKm": zone.radius_km,
        "subDomain": zone.sub_domain,
        "localId": zone.local_id,
        "status": zone.status,
        "isActive": bool(zone.is_active),
        "createdAt": zone.created_at.isoformat() if zone.created_at else None,
        "updatedAt": zone.updated_at.isoformat() if zone.updated_at else None,
    }


def list_zones(db: Session, sub_domain: str, local_id: str) -> list[DeliveryZone]:
    return (
        db.query(DeliveryZone)
        .filter(
            DeliveryZone.sub_domain == normalize_sub_domain(sub_domain),
            DeliveryZone.local_id == local_id,
            DeliveryZone.is_active.is_(True),
        )
        .order_by(DeliveryZone.zone_name.asc(), DeliveryZone.id.asc())
        .all()
    )


def get_zone(db: Session, zone_id: int, sub_domain: str, local_id: str) -> DeliveryZone:
    zone = (
        db.query(DeliveryZone)
        .filter(
            DeliveryZone.id == zone_id,
            DeliveryZone.sub_domain == normalize_sub_domain(sub_domain),
            DeliveryZone.local_id == local_id,
            DeliveryZone.is_active.is_(True),
        )
        .first()
    )
    if not zone:
        raise NotFoundError("Delivery zone not found")
    return zone


def create_zone(db: Session, sub_domain: str, local_id: str, data: Mapping[str, Any]) -> DeliveryZone:
    normalized_sub_domain = normalize_sub_domain(sub_domain)
    if not normalized_sub_domain or not local_id:
        raise ValidationError("subDomain and localId are required")

    values = {field: data.get(field) for field in _UPDATABLE_FIELDS}
    if values["status"] is None:
        values["status"] = "1"
    validate_zone(values)

    zone = DeliveryZone(
        zone_name=str(values["zone_name"]).strip(),
        delivery_cost=values["delivery_cost"],
        minimum_order=values["minimum_order"],
        estimated_time=int(values["estimated_time"]),
        allows_free_delivery=bool(values["allows_free_delivery"]),
        minimum_for_free_delivery=values["minimum_for_free_delivery"],
        zone_type=values["zone_type"],
        coordinates=coordinates_to_storage(values["coordinates"]),
        radius_km=values["radius_km"],
        status=values["status"],
        sub_domain=normalized_sub_domain,
        local_id=local_id,
        is_active=True,
    )
    db.add(zone)
    db.commit()
    db.refresh(zone)
    logger.info(
        "delivery zone created id=%s type=%s points=%s",
        zone.id,
        zone.zone_type,
        len(zone.coordinates or []),
    )
    return zone


def update_zone(
    db: Session,
    zone_id: int,
    sub_domain: str,
    local_id: str,
    changes: Mapping[str, Any],
) -> DeliveryZone:
    zone = get_zone(db, zone_id, sub_domain, local_id)

    merged = {field: getattr(zone, field) for field in _UPDATABLE_FIELDS}
    for field in _UPDATABLE_FIELDS:
        if field in changes and changes[field] is not None:
            merged[field] = changes[field]
    if merged["zone_type"] == "polygon":
        # polígono não tem raio; um PATCH vindo de zona por raio limpa o valor
        merged["radius_km"] = None
    validate_zone(merged)

    zone.zone_name = str(merged["zone_name"]).strip()
    zone.delivery_cost = merged["delivery_cost"]
    zone.minimum_order = merged["minimum_order"]
    zone.estimated_time = int(merged["estimated_time"])
    zone.allows_free_delivery = bool(merged["allows_free_delivery"])
    zone.minimum_for_free_delivery = merged["minimum_for_free_delivery"]
    zone.zone_type = merged["zone_type"]
    # Pontos já armazenados passam intactos (to_storage_format é idempotente)
    zone.coordinates = coordinates_to_storage(merged["coordinates"])
    zone.radius_km = merged["radius_km"]
    zone.status = merged["status"]

    db.commit()
    db.refresh(zone)
    return zone


def deactivate_zone(db: Session, zone_id: int, sub_domain: str, local_id: str) -> DeliveryZone:
    zone = get_zone(db, zone_id, sub_domain, local_id)
    zone.is_active = False
    db.commit()
    db.refresh(zone)
    logger.info("delivery zone deactivated id=%s", zone.id)
    return zone
