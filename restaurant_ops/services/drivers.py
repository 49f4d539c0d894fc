from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from restaurant_ops.core.errors import NotFoundError, ValidationError
from restaurant_ops.models.driver import DRIVER_STATUSES, VEHICLE_TYPES, Driver
from restaurant_ops.utils.slug import normalize_sub_domain

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("first_name", "last_name", "phone", "email")
_UPDATABLE_FIELDS = ("first_name", "last_name", "name", "phone", "email", "vehicle_type", "license_plate")
_AVAILABLE_STATUSES = {"active", "on_delivery"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _scoped_query(db: Session, sub_domain: str, local_id: str):
    return db.query(Driver).filter(
        Driver.sub_domain == normalize_sub_domain(sub_domain),
        Driver.local_id == local_id,
        Driver.is_active.is_(True),
    )


def serialize_driver(driver: Driver) -> dict[str, Any]:
    location = None
    if driver.current_latitude is not None and driver.current_longitude is not None:
        location = {
            "latitude": driver.current_latitude,
            "longitude": driver.current_longitude,
            "lastUpdate": driver.location_updated_at.isoformat() if driver.location_updated_at else None,
        }
    return {
        "id": driver.id,
        "firstName": driver.first_name,
        "lastName": driver.last_name,
        "name": driver.name,
        "phone": driver.phone,
        "email": driver.email,
        "vehicleType": driver.vehicle_type,
        "licensePlate": driver.license_plate,
        "status": driver.status,
        "available": bool(driver.available),
        "currentLocation": location,
        "currentOrders": driver.current_orders,
        "totalDeliveries": driver.total_deliveries,
        "successfulDeliveries": driver.successful_deliveries,
        "ratingAverage": driver.rating_average,
        "subDomain": driver.sub_domain,
        "localId": driver.local_id,
        "isActive": bool(driver.is_active),
    }


def list_drivers(db: Session, sub_domain: str, local_id: str) -> list[Driver]:
    return _scoped_query(db, sub_domain, local_id).order_by(Driver.name.asc(), Driver.id.asc()).all()


def list_available_drivers(db: Session, sub_domain: str, local_id: str) -> list[Driver]:
    return (
        _scoped_query(db, sub_domain, local_id)
        .filter(Driver.status == "active", Driver.available.is_(True))
        .order_by(Driver.rating_average.desc(), Driver.successful_deliveries.desc(), Driver.id.asc())
        .all()
    )


def get_driver(db: Session, driver_id: int, sub_domain: str, local_id: str) -> Driver:
    driver = _scoped_query(db, sub_domain, local_id).filter(Driver.id == driver_id).first()
    if not driver:
        raise NotFoundError("Driver not found")
    return driver


def _validate_vehicle_type(value: Any) -> None:
    if value is not None and value not in VEHICLE_TYPES:
        raise ValidationError(f"vehicleType must be one of: {', '.join(VEHICLE_TYPES)}")


def create_driver(db: Session, sub_domain: str, local_id: str, data: Mapping[str, Any]) -> Driver:
    normalized_sub_domain = normalize_sub_domain(sub_domain)
    if not normalized_sub_domain or not local_id:
        raise ValidationError("subDomain and localId are required")
    for field in _REQUIRED_FIELDS:
        if not data.get(field):
            raise ValidationError(f"Missing required field: {field}")
    _validate_vehicle_type(data.get("vehicle_type"))

    email = str(data["email"]).strip().lower()
    exists = (
        db.query(Driver.id)
        .filter(Driver.sub_domain == normalized_sub_domain, Driver.email == email)
        .first()
    )
    if exists:
        raise ValidationError("A driver with this email already exists")

    driver = Driver(
        first_name=data["first_name"],
        last_name=data["last_name"],
        name=data.get("name") or f"{data['first_name']} {data['last_name']}",
        phone=data["phone"],
        email=email,
        vehicle_type=data.get("vehicle_type") or "motorcycle",
        license_plate=data.get("license_plate"),
        status="active",
        available=True,
        current_orders=0,
        total_deliveries=0,
        successful_deliveries=0,
        rating_average=0.0,
        sub_domain=normalized_sub_domain,
        local_id=local_id,
        is_active=True,
    )
    db.add(driver)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError("A driver with this email already exists") from exc
    db.refresh(driver)
    logger.info("driver created id=%s", driver.id)
    return driver


def update_driver(
    db: Session,
    driver_id: int,
    sub_domain: str,
    local_id: str,
    changes: Mapping[str, Any],
) -> Driver:
    driver = get_driver(db, driver_id, sub_domain, local_id)
    _validate_vehicle_type(changes.get("vehicle_type"))

    for field in _UPDATABLE_FIELDS:
        value = changes.get(field)
        if value is None:
            continue
        if field == "email":
            value = str(value).strip().lower()
        setattr(driver, field, value)
    if ("first_name" in changes or "last_name" in changes) and not changes.get("name"):
        driver.name = f"{driver.first_name} {driver.last_name}"

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError("A driver with this email already exists") from exc
    db.refresh(driver)
    return driver


def deactivate_driver(db: Session, driver_id: int, sub_domain: str, local_id: str) -> Driver:
    driver = get_driver(db, driver_id, sub_domain, local_id)
    driver.is_active = False
    driver.available = False
    driver.status = "inactive"
    db.commit()
    db.refresh(driver)
    logger.info("driver deactivated id=%s", driver.id)
    return driver


def validate_location(latitude: Any, longitude: Any) -> tuple[float, float]:
    if latitude is None or longitude is None:
        raise ValidationError("Latitude and longitude are required")
    try:
        if isinstance(latitude, bool) or isinstance(longitude, bool):
            raise ValueError
        lat = float(latitude)
        lng = float(longitude)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Latitude and longitude must be valid numbers") from exc
    if lat != lat or lng != lng:
        raise ValidationError("Latitude and longitude must be valid numbers")
    if not -90 <= lat <= 90:
        raise ValidationError("Latitude must be between -90 and 90 degrees")
    if not -180 <= lng <= 180:
        raise ValidationError("Longitude must be between -180 and 180 degrees")
    return lat, lng


def update_location(
    db: Session,
    driver_id: int,
    sub_domain: str,
    local_id: str,
    latitude: Any,
    longitude: Any,
) -> Driver:
    lat, lng = validate_location(latitude, longitude)
    driver = get_driver(db, driver_id, sub_domain, local_id)
    driver.current_latitude = lat
    driver.current_longitude = lng
    driver.location_updated_at = _utcnow()
    db.commit()
    db.refresh(driver)
    return driver


def update_status(db: Session, driver_id: int, sub_domain: str, local_id: str, status: str | None) -> Driver:
    if not status:
        raise ValidationError("Status is required")
    if status not in DRIVER_STATUSES:
        raise ValidationError(f"Status must be one of: {', '.join(DRIVER_STATUSES)}")

    driver = get_driver(db, driver_id, sub_domain, local_id)
    driver.status = status
    driver.available = status in _AVAILABLE_STATUSES
    db.commit()
    db.refresh(driver)
    logger.info("driver status updated id=%s", driver.id, extra={"status": status})
    return driver


def _apply_counter_update(db: Session, driver: Driver, **values: Any) -> Driver:
    db.query(Driver).filter(Driver.id == driver.id).update(values, synchronize_session=False)
    db.commit()
    db.refresh(driver)
    return driver


def assign_driver(db: Session, driver_id: int, sub_domain: str, local_id: str, order_id: str | None = None) -> Driver:
    driver = get_driver(db, driver_id, sub_domain, local_id)
    driver = _apply_counter_update(
        db,
        driver,
        status="on_delivery",
        available=False,
        current_orders=Driver.current_orders + 1,
    )
    logger.info("driver assigned id=%s order=%s", driver.id, order_id)
    return driver


def complete_delivery(
    db: Session,
    driver_id: int,
    sub_domain: str,
    local_id: str,
    order_id: str | None = None,
) -> Driver:
    driver = get_driver(db, driver_id, sub_domain, local_id)
    driver = _apply_counter_update(
        db,
        driver,
        status="active",
        available=True,
        current_orders=case((Driver.current_orders > 0, Driver.current_orders - 1), else_=0),
        total_deliveries=Driver.total_deliveries + 1,
        successful_deliveries=Driver.successful_deliveries + 1,
    )
    logger.info("driver completed delivery id=%s order=%s", driver.id, order_id)
    return driver
