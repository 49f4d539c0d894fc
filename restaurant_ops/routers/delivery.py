from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from restaurant_ops.core.database import get_db
from restaurant_ops.core.errors import ValidationError, envelope
from restaurant_ops.schemas.delivery_company import DeliveryCompanyCreate, DeliveryCompanyUpdate
from restaurant_ops.schemas.delivery_zone import (
    ComplexCoverageZoneCreate,
    DeliveryZoneCreate,
    DeliveryZoneUpdate,
    SimpleCoverageZoneCreate,
)
from restaurant_ops.schemas.driver import (
    DriverAssignment,
    DriverCreate,
    DriverLocationUpdate,
    DriverStatusUpdate,
    DriverUpdate,
)
from restaurant_ops.services import delivery_companies, delivery_zones, drivers
from restaurant_ops.services.businesses import list_locations

router = APIRouter(prefix="/api/v1/delivery", tags=["delivery"])


def _created(message: str, data) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=envelope(message, data))


# ---- zonas de entrega ----------------------------------------------------


@router.get("/zones/{sub_domain}/{local_id}")
def list_delivery_zones(sub_domain: str, local_id: str, db: Session = Depends(get_db)):
    zones = delivery_zones.list_zones(db, sub_domain, local_id)
    return envelope("Success", [delivery_zones.serialize_zone(zone) for zone in zones])


@router.post("/zones/{sub_domain}/{local_id}")
def create_delivery_zone(
    sub_domain: str,
    local_id: str,
    payload: DeliveryZoneCreate,
    db: Session = Depends(get_db),
):
    zone = delivery_zones.create_zone(db, sub_domain, local_id, payload.model_dump())
    return _created("Delivery zone created successfully", delivery_zones.serialize_zone(zone))


@router.get("/zones/{zone_id}/{sub_domain}/{local_id}")
def get_delivery_zone(zone_id: int, sub_domain: str, local_id: str, db: Session = Depends(get_db)):
    zone = delivery_zones.get_zone(db, zone_id, sub_domain, local_id)
    return envelope("Success", delivery_zones.serialize_zone(zone))


@router.patch("/zones/{zone_id}/{sub_domain}/{local_id}")
def update_delivery_zone(
    zone_id: int,
    sub_domain: str,
    local_id: str,
    payload: DeliveryZoneUpdate,
    db: Session = Depends(get_db),
):
    zone = delivery_zones.update_zone(db, zone_id, sub_domain, local_id, payload.model_dump(exclude_unset=True))
    return envelope("Delivery zone updated successfully", delivery_zones.serialize_zone(zone))


@router.delete("/zones/{zone_id}/{sub_domain}/{local_id}")
def delete_delivery_zone(zone_id: int, sub_domain: str, local_id: str, db: Session = Depends(get_db)):
    delivery_zones.deactivate_zone(db, zone_id, sub_domain, local_id)
    return envelope("Delivery zone deleted successfully")


@router.post("/coverage-zone")
def create_complex_coverage_zone(payload: ComplexCoverageZoneCreate, db: Session = Depends(get_db)):
    if payload.type != "complex":
        raise ValidationError("Type must be 'complex'")
    if not payload.coordinates or len(payload.coordinates) < 3:
        raise ValidationError("Coordinates array with at least 3 points is required for complex zones")
    if payload.delivery_fee is None:
        raise ValidationError("Delivery fee is required")
    if not payload.sub_domain or not payload.local_id:
        raise ValidationError("subDomain and localId are required")

    zone = delivery_zones.create_zone(
        db,
        payload.sub_domain,
        payload.local_id,
        {
            "zone_name": payload.zone_name or "Coverage Zone",
            "delivery_cost": payload.delivery_fee,
            "minimum_order": payload.minimum_order or 0,
            "estimated_time": payload.estimated_time or 30,
            "allows_free_delivery": False,
            "zone_type": "polygon",
            "coordinates": payload.coordinates,
        },
    )
    return _created("Complex coverage zone created successfully", delivery_zones.serialize_zone(zone))


@router.post("/coverage-zone/simple")
def create_simple_coverage_zone(payload: SimpleCoverageZoneCreate, db: Session = Depends(get_db)):
    if payload.type != "simple":
        raise ValidationError("Type must be 'simple'")
    if not payload.radius:
        raise ValidationError("Radius (number) is required for simple zones")
    if not isinstance(payload.center, dict) or payload.center.get("latitude") is None or payload.center.get("longitude") is None:
        raise ValidationError("Center point with latitude and longitude is required")
    if payload.delivery_fee is None:
        raise ValidationError("Delivery fee is required")
    if not payload.sub_domain or not payload.local_id:
        raise ValidationError("subDomain and localId are required")

    zone = delivery_zones.create_zone(
        db,
        payload.sub_domain,
        payload.local_id,
        {
            "zone_name": payload.zone_name or "Simple Coverage Zone",
            "delivery_cost": payload.delivery_fee,
            "minimum_order": payload.minimum_order or 0,
            "estimated_time": payload.estimated_time or 30,
            "allows_free_delivery": False,
            "zone_type": "simple",
            "coordinates": [payload.center],
            "radius_km": payload.radius,
        },
    )
    return _created("Simple coverage zone created successfully", delivery_zones.serialize_zone(zone))


# ---- entregadores --------------------------------------------------------


@router.get("/drivers/available/{sub_domain}/{local_id}")
def list_available_drivers(sub_domain: str, local_id: str, db: Session = Depends(get_db)):
    items = drivers.list_available_drivers(db, sub_domain, local_id)
    return envelope("Success", [drivers.serialize_driver(driver) for driver in items])


@router.get("/drivers/{sub_domain}/{local_id}")
def list_drivers(sub_domain: str, local_id: str, db: Session = Depends(get_db)):
    items = drivers.list_drivers(db, sub_domain, local_id)
    return envelope("Success", [drivers.serialize_driver(driver) for driver in items])


@router.post("/drivers/{sub_domain}/{local_id}")
def create_driver(sub_domain: str, local_id: str, payload: DriverCreate, db: Session = Depends(get_db)):
    driver = drivers.create_driver(db, sub_domain, local_id, payload.model_dump())
    return _created("Driver created successfully", drivers.serialize_driver(driver))


@router.get("/drivers/{driver_id}/{sub_domain}/{local_id}")
def get_driver(driver_id: int, sub_domain: str, local_id: str, db: Session = Depends(get_db)):
    driver = drivers.get_driver(db, driver_id, sub_domain, local_id)
    return envelope("Success", drivers.serialize_driver(driver))


@router.patch("/drivers/{driver_id}/{sub_domain}/{local_id}")
def update_driver(
    driver_id: int,
    sub_domain: str,
    local_id: str,
    payload: DriverUpdate,
    db: Session = Depends(get_db),
):
    driver = drivers.update_driver(db, driver_id, sub_domain, local_id, payload.model_dump(exclude_unset=True))
    return envelope("Driver updated successfully", drivers.serialize_driver(driver))


@router.delete("/drivers/{driver_id}/{sub_domain}/{local_id}")
def delete_driver(driver_id: int, sub_domain: str, local_id: str, db: Session = Depends(get_db)):
    drivers.deactivate_driver(db, driver_id, sub_domain, local_id)
    return envelope("Driver deleted successfully")


@router.patch("/drivers/{driver_id}/location/{sub_domain}/{local_id}")
def update_driver_location(
    driver_id: int,
    sub_domain: str,
    local_id: str,
    payload: DriverLocationUpdate,
    db: Session = Depends(get_db),
):
    driver = drivers.update_location(db, driver_id, sub_domain, local_id, payload.latitude, payload.longitude)
    return envelope("Driver location updated successfully", drivers.serialize_driver(driver))


@router.patch("/drivers/{driver_id}/status/{sub_domain}/{local_id}")
def update_driver_status(
    driver_id: int,
    sub_domain: str,
    local_id: str,
    payload: DriverStatusUpdate,
    db: Session = Depends(get_db),
):
    driver = drivers.update_status(db, driver_id, sub_domain, local_id, payload.status)
    return envelope("Driver status updated successfully", drivers.serialize_driver(driver))


@router.post("/drivers/{driver_id}/assign/{sub_domain}/{local_id}")
def assign_driver(
    driver_id: int,
    sub_domain: str,
    local_id: str,
    payload: DriverAssignment | None = None,
    db: Session = Depends(get_db),
):
    order_id = payload.order_id if payload else None
    driver = drivers.assign_driver(db, driver_id, sub_domain, local_id, order_id)
    return envelope("Driver assigned successfully", drivers.serialize_driver(driver))


@router.post("/drivers/{driver_id}/complete/{sub_domain}/{local_id}")
def complete_delivery(
    driver_id: int,
    sub_domain: str,
    local_id: str,
    payload: DriverAssignment | None = None,
    db: Session = Depends(get_db),
):
    order_id = payload.order_id if payload else None
    driver = drivers.complete_delivery(db, driver_id, sub_domain, local_id, order_id)
    return envelope("Delivery completed successfully", drivers.serialize_driver(driver))


# ---- empresas de entrega -------------------------------------------------


@router.get("/companies/{sub_domain}/{local_id}")
def list_delivery_companies(
    sub_domain: str,
    local_id: str,
    active_only: bool = Query(True, alias="activeOnly"),
    db: Session = Depends(get_db),
):
    items = delivery_companies.list_companies(db, sub_domain, local_id, active_only=active_only)
    return envelope("Success", [delivery_companies.serialize_company(company) for company in items])


@router.post("/companies/{sub_domain}/{local_id}")
def create_delivery_company(
    sub_domain: str,
    local_id: str,
    payload: DeliveryCompanyCreate,
    db: Session = Depends(get_db),
):
    company = delivery_companies.create_company(db, sub_domain, local_id, payload.model_dump())
    return _created("Company created successfully", delivery_companies.serialize_company(company))


@router.patch("/companies/{company_id}/{sub_domain}/{local_id}")
def update_delivery_company(
    company_id: int,
    sub_domain: str,
    local_id: str,
    payload: DeliveryCompanyUpdate,
    db: Session = Depends(get_db),
):
    company = delivery_companies.update_company(
        db, company_id, sub_domain, local_id, payload.model_dump(exclude_unset=True)
    )
    return envelope("Company updated successfully", delivery_companies.serialize_company(company))


@router.delete("/companies/{company_id}/{sub_domain}/{local_id}")
def delete_delivery_company(company_id: int, sub_domain: str, local_id: str, db: Session = Depends(get_db)):
    delivery_companies.deactivate_company(db, company_id, sub_domain, local_id)
    return envelope("Company deleted successfully")


# ---- visão agregada ------------------------------------------------------


@router.get("/{sub_domain}/{local_id}")
def get_delivery_overview(sub_domain: str, local_id: str, db: Session = Depends(get_db)):
    zones = delivery_zones.list_zones(db, sub_domain, local_id)
    driver_list = drivers.list_drivers(db, sub_domain, local_id)
    companies = delivery_companies.list_companies(db, sub_domain, local_id)
    locations = list_locations(db, sub_domain, local_id)
    return envelope(
        "Success",
        {
            "deliveryZones": [delivery_zones.serialize_zone(zone) for zone in zones],
            "drivers": [drivers.serialize_driver(driver) for driver in driver_list],
            "companies": [delivery_companies.serialize_company(company) for company in companies],
            "businessLocations": [
                {"localId": location.local_id, "name": location.name, "isActive": bool(location.is_active)}
                for location in locations
            ],
        },
    )
