from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from restaurant_ops.core.errors import NotFoundError, ValidationError
from restaurant_ops.models.business import Business, BusinessLocation
from restaurant_ops.utils.slug import normalize_sub_domain

logger = logging.getLogger(__name__)


def serialize_business(business: Business) -> dict[str, Any]:
    # Nunca expor o token de acesso, nem cifrado
    return {
        "id": business.id,
        "subDomain": business.sub_domain,
        "name": business.name,
        "isActive": bool(business.is_active),
        "whatsapp": {
            "enabled": bool(business.whatsapp_enabled),
            "wabaId": business.waba_id,
            "phoneNumberIds": business.whatsapp_phone_number_ids,
            "hasAccessToken": bool(business.whatsapp_access_token),
            "tokenExpiresAt": (
                business.whatsapp_token_expires_at.isoformat() if business.whatsapp_token_expires_at else None
            ),
        },
        "locations": [
            {"localId": location.local_id, "name": location.name, "isActive": bool(location.is_active)}
            for location in business.locations
        ],
    }


def get_business(db: Session, sub_domain: str) -> Business:
    business = db.query(Business).filter(Business.sub_domain == normalize_sub_domain(sub_domain)).first()
    if not business:
        raise NotFoundError("Business not found")
    return business


def create_business(
    db: Session,
    sub_domain: str,
    name: str,
    locations: Iterable[Mapping[str, Any]] = (),
) -> Business:
    normalized = normalize_sub_domain(sub_domain)
    if not normalized:
        raise ValidationError("subDomain is required")
    if db.query(Business.id).filter(Business.sub_domain == normalized).first():
        raise ValidationError("subDomain already in use")

    business = Business(sub_domain=normalized, name=(name or "").strip(), is_active=True, whatsapp_enabled=False)
    seen_local_ids: set[str] = set()
    for location in locations:
        local_id = str(location.get("local_id") or "").strip()
        if not local_id:
            raise ValidationError("localId is required for every location")
        if local_id in seen_local_ids:
            raise ValidationError(f"Duplicated localId: {local_id}")
        seen_local_ids.add(local_id)
        business.locations.append(
            BusinessLocation(
                sub_domain=normalized,
                local_id=local_id,
                name=location.get("name") or "",
                is_active=True,
            )
        )

    db.add(business)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError("subDomain already in use") from exc
    db.refresh(business)
    logger.info("business created id=%s", business.id, extra={"sub_domain": normalized})
    return business


def list_locations(db: Session, sub_domain: str, local_id: str | None = None) -> list[BusinessLocation]:
    query = db.query(BusinessLocation).filter(
        BusinessLocation.sub_domain == normalize_sub_domain(sub_domain),
        BusinessLocation.is_active.is_(True),
    )
    if local_id:
        query = query.filter(BusinessLocation.local_id == local_id)
    return query.order_by(BusinessLocation.id.asc()).all()
