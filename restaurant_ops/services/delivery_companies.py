from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from restaurant_ops.core.errors import NotFoundError, ValidationError
from restaurant_ops.models.delivery_company import DeliveryCompany
from restaurant_ops.utils.slug import normalize_sub_domain

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("name", "tax_id")
_UPDATABLE_FIELDS = ("name", "tax_id", "address", "phone", "email", "contact_person")
_MAX_LENGTHS = {"name": 200, "tax_id": 50, "address": 500, "contact_person": 200}

PHONE_PATTERN = re.compile(r"^\+?[0-9\s\-()]{7,15}$")
EMAIL_PATTERN = re.compile(r"^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,3})+$")


def _clean(values: Mapping[str, Any]) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for field in _UPDATABLE_FIELDS:
        value = values.get(field)
        if value is None:
            continue
        value = str(value).strip()
        if field == "tax_id":
            value = value.upper()
        elif field == "email":
            value = value.lower()
        cleaned[field] = value

    for field, limit in _MAX_LENGTHS.items():
        if len(cleaned.get(field) or "") > limit:
            raise ValidationError(f"{field} must be at most {limit} characters")
    if cleaned.get("phone") and not PHONE_PATTERN.match(cleaned["phone"]):
        raise ValidationError("Please enter a valid phone number")
    if cleaned.get("email") and not EMAIL_PATTERN.match(cleaned["email"]):
        raise ValidationError("Please enter a valid email")
    return cleaned


def serialize_company(company: DeliveryCompany) -> dict[str, Any]:
    return {
        "id": company.id,
        "name": company.name,
        "taxId": company.tax_id,
        "address": company.address,
        "phone": company.phone,
        "email": company.email,
        "contactPerson": company.contact_person,
        "subDomain": company.sub_domain,
        "localId": company.local_id,
        "isActive": bool(company.is_active),
    }


def list_companies(db: Session, sub_domain: str, local_id: str, active_only: bool = True) -> list[DeliveryCompany]:
    query = db.query(DeliveryCompany).filter(
        DeliveryCompany.sub_domain == normalize_sub_domain(sub_domain),
        DeliveryCompany.local_id == local_id,
    )
    if active_only:
        query = query.filter(DeliveryCompany.is_active.is_(True))
    return query.order_by(DeliveryCompany.name.asc(), DeliveryCompany.id.asc()).all()


def get_company(db: Session, company_id: int, sub_domain: str, local_id: str) -> DeliveryCompany:
    # Inativas também: PATCH e DELETE alcançam empresas já desativadas
    company = (
        db.query(DeliveryCompany)
        .filter(
            DeliveryCompany.id == company_id,
            DeliveryCompany.sub_domain == normalize_sub_domain(sub_domain),
            DeliveryCompany.local_id == local_id,
        )
        .first()
    )
    if not company:
        raise NotFoundError("Company not found")
    return company


def _commit_unique_tax_id(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError("A company with this taxId already exists") from exc


def create_company(db: Session, sub_domain: str, local_id: str, data: Mapping[str, Any]) -> DeliveryCompany:
    normalized_sub_domain = normalize_sub_domain(sub_domain)
    if not normalized_sub_domain or not local_id:
        raise ValidationError("subDomain and localId are required")
    values = _clean(data)
    for field in _REQUIRED_FIELDS:
        if not values.get(field):
            raise ValidationError(f"Missing required field: {field}")

    exists = (
        db.query(DeliveryCompany.id)
        .filter(DeliveryCompany.sub_domain == normalized_sub_domain, DeliveryCompany.tax_id == values["tax_id"])
        .first()
    )
    if exists:
        raise ValidationError("A company with this taxId already exists")

    company = DeliveryCompany(**values, sub_domain=normalized_sub_domain, local_id=local_id, is_active=True)
    db.add(company)
    _commit_unique_tax_id(db)
    db.refresh(company)
    logger.info("delivery company created id=%s", company.id)
    return company


def update_company(
    db: Session,
    company_id: int,
    sub_domain: str,
    local_id: str,
    changes: Mapping[str, Any],
) -> DeliveryCompany:
    company = get_company(db, company_id, sub_domain, local_id)
    values = _clean(changes)
    for field in _REQUIRED_FIELDS:
        if field in values and not values[field]:
            raise ValidationError(f"{field} cannot be empty")

    for field, value in values.items():
        setattr(company, field, value)
    _commit_unique_tax_id(db)
    db.refresh(company)
    return company


def deactivate_company(db: Session, company_id: int, sub_domain: str, local_id: str) -> DeliveryCompany:
    company = get_company(db, company_id, sub_domain, local_id)
    company.is_active = False
    db.commit()
    db.refresh(company)
    logger.info("delivery company deactivated id=%s", company.id)
    return company
