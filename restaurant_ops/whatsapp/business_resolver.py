from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from restaurant_ops.models.business import Business, BusinessPhoneNumber

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedBusiness:
    business: Business
    phone_number_id: str | None


@dataclass(frozen=True)
class EntryIdentity:
    phone_number_id: str | None
    waba_id: str | None


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def extract_identity(entry: dict[str, Any]) -> EntryIdentity:
    """Pull the phone-number ID and WABA ID out of a webhook entry.

    ``changes[0].value.metadata`` wins. ``entry.id`` only fills what metadata
    left out: ``"<waba>-<phone>"`` is split on the first hyphen, anything
    else is taken as the WABA ID.
    """
    phone_number_id = None
    waba_id = None

    changes = entry.get("changes") or []
    if isinstance(changes, list) and changes and isinstance(changes[0], dict):
        value = changes[0].get("value") or {}
        metadata = value.get("metadata") if isinstance(value, dict) else None
        if isinstance(metadata, dict):
            phone_number_id = _clean(metadata.get("phone_number_id"))
            waba_id = _clean(metadata.get("waba_id"))

    entry_id = _clean(entry.get("id"))
    if entry_id:
        if "-" in entry_id:
            id_waba, _, id_phone = entry_id.partition("-")
            waba_id = waba_id or _clean(id_waba)
            phone_number_id = phone_number_id or _clean(id_phone)
        else:
            waba_id = waba_id or entry_id

    return EntryIdentity(phone_number_id=phone_number_id, waba_id=waba_id)


class BusinessResolver:
    """Map a webhook entry to the tenant that owns the phone number or WABA."""

    @staticmethod
    def by_phone_number_id(db: Session, phone_number_id: str) -> Business | None:
        return (
            db.query(Business)
            .join(BusinessPhoneNumber, BusinessPhoneNumber.business_id == Business.id)
            .filter(BusinessPhoneNumber.phone_number_id == phone_number_id)
            .order_by(Business.id.asc())
            .first()
        )

    @staticmethod
    def by_waba_id(db: Session, waba_id: str) -> Business | None:
        return db.query(Business).filter(Business.waba_id == waba_id).order_by(Business.id.asc()).first()

    @classmethod
    def resolve(cls, db: Session, entry: dict[str, Any]) -> ResolvedBusiness | None:
        identity = extract_identity(entry)
        if not identity.phone_number_id and not identity.waba_id:
            logger.warning("webhook entry without business identifiers", extra={"entry_id": entry.get("id")})
            return None

        try:
            if identity.phone_number_id:
                business = cls.by_phone_number_id(db, identity.phone_number_id)
                if business:
                    return ResolvedBusiness(business=business, phone_number_id=identity.phone_number_id)

            if identity.waba_id:
                business = cls.by_waba_id(db, identity.waba_id)
                if business:
                    return ResolvedBusiness(business=business, phone_number_id=identity.phone_number_id)
        except SQLAlchemyError:
            logger.exception("business lookup failed", extra={"entry_id": entry.get("id")})
            db.rollback()
            return None

        logger.warning(
            "no business found for webhook entry",
            extra={
                "entry_id": entry.get("id"),
                "phone_number_id": identity.phone_number_id,
                "waba_id": identity.waba_id,
            },
        )
        return None


def extract_business(db: Session, entry: dict[str, Any]) -> ResolvedBusiness | None:
    return BusinessResolver.resolve(db, entry)
