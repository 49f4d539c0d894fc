from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from restaurant_ops.core.request_context import set_request_context
from restaurant_ops.models.business import Business
from restaurant_ops.models.chat_message import ChatMessage
from restaurant_ops.models.whatsapp_chat import LAST_MESSAGE_MAX_LENGTH, WhatsAppChat
from restaurant_ops.models.whatsapp_customer import WhatsAppCustomer
from restaurant_ops.models.whatsapp_template_status import WhatsAppTemplateStatus
from restaurant_ops.whatsapp.business_resolver import extract_business
from restaurant_ops.whatsapp.events import (
    InboundMessage,
    MessagesChange,
    MessagesValue,
    StatusUpdate,
    TemplateStatusChange,
    TemplateStatusValue,
    decode_change,
    decode_message,
)

logger = logging.getLogger(__name__)

CREATED = "created"
DUPLICATE = "duplicate"
WHATSAPP_OBJECT = "whatsapp_business_account"


@dataclass
class EntryResult:
    entry_id: str | None = None
    sub_domain: str | None = None
    messages: int = 0
    duplicates: int = 0
    statuses: int = 0
    templates: int = 0
    skipped: int = 0
    failed: int = 0


@dataclass
class WebhookResult:
    entries: list[EntryResult] = field(default_factory=list)
    unresolved: int = 0

    @property
    def failed(self) -> int:
        return sum(entry.failed for entry in self.entries)


def build_preview(content: dict[str, Any]) -> str:
    location = content.get("location") or {}
    contact = content.get("contact")
    interactive = content.get("interactive") or {}
    preview = (
        content.get("text")
        or location.get("name")
        or (f"Contact: {contact.get('name') or ''}" if contact else "")
        or interactive.get("body")
        or "Media message"
    )
    return preview[:LAST_MESSAGE_MAX_LENGTH]


def get_or_create_customer(db: Session, sub_domain: str, phone: str, name: str | None) -> WhatsAppCustomer:
    query = db.query(WhatsAppCustomer).filter(
        WhatsAppCustomer.phone == phone,
        WhatsAppCustomer.sub_domain == sub_domain,
    )
    customer = query.first()
    if customer:
        return customer

    customer = WhatsAppCustomer(phone=phone, sub_domain=sub_domain, name=name, interaction_count=0)
    db.add(customer)
    try:
        db.commit()
    except IntegrityError:
        # outra entrega criou o mesmo cliente entre o SELECT e o INSERT
        db.rollback()
        customer = query.one()
    else:
        logger.info("whatsapp customer created id=%s", customer.id)
    return customer


def get_or_create_chat(db: Session, sub_domain: str, phone: str, name: str | None) -> WhatsAppChat:
    query = db.query(WhatsAppChat).filter(
        WhatsAppChat.customer_phone == phone,
        WhatsAppChat.sub_domain == sub_domain,
    )
    chat = query.first()
    if chat:
        return chat

    chat = WhatsAppChat(customer_phone=phone, sub_domain=sub_domain, customer_name=name, is_active=True, message_count=0)
    db.add(chat)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        chat = query.one()
    return chat


def _is_known_inbound(db: Session, sub_domain: str, wa_message_id: str) -> bool:
    return (
        db.query(ChatMessage.id)
        .filter(ChatMessage.wa_message_id == wa_message_id, ChatMessage.sub_domain == sub_domain)
        .first()
        is not None
    )


def process_incoming_message(
    db: Session,
    business: Business,
    raw_message: dict[str, Any],
    value: MessagesValue | None = None,
) -> str:
    message: InboundMessage = decode_message(raw_message)
    sub_domain = business.sub_domain
    extra = {"message_id": message.id, "event_type": message.type}

    if _is_known_inbound(db, sub_domain, message.id):
        logger.info("duplicate inbound message ignored", extra=extra)
        return DUPLICATE

    contact_name = value.contact_name(message.from_) if value else None
    sent_at = message.sent_at
    content = message.to_content()

    customer = get_or_create_customer(db, sub_domain, message.from_, contact_name)
    chat = get_or_create_chat(db, sub_domain, message.from_, contact_name)

    chat_message = ChatMessage(
        chat_id=chat.id,
        sub_domain=sub_domain,
        message_type=message.type,
        direction="inbound",
        content=content,
        status="delivered",
        timestamp=sent_at,
        wa_message_id=message.id,
        raw_payload={
            "message": raw_message,
            "metadata": value.metadata.model_dump() if value and value.metadata else {},
        },
    )
    db.add(chat_message)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        logger.info("duplicate inbound message ignored", extra=extra)
        return DUPLICATE

    chat_values: dict[str, Any] = {
        "last_message": build_preview(content),
        "last_message_time": sent_at,
        "message_count": WhatsAppChat.message_count + 1,
        "is_active": True,
    }
    customer_values: dict[str, Any] = {
        "last_interaction": sent_at,
        "interaction_count": WhatsAppCustomer.interaction_count + 1,
    }
    if contact_name:
        chat_values["customer_name"] = contact_name
        customer_values["name"] = contact_name

    db.query(WhatsAppChat).filter(WhatsAppChat.id == chat.id).update(chat_values, synchronize_session=False)
    db.query(WhatsAppCustomer).filter(WhatsAppCustomer.id == customer.id).update(
        customer_values, synchronize_session=False
    )
    db.commit()

    logger.info("inbound message saved chat_id=%s", chat.id, extra=extra)
    return CREATED


def _status_error(status: StatusUpdate) -> str | None:
    if not status.errors:
        return None
    first = status.errors[0]
    return str(first.get("title") or first.get("message") or first.get("code") or "unknown error")


def process_message_status(db: Session, business: Business, raw_status: dict[str, Any]) -> int:
    if not isinstance(raw_status, dict):
        raise ValueError(f"status must be an object, got {type(raw_status).__name__}")
    status = StatusUpdate.model_validate(raw_status)
    values: dict[str, Any] = {
        "status": status.mapped_status,
        "provider_status": status.status,
        "status_recipient_id": status.recipient_id,
        "status_updated_at": status.occurred_at,
    }
    error = _status_error(status)
    if error:
        values["error"] = error

    matched = (
        db.query(ChatMessage)
        .filter(
            ChatMessage.wa_message_id == status.id,
            ChatMessage.sub_domain == business.sub_domain,
            ChatMessage.direction == "outbound",
        )
        .update(values, synchronize_session=False)
    )
    db.commit()

    extra = {"message_id": status.id, "status": status.mapped_status, "matched": matched}
    if matched == 0:
        logger.warning("no outbound message found for status update", extra=extra)
    else:
        logger.info("message status updated", extra=extra)
    return matched


def process_template_status(db: Session, business: Business, value: TemplateStatusValue) -> WhatsAppTemplateStatus | None:
    if not value.message_template_id:
        logger.warning("template status update without template id", extra={"event_type": value.event})
        return None

    template_id = str(value.message_template_id)
    record = (
        db.query(WhatsAppTemplateStatus)
        .filter(
            WhatsAppTemplateStatus.sub_domain == business.sub_domain,
            WhatsAppTemplateStatus.template_id == template_id,
        )
        .first()
    )
    if record is None:
        record = WhatsAppTemplateStatus(sub_domain=business.sub_domain, template_id=template_id)
        db.add(record)

    record.template_name = value.message_template_name
    record.language = value.message_template_language
    record.event = value.event or "UNKNOWN"
    record.reason = value.reason
    db.commit()

    logger.info("template status processed template_id=%s", template_id, extra={"event_type": record.event})
    return record


def _run_isolated(db: Session, result: EntryResult, entry_id: str | None, description: str, func, *args) -> Any:
    try:
        return func(db, *args)
    except Exception:
        # um evento com falha não derruba os demais
        logger.exception("failed to process %s", description, extra={"entry_id": entry_id})
        db.rollback()
        result.failed += 1
        return None


def process_entry(db: Session, business: Business, entry: dict[str, Any]) -> EntryResult:
    entry_id = entry.get("id")
    result = EntryResult(entry_id=entry_id, sub_domain=business.sub_domain)

    for raw_change in entry.get("changes") or []:
        if not isinstance(raw_change, dict):
            result.skipped += 1
            continue
        try:
            change = decode_change(raw_change)
        except PydanticValidationError:
            logger.exception("invalid webhook change", extra={"entry_id": entry_id, "field": raw_change.get("field")})
            result.failed += 1
            continue

        if isinstance(change, MessagesChange):
            for raw_message in change.value.messages:
                outcome = _run_isolated(
                    db, result, entry_id, "inbound message", process_incoming_message, business, raw_message, change.value
                )
                if outcome == CREATED:
                    result.messages += 1
                elif outcome == DUPLICATE:
                    result.duplicates += 1
            for raw_status in change.value.statuses:
                outcome = _run_isolated(db, result, entry_id, "message status", process_message_status, business, raw_status)
                if outcome is not None:
                    result.statuses += 1
        elif isinstance(change, TemplateStatusChange):
            outcome = _run_isolated(
                db, result, entry_id, "template status", process_template_status, business, change.value
            )
            if outcome is not None:
                result.templates += 1
        else:
            logger.info("unhandled webhook field skipped", extra={"entry_id": entry_id, "field": change.field})
            result.skipped += 1

    return result


def process_webhook_payload(db: Session, payload: dict[str, Any]) -> WebhookResult:
    """Route every entry of a verified delivery to its business, in order."""
    outcome = WebhookResult()
    if isinstance(payload, dict) and payload.get("object") != WHATSAPP_OBJECT:
        logger.warning("unknown webhook object type", extra={"webhook_object": payload.get("object")})
        return outcome
    entries = payload.get("entry") if isinstance(payload, dict) else None
    if not isinstance(entries, list):
        logger.warning("webhook payload without entries")
        return outcome

    for entry in entries:
        if not isinstance(entry, dict):
            outcome.unresolved += 1
            continue
        resolved = extract_business(db, entry)
        if resolved is None:
            outcome.unresolved += 1
            continue

        set_request_context(sub_domain=resolved.business.sub_domain)
        try:
            outcome.entries.append(process_entry(db, resolved.business, entry))
        except Exception:
            logger.exception("failed to process webhook entry", extra={"entry_id": entry.get("id")})
            db.rollback()
            outcome.entries.append(EntryResult(entry_id=entry.get("id"), sub_domain=resolved.business.sub_domain, failed=1))
    return outcome
