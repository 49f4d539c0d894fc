from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
from sqlalchemy.orm import Session

from restaurant_ops.core.errors import AppError, AuthenticationError, NotFoundError, TransientError, ValidationError
from restaurant_ops.models.business import Business, BusinessPhoneNumber
from restaurant_ops.models.chat_message import ChatMessage
from restaurant_ops.models.whatsapp_chat import WhatsAppChat
from restaurant_ops.services.businesses import get_business
from restaurant_ops.services.token_crypto import decrypt_token, encrypt_token
from restaurant_ops.whatsapp.cloud_client import MetaCloudClient, MetaCredentials
from restaurant_ops.whatsapp.dispatcher import build_preview, get_or_create_chat, get_or_create_customer
from restaurant_ops.whatsapp.redaction import sanitize_payload

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime) -> datetime:
    # SQLite devolve datetimes sem tz
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class WhatsAppService:
    def __init__(self, client: MetaCloudClient | None = None) -> None:
        self._client = client or MetaCloudClient()

    def link_account(
        self,
        db: Session,
        sub_domain: str,
        *,
        waba_id: str | None,
        phone_number_id: str | None,
        access_token: str | None,
        expires_in: int | None = None,
    ) -> Business:
        if not waba_id:
            raise ValidationError("WABA ID is required")
        if not phone_number_id:
            raise ValidationError("Phone number ID is required")
        if not access_token:
            raise ValidationError("Access token is required")
        if expires_in is not None and expires_in <= 0:
            raise ValidationError("expiresIn must be greater than 0")

        business = get_business(db, sub_domain)
        expires_at = _utcnow() + timedelta(seconds=expires_in) if expires_in else None

        # Um único UPDATE por business
        db.query(Business).filter(Business.id == business.id).update(
            {
                "waba_id": waba_id.strip(),
                "whatsapp_access_token": encrypt_token(access_token),
                "whatsapp_token_expires_at": expires_at,
                "whatsapp_enabled": True,
            },
            synchronize_session=False,
        )

        phone_number_id = phone_number_id.strip()
        known = (
            db.query(BusinessPhoneNumber.id)
            .filter(
                BusinessPhoneNumber.business_id == business.id,
                BusinessPhoneNumber.phone_number_id == phone_number_id,
            )
            .first()
        )
        if not known:
            db.add(BusinessPhoneNumber(business_id=business.id, phone_number_id=phone_number_id))

        db.commit()
        db.refresh(business)
        logger.info("whatsapp account linked", extra={"waba_id": business.waba_id, "phone_number_id": phone_number_id})
        return business

    def get_credentials(self, business: Business) -> MetaCredentials:
        if not business.whatsapp_enabled or not business.whatsapp_access_token:
            raise AppError("WhatsApp is not configured for this business", status_code=400)
        if not business.whatsapp_phone_number_ids:
            raise AppError("WhatsApp phone number is not configured for this business", status_code=400)

        expires_at = business.whatsapp_token_expires_at
        if expires_at is not None and _as_aware(expires_at) <= _utcnow():
            raise AuthenticationError("WhatsApp access token has expired", status_code=401)

        return MetaCredentials(
            access_token=decrypt_token(business.whatsapp_access_token) or "",
            phone_number_id=business.whatsapp_phone_number_ids[0],
        )

    def _mark_failed(self, db: Session, message: ChatMessage, error: str) -> None:
        message.status = "failed"
        message.error = error
        db.commit()
        logger.error("outbound message failed id=%s", message.id)

    def send_text(self, db: Session, sub_domain: str, *, to: str, text: str) -> ChatMessage:
        to = (to or "").strip().lstrip("+")
        if not to:
            raise ValidationError("Recipient phone number is required")
        if not text or not text.strip():
            raise ValidationError("Message text is required")

        business = get_business(db, sub_domain)
        credentials = self.get_credentials(business)

        get_or_create_customer(db, business.sub_domain, to, None)
        chat = get_or_create_chat(db, business.sub_domain, to, None)

        content = {"text": text}
        message = ChatMessage(
            chat_id=chat.id,
            sub_domain=business.sub_domain,
            message_type="text",
            direction="outbound",
            content=content,
            status="pending",
            timestamp=_utcnow(),
        )
        db.add(message)
        db.commit()
        db.refresh(message)

        try:
            result = self._client.send_text(credentials, to, text)
        except AppError as exc:
            self._mark_failed(db, message, exc.message)
            raise
        except httpx.HTTPError as exc:
            self._mark_failed(db, message, f"{type(exc).__name__}: {exc}")
            raise TransientError("WhatsApp API unavailable") from exc

        message.status = "sent"
        message.wa_message_id = result.provider_message_id
        message.raw_payload = sanitize_payload(result.response_payload)
        db.query(WhatsAppChat).filter(WhatsAppChat.id == chat.id).update(
            {
                "last_message": build_preview(content),
                "last_message_time": message.timestamp,
                "message_count": WhatsAppChat.message_count + 1,
                "is_active": True,
            },
            synchronize_session=False,
        )
        db.commit()
        db.refresh(message)
        logger.info("outbound message sent", extra={"message_id": message.wa_message_id, "attempt": result.attempts})
        return message


def serialize_chat(chat: WhatsAppChat) -> dict[str, Any]:
    return {
        "id": chat.id,
        "customerPhone": chat.customer_phone,
        "customerName": chat.customer_name,
        "isActive": bool(chat.is_active),
        "messageCount": chat.message_count,
        "lastMessage": chat.last_message,
        "lastMessageTime": chat.last_message_time.isoformat() if chat.last_message_time else None,
    }


def serialize_message(message: ChatMessage) -> dict[str, Any]:
    return {
        "id": message.id,
        "chatId": message.chat_id,
        "type": message.message_type,
        "direction": message.direction,
        "content": message.content,
        "status": message.status,
        "timestamp": message.timestamp.isoformat() if message.timestamp else None,
        "waMessageId": message.wa_message_id,
        "error": message.error,
    }


def list_chats(db: Session, sub_domain: str) -> list[WhatsAppChat]:
    business = get_business(db, sub_domain)
    return (
        db.query(WhatsAppChat)
        .filter(WhatsAppChat.sub_domain == business.sub_domain)
        .order_by(WhatsAppChat.last_message_time.desc(), WhatsAppChat.id.desc())
        .all()
    )


def list_messages(db: Session, sub_domain: str, chat_id: int, limit: int = 50) -> list[ChatMessage]:
    business = get_business(db, sub_domain)
    chat = (
        db.query(WhatsAppChat)
        .filter(WhatsAppChat.id == chat_id, WhatsAppChat.sub_domain == business.sub_domain)
        .first()
    )
    if not chat:
        raise NotFoundError("Chat not found")
    # Página mais recente, devolvida em ordem cronológica
    latest = (
        db.query(ChatMessage)
        .filter(ChatMessage.chat_id == chat.id, ChatMessage.sub_domain == business.sub_domain)
        .order_by(ChatMessage.timestamp.desc(), ChatMessage.id.desc())
        .limit(limit)
        .all()
    )
    return list(reversed(latest))
