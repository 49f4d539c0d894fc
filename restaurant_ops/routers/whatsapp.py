from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from restaurant_ops.core.database import get_db
from restaurant_ops.core.errors import envelope
from restaurant_ops.schemas.whatsapp import OutboundTextMessage, WhatsAppAccountLink
from restaurant_ops.services.businesses import serialize_business
from restaurant_ops.whatsapp.service import (
    WhatsAppService,
    list_chats,
    list_messages,
    serialize_chat,
    serialize_message,
)

router = APIRouter(prefix="/api/v1/whatsapp", tags=["whatsapp"])


def get_whatsapp_service() -> WhatsAppService:
    return WhatsAppService()


@router.put("/{sub_domain}/account")
def link_whatsapp_account(
    sub_domain: str,
    payload: WhatsAppAccountLink,
    db: Session = Depends(get_db),
    service: WhatsAppService = Depends(get_whatsapp_service),
):
    business = service.link_account(
        db,
        sub_domain,
        waba_id=payload.waba_id,
        phone_number_id=payload.phone_number_id,
        access_token=payload.access_token,
        expires_in=payload.expires_in,
    )
    return envelope("WhatsApp account linked successfully", serialize_business(business)["whatsapp"])


@router.post("/{sub_domain}/messages")
def send_whatsapp_message(
    sub_domain: str,
    payload: OutboundTextMessage,
    db: Session = Depends(get_db),
    service: WhatsAppService = Depends(get_whatsapp_service),
):
    message = service.send_text(db, sub_domain, to=payload.to, text=payload.text)
    return envelope("Message sent successfully", serialize_message(message))


@router.get("/{sub_domain}/chats")
def get_chats(sub_domain: str, db: Session = Depends(get_db)):
    chats = list_chats(db, sub_domain)
    return envelope("Success", [serialize_chat(chat) for chat in chats])


@router.get("/{sub_domain}/chats/{chat_id}/messages")
def get_chat_messages(
    sub_domain: str,
    chat_id: int,
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    messages = list_messages(db, sub_domain, chat_id, limit=limit)
    return envelope("Success", [serialize_message(message) for message in messages])
