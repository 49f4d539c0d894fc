"""Typed view over Meta WhatsApp Cloud webhook payloads.

Each change is decoded by its ``field`` and each message by its ``type``
through the registries below. Anything unknown decodes to a catch-all model
instead of failing, so new Meta event kinds never break ingestion.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, ClassVar, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from restaurant_ops.core import config


class MetaModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


def media_url(media: "MediaObject | None") -> str | None:
    if media is None:
        return None
    if media.id:
        return f"{config.META_GRAPH_BASE_URL}/{config.META_API_VERSION}/{media.id}"
    return media.link


def parse_meta_timestamp(value: str | int | None) -> datetime:
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return datetime.now(timezone.utc)


# ---- messages -------------------------------------------------------------


class TextBody(MetaModel):
    body: str = ""


class MediaObject(MetaModel):
    id: Optional[str] = None
    link: Optional[str] = None
    mime_type: Optional[str] = None
    caption: Optional[str] = None
    filename: Optional[str] = None


class LocationBody(MetaModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    name: Optional[str] = None
    address: Optional[str] = None


class ContactName(MetaModel):
    formatted_name: Optional[str] = None
    first_name: Optional[str] = None


class ContactPhone(MetaModel):
    phone: Optional[str] = None


class SharedContact(MetaModel):
    name: Optional[ContactName] = None
    phones: list[ContactPhone] = Field(default_factory=list)


class InteractiveText(MetaModel):
    text: Optional[str] = None


class InteractiveBody(MetaModel):
    type: str = "button"
    body: Optional[InteractiveText] = None
    footer: Optional[InteractiveText] = None
    action: dict[str, Any] = Field(default_factory=dict)
    button_reply: Optional[dict[str, Any]] = None
    list_reply: Optional[dict[str, Any]] = None


class TemplateBody(MetaModel):
    name: str = ""
    language: Any = "en_US"
    components: list[Any] = Field(default_factory=list)


class InboundMessage(MetaModel):
    id: str
    from_: str = Field(alias="from")
    timestamp: Optional[str] = None
    type: str

    def to_content(self) -> dict[str, Any]:
        raise NotImplementedError

    @property
    def sent_at(self) -> datetime:
        return parse_meta_timestamp(self.timestamp)


class TextMessage(InboundMessage):
    type: Literal["text"] = "text"
    text: Optional[TextBody] = None

    def to_content(self) -> dict[str, Any]:
        return {"text": self.text.body if self.text else ""}


class ImageMessage(InboundMessage):
    type: Literal["image"] = "image"
    image: Optional[MediaObject] = None

    def to_content(self) -> dict[str, Any]:
        return {"media_url": media_url(self.image), "text": (self.image.caption if self.image else None) or ""}


class AudioMessage(InboundMessage):
    type: Literal["audio"] = "audio"
    audio: Optional[MediaObject] = None

    def to_content(self) -> dict[str, Any]:
        return {"media_url": media_url(self.audio)}


class VideoMessage(InboundMessage):
    type: Literal["video"] = "video"
    video: Optional[MediaObject] = None

    def to_content(self) -> dict[str, Any]:
        return {"media_url": media_url(self.video), "text": (self.video.caption if self.video else None) or ""}


class DocumentMessage(InboundMessage):
    type: Literal["document"] = "document"
    document: Optional[MediaObject] = None

    def to_content(self) -> dict[str, Any]:
        text = ""
        if self.document:
            text = self.document.filename or self.document.caption or ""
        return {"media_url": media_url(self.document), "text": text}


class LocationMessage(InboundMessage):
    type: Literal["location"] = "location"
    location: Optional[LocationBody] = None

    def to_content(self) -> dict[str, Any]:
        location = self.location or LocationBody()
        return {
            "location": {
                "latitude": location.latitude or 0,
                "longitude": location.longitude or 0,
                "name": location.name or "",
                "address": location.address or "",
            }
        }


class ContactsMessage(InboundMessage):
    type: Literal["contacts"] = "contacts"
    contacts: list[SharedContact] = Field(default_factory=list)

    def to_content(self) -> dict[str, Any]:
        if not self.contacts:
            return {}
        contact = self.contacts[0]
        name = ""
        if contact.name:
            name = contact.name.formatted_name or contact.name.first_name or ""
        phone = contact.phones[0].phone if contact.phones else ""
        return {"contact": {"name": name, "phone": phone or ""}}


class InteractiveMessage(InboundMessage):
    type: Literal["interactive"] = "interactive"
    interactive: Optional[InteractiveBody] = None

    def to_content(self) -> dict[str, Any]:
        interactive = self.interactive or InteractiveBody()
        # Resposta de botão/lista chega sem body; usa o título escolhido
        reply = interactive.button_reply or interactive.list_reply or {}
        body = (interactive.body.text if interactive.body else None) or reply.get("title") or ""
        return {
            "interactive": {
                "type": interactive.type,
                "body": body,
                "footer": interactive.footer.text if interactive.footer else None,
                "action": interactive.action,
                "reply_id": reply.get("id"),
            }
        }


class TemplateMessage(InboundMessage):
    type: Literal["template"] = "template"
    template: Optional[TemplateBody] = None

    def to_content(self) -> dict[str, Any]:
        template = self.template or TemplateBody()
        return {
            "template": {
                "name": template.name,
                "language": template.language,
                "components": template.components,
            }
        }


class UnsupportedMessage(InboundMessage):
    def to_content(self) -> dict[str, Any]:
        return {"text": f"Unsupported message type: {self.type}"}


MESSAGE_TYPES: dict[str, type[InboundMessage]] = {
    "text": TextMessage,
    "image": ImageMessage,
    "audio": AudioMessage,
    "video": VideoMessage,
    "document": DocumentMessage,
    "location": LocationMessage,
    "contacts": ContactsMessage,
    "interactive": InteractiveMessage,
    "template": TemplateMessage,
}


def decode_message(raw: dict[str, Any]) -> InboundMessage:
    """Raises pydantic.ValidationError when ``id``/``from``/``type`` are missing."""
    if not isinstance(raw, dict):
        raise ValueError(f"message must be an object, got {type(raw).__name__}")
    model = MESSAGE_TYPES.get(raw.get("type") or "", UnsupportedMessage)
    return model.model_validate(raw)


# ---- statuses -------------------------------------------------------------


class StatusUpdate(MetaModel):
    id: str
    status: str
    timestamp: Optional[str] = None
    recipient_id: Optional[str] = None
    errors: list[dict[str, Any]] = Field(default_factory=list)

    MAPPED_STATUSES: ClassVar[frozenset[str]] = frozenset({"sent", "delivered", "read", "failed"})

    @property
    def mapped_status(self) -> str:
        return self.status if self.status in self.MAPPED_STATUSES else "pending"

    @property
    def occurred_at(self) -> datetime:
        return parse_meta_timestamp(self.timestamp)


# ---- changes --------------------------------------------------------------


class Metadata(MetaModel):
    display_phone_number: Optional[str] = None
    phone_number_id: Optional[str] = None
    waba_id: Optional[str] = None


class Profile(MetaModel):
    name: Optional[str] = None


class Contact(MetaModel):
    wa_id: Optional[str] = None
    profile: Optional[Profile] = None


class MessagesValue(MetaModel):
    messaging_product: Optional[str] = None
    metadata: Optional[Metadata] = None
    contacts: list[Contact] = Field(default_factory=list)
    # Mantidos crus: cada item é decodificado isoladamente pelo dispatcher
    messages: list[Any] = Field(default_factory=list)
    statuses: list[Any] = Field(default_factory=list)

    @field_validator("metadata", mode="before")
    @classmethod
    def _drop_malformed_metadata(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @field_validator("contacts", mode="before")
    @classmethod
    def _drop_malformed_contacts(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]

    @field_validator("messages", "statuses", mode="before")
    @classmethod
    def _coerce_event_list(cls, value: Any) -> Any:
        return value if isinstance(value, list) else []

    def contact_name(self, wa_id: str | None) -> str | None:
        for contact in self.contacts:
            if contact.profile and (wa_id is None or contact.wa_id in (None, wa_id)):
                return contact.profile.name
        return None


class TemplateStatusValue(MetaModel):
    event: str = ""
    message_template_id: Optional[str | int] = None
    message_template_name: Optional[str] = None
    message_template_language: Optional[str] = None
    reason: Optional[str] = None


class MessagesChange(MetaModel):
    field: Literal["messages"] = "messages"
    value: MessagesValue = Field(default_factory=MessagesValue)


class TemplateStatusChange(MetaModel):
    field: Literal["message_template_status_update"] = "message_template_status_update"
    value: TemplateStatusValue = Field(default_factory=TemplateStatusValue)


class UnhandledChange(MetaModel):
    field: str = ""
    value: Any = None


CHANGE_FIELDS: dict[str, type[MetaModel]] = {
    "messages": MessagesChange,
    "message_template_status_update": TemplateStatusChange,
}


def decode_change(raw: dict[str, Any]) -> MetaModel:
    model = CHANGE_FIELDS.get(raw.get("field") or "", UnhandledChange)
    return model.model_validate(raw)
