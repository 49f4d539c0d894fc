import sqlalchemy as sa
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import JSONB

from restaurant_ops.core.database import Base

MESSAGE_STATUSES = ("pending", "sent", "delivered", "read", "failed")


class ChatMessage(Base):
    __tablename__ = "chat_messages"
    __table_args__ = (
        UniqueConstraint("sub_domain", "wa_message_id", "direction", name="uq_chat_messages_wa_message"),
    )

    id = Column(Integer, primary_key=True)
    chat_id = Column(Integer, ForeignKey("whatsapp_chats.id"), nullable=False, index=True)
    sub_domain = Column(String(100), nullable=False, index=True)
    message_type = Column(String(20), nullable=False, default="text")
    direction = Column(String(10), nullable=False)  # inbound | outbound
    content = Column(JSONB().with_variant(sa.JSON(), "sqlite"), nullable=False, default=dict)
    status = Column(String(20), nullable=False, default="pending")
    timestamp = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # message.id da Meta (wamid...)
    wa_message_id = Column(String(128), nullable=True)
    raw_payload = Column(JSONB().with_variant(sa.JSON(), "sqlite"), nullable=True)
    provider_status = Column(String(30), nullable=True)
    status_recipient_id = Column(String(30), nullable=True)
    status_updated_at = Column(DateTime(timezone=True), nullable=True)
    error = Column(Text, nullable=True)


Index("ix_chat_messages_chat_timestamp", ChatMessage.chat_id, ChatMessage.timestamp)
Index("ix_chat_messages_wa_message_id", ChatMessage.wa_message_id)
