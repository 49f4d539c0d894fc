from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, UniqueConstraint, func

from restaurant_ops.core.database import Base

LAST_MESSAGE_MAX_LENGTH = 1000


class WhatsAppChat(Base):
    __tablename__ = "whatsapp_chats"
    __table_args__ = (UniqueConstraint("customer_phone", "sub_domain", name="uq_whatsapp_chats_phone_sub_domain"),)

    id = Column(Integer, primary_key=True)
    customer_phone = Column(String(30), nullable=False)
    sub_domain = Column(String(100), nullable=False, index=True)
    customer_name = Column(String(200), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    message_count = Column(Integer, nullable=False, default=0)
    last_message = Column(String(LAST_MESSAGE_MAX_LENGTH), nullable=True)
    last_message_time = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


Index("ix_whatsapp_chats_sub_domain_last_message", WhatsAppChat.sub_domain, WhatsAppChat.last_message_time)
