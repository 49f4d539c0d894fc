from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint, func

from restaurant_ops.core.database import Base


class WhatsAppTemplateStatus(Base):
    __tablename__ = "whatsapp_template_statuses"
    __table_args__ = (UniqueConstraint("sub_domain", "template_id", name="uq_whatsapp_template_statuses_template"),)

    id = Column(Integer, primary_key=True)
    sub_domain = Column(String(100), nullable=False, index=True)
    template_id = Column(String(64), nullable=False)
    template_name = Column(String(200), nullable=True)
    language = Column(String(20), nullable=True)
    event = Column(String(30), nullable=False)
    reason = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
