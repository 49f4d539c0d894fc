from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint, func

from restaurant_ops.core.database import Base


class WhatsAppCustomer(Base):
    __tablename__ = "whatsapp_customers"
    __table_args__ = (UniqueConstraint("phone", "sub_domain", name="uq_whatsapp_customers_phone_sub_domain"),)

    id = Column(Integer, primary_key=True)
    phone = Column(String(30), nullable=False, index=True)
    sub_domain = Column(String(100), nullable=False, index=True)
    name = Column(String(200), nullable=True)
    last_interaction = Column(DateTime(timezone=True), nullable=True)
    interaction_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
