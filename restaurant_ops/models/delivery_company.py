from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint, func

from restaurant_ops.core.database import Base


class DeliveryCompany(Base):
    __tablename__ = "delivery_companies"
    __table_args__ = (UniqueConstraint("tax_id", "sub_domain", name="uq_delivery_companies_tax_id_sub_domain"),)

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False, index=True)
    tax_id = Column(String(50), nullable=False)
    address = Column(String(500), nullable=True)
    phone = Column(String(30), nullable=True)
    email = Column(String(200), nullable=True)
    contact_person = Column(String(200), nullable=True)

    sub_domain = Column(String(100), nullable=False, index=True)
    local_id = Column(String(64), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
