from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import relationship

from restaurant_ops.core.database import Base


class Business(Base):
    __tablename__ = "businesses"

    id = Column(Integer, primary_key=True)
    sub_domain = Column(String(100), unique=True, index=True, nullable=False)
    name = Column(String(200), nullable=False, default="")

    # Identificação WhatsApp. waba_id não é unique: em caso de duplicidade vale o primeiro.
    waba_id = Column(String(64), index=True, nullable=True)
    whatsapp_access_token = Column(Text, nullable=True)  # cifrado (Fernet)
    whatsapp_token_expires_at = Column(DateTime(timezone=True), nullable=True)
    whatsapp_enabled = Column(Boolean, nullable=False, default=False)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    phone_numbers = relationship(
        "BusinessPhoneNumber",
        back_populates="business",
        cascade="all, delete-orphan",
        order_by="BusinessPhoneNumber.id",
    )
    locations = relationship("BusinessLocation", back_populates="business", cascade="all, delete-orphan")

    @property
    def whatsapp_phone_number_ids(self) -> list[str]:
        return [entry.phone_number_id for entry in self.phone_numbers]


class BusinessPhoneNumber(Base):
    __tablename__ = "business_phone_numbers"

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    phone_number_id = Column(String(64), nullable=False, index=True)

    business = relationship("Business", back_populates="phone_numbers")


class BusinessLocation(Base):
    __tablename__ = "business_locations"
    __table_args__ = (UniqueConstraint("sub_domain", "local_id", name="uq_business_locations_sub_domain_local"),)

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    sub_domain = Column(String(100), nullable=False, index=True)
    local_id = Column(String(64), nullable=False)
    name = Column(String(200), nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)

    business = relationship("Business", back_populates="locations")


Index("ix_business_phone_numbers_lookup", BusinessPhoneNumber.phone_number_id, BusinessPhoneNumber.business_id)
