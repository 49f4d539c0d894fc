import sqlalchemy as sa
from sqlalchemy import Boolean, Column, DateTime, Float, Index, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB

from restaurant_ops.core.database import Base


class DeliveryZone(Base):
    __tablename__ = "delivery_zones"

    id = Column(Integer, primary_key=True)
    zone_name = Column(String(200), nullable=False)
    delivery_cost = Column(Float, nullable=False)
    minimum_order = Column(Float, nullable=False)
    estimated_time = Column(Integer, nullable=False)  # minutos
    allows_free_delivery = Column(Boolean, nullable=False, default=False)
    minimum_for_free_delivery = Column(Float, nullable=True)

    zone_type = Column(String(20), nullable=False, default="simple")  # polygon | simple | radius
    # Sempre [longitude, latitude]; a conversão acontece no service, nunca no model.
    coordinates = Column(JSONB().with_variant(sa.JSON(), "sqlite"), nullable=False, default=list)
    radius_km = Column(Float, nullable=True)

    sub_domain = Column(String(100), nullable=False, index=True)
    local_id = Column(String(64), nullable=False, index=True)
    status = Column(String(1), nullable=False, default="1")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


Index("ix_delivery_zones_scope", DeliveryZone.sub_domain, DeliveryZone.local_id, DeliveryZone.is_active)
