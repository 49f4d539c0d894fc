from sqlalchemy import Boolean, Column, DateTime, Float, Index, Integer, String, UniqueConstraint, func

from restaurant_ops.core.database import Base

DRIVER_STATUSES = ("active", "inactive", "suspended", "on_delivery", "offline")
VEHICLE_TYPES = ("motorcycle", "bicycle", "car", "van", "truck")


class Driver(Base):
    __tablename__ = "drivers"
    __table_args__ = (UniqueConstraint("email", "sub_domain", name="uq_drivers_email_sub_domain"),)

    id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    name = Column(String(200), nullable=False)
    phone = Column(String(30), nullable=False, index=True)
    email = Column(String(200), nullable=False)
    vehicle_type = Column(String(20), nullable=False, default="motorcycle")
    license_plate = Column(String(20), nullable=True)

    status = Column(String(20), nullable=False, default="active")
    available = Column(Boolean, nullable=False, default=True)
    current_latitude = Column(Float, nullable=True)
    current_longitude = Column(Float, nullable=True)
    location_updated_at = Column(DateTime(timezone=True), nullable=True)

    current_orders = Column(Integer, nullable=False, default=0)
    total_deliveries = Column(Integer, nullable=False, default=0)
    successful_deliveries = Column(Integer, nullable=False, default=0)
    rating_average = Column(Float, nullable=False, default=0.0)

    sub_domain = Column(String(100), nullable=False, index=True)
    local_id = Column(String(64), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


Index("ix_drivers_availability", Driver.sub_domain, Driver.status, Driver.available, Driver.is_active)
