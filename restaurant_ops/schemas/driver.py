from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class DriverCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    vehicle_type: Optional[str] = Field(None, alias="vehicleType")
    license_plate: Optional[str] = Field(None, alias="licensePlate")


class DriverUpdate(DriverCreate):
    pass


class DriverLocationUpdate(BaseModel):
    # Any: a validação numérica e de faixa gera as mensagens de negócio
    latitude: Any = None
    longitude: Any = None


class DriverStatusUpdate(BaseModel):
    status: Optional[str] = None


class DriverAssignment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: Optional[str] = Field(None, alias="orderId")
