from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# Regras de forma/intervalo ficam em services.delivery_zones.validate_zone
class DeliveryZoneCreate(CamelModel):
    zone_name: Optional[str] = Field(None, alias="zoneName")
    delivery_cost: Optional[float] = Field(None, alias="deliveryCost")
    minimum_order: Optional[float] = Field(None, alias="minimumOrder")
    estimated_time: Optional[int] = Field(None, alias="estimatedTime")
    allows_free_delivery: bool = Field(False, alias="allowsFreeDelivery")
    minimum_for_free_delivery: Optional[float] = Field(None, alias="minimumForFreeDelivery")
    zone_type: Optional[str] = Field("simple", alias="type")
    coordinates: List[Any] = Field(default_factory=list)
    radius_km: Optional[float] = Field(None, alias="radiusKm")
    status: Optional[str] = None


class DeliveryZoneUpdate(CamelModel):
    zone_name: Optional[str] = Field(None, alias="zoneName")
    delivery_cost: Optional[float] = Field(None, alias="deliveryCost")
    minimum_order: Optional[float] = Field(None, alias="minimumOrder")
    estimated_time: Optional[int] = Field(None, alias="estimatedTime")
    allows_free_delivery: Optional[bool] = Field(None, alias="allowsFreeDelivery")
    minimum_for_free_delivery: Optional[float] = Field(None, alias="minimumForFreeDelivery")
    zone_type: Optional[str] = Field(None, alias="type")
    coordinates: Optional[List[Any]] = None
    radius_km: Optional[float] = Field(None, alias="radiusKm")
    status: Optional[str] = None


class ComplexCoverageZoneCreate(CamelModel):
    type: Optional[str] = None
    coordinates: Optional[List[Any]] = None
    delivery_fee: Optional[float] = Field(None, alias="deliveryFee")
    sub_domain: Optional[str] = Field(None, alias="subDomain")
    local_id: Optional[str] = Field(None, alias="localId")
    zone_name: Optional[str] = Field(None, alias="zoneName")
    minimum_order: Optional[float] = Field(None, alias="minimumOrder")
    estimated_time: Optional[int] = Field(None, alias="estimatedTime")


class SimpleCoverageZoneCreate(CamelModel):
    type: Optional[str] = None
    radius: Optional[float] = None
    center: Optional[Any] = None
    delivery_fee: Optional[float] = Field(None, alias="deliveryFee")
    sub_domain: Optional[str] = Field(None, alias="subDomain")
    local_id: Optional[str] = Field(None, alias="localId")
    zone_name: Optional[str] = Field(None, alias="zoneName")
    minimum_order: Optional[float] = Field(None, alias="minimumOrder")
    estimated_time: Optional[int] = Field(None, alias="estimatedTime")
