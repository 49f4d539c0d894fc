from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DeliveryCompanyCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    tax_id: Optional[str] = Field(None, alias="taxId")
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    contact_person: Optional[str] = Field(None, alias="contactPerson")


class DeliveryCompanyUpdate(DeliveryCompanyCreate):
    pass
