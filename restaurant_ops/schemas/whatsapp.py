from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WhatsAppAccountLink(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    waba_id: Optional[str] = Field(None, alias="wabaId")
    phone_number_id: Optional[str] = Field(None, alias="phoneNumberId")
    access_token: Optional[str] = Field(None, alias="accessToken")
    expires_in: Optional[int] = Field(None, alias="expiresIn")


class OutboundTextMessage(BaseModel):
    to: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1, max_length=4096)
