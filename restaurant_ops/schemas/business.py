from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from restaurant_ops.utils.slug import normalize_sub_domain


class BusinessLocationIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    local_id: str = Field(..., alias="localId", min_length=1)
    name: Optional[str] = None


class BusinessCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sub_domain: str = Field(..., alias="subDomain", min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=200)
    locations: List[BusinessLocationIn] = Field(default_factory=list)

    @field_validator("sub_domain")
    @classmethod
    def validate_sub_domain(cls, value: str) -> str:
        normalized = normalize_sub_domain(value)
        if not normalized:
            raise ValueError("subDomain must contain letters or numbers")
        return normalized
