from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from restaurant_ops.core.database import get_db
from restaurant_ops.core.errors import envelope
from restaurant_ops.schemas.business import BusinessCreate
from restaurant_ops.services.businesses import create_business, get_business, serialize_business

router = APIRouter(prefix="/api/v1/businesses", tags=["businesses"])


@router.post("")
def register_business(payload: BusinessCreate, db: Session = Depends(get_db)):
    business = create_business(
        db,
        payload.sub_domain,
        payload.name,
        [location.model_dump() for location in payload.locations],
    )
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=envelope("Business created successfully", serialize_business(business)),
    )


@router.get("/{sub_domain}")
def read_business(sub_domain: str, db: Session = Depends(get_db)):
    return envelope("Success", serialize_business(get_business(db, sub_domain)))
