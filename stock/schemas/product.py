from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from stock.models.product import UnitOfMeasure


class ProductCreate(BaseModel):
    name: str
    description: str = ""
    price: Decimal
    unit_of_measure: UnitOfMeasure = UnitOfMeasure.UNIT


class ProductUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    price: Decimal | None = None
    unit_of_measure: UnitOfMeasure | None = None


class ProductOut(BaseModel):
    id: str
    name: str
    description: str
    price: Decimal
    unit_of_measure: UnitOfMeasure
    quantity: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
