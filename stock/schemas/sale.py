from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, field_validator

from stock.models.sale import SaleStatus


class SaleItemCreate(BaseModel):
    product_id: str
    quantity: int


class SaleCreate(BaseModel):
    customer_id: str | None = None
    sale_date: date | None = None  # empty = today
    # Accepted for form compatibility but always replaced by "pending"
    status: SaleStatus | None = None
    items: list[SaleItemCreate] = []


class SaleUpdate(BaseModel):
    status: SaleStatus | None = None
    sale_date: date | None = None
    customer_id: str | None = None


class SaleItemOut(BaseModel):
    id: str
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    model_config = {"from_attributes": True}


class SaleOut(BaseModel):
    id: str
    status: SaleStatus
    customer_id: str
    customer_name: str = ""
    sale_date: date
    total_amount: Decimal
    items: list[SaleItemOut]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("customer_name", mode="before")
    @classmethod
    def customer_name_default(cls, v):
        return v or ""
