from datetime import datetime

from pydantic import BaseModel

from stock.models.inventory import MovementType


class PurchaseCreate(BaseModel):
    product_id: str
    quantity: int


class InventoryOut(BaseModel):
    id: str
    product_id: str
    product_name: str
    quantity: int
    last_update: datetime | None = None

    model_config = {"from_attributes": True}


class MovementOut(BaseModel):
    id: str
    product_id: str | None
    product_name: str
    quantity: int
    movement_type: MovementType
    related_id: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class InventoryAudit(BaseModel):
    product_id: str
    quantity: int
    ledger_balance: int
    consistent: bool
