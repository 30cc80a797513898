from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from stock.database import get_db
from stock.models.inventory import MovementType
from stock.schemas.inventory import InventoryAudit, InventoryOut, MovementOut, PurchaseCreate
from stock.services import inventory_service

router = APIRouter(prefix="/inventory", tags=["Inventory"])


@router.get("", response_model=list[InventoryOut])
def list_inventory(skip: int = 0, limit: int | None = None, query: str | None = None, db: Session = Depends(get_db)):
    return inventory_service.list_inventory(db, skip=skip, limit=limit, query=query)


@router.get("/low-stock", response_model=list[InventoryOut])
def low_stock(threshold: int | None = None, db: Session = Depends(get_db)):
    return inventory_service.list_low_stock(db, threshold)


@router.post("/purchases", response_model=MovementOut, status_code=201)
def create_purchase(data: PurchaseCreate, db: Session = Depends(get_db)):
    return inventory_service.create_purchase(db, data)


@router.get("/movements", response_model=list[MovementOut])
def list_movements(
    skip: int = 0,
    limit: int | None = None,
    product_id: str | None = None,
    related_id: str | None = None,
    movement_type: MovementType | None = None,
    db: Session = Depends(get_db),
):
    return inventory_service.list_movements(
        db, skip=skip, limit=limit, product_id=product_id, related_id=related_id, movement_type=movement_type
    )


@router.get("/movements/{movement_id}", response_model=MovementOut)
def get_movement(movement_id: str, db: Session = Depends(get_db)):
    movement = inventory_service.get_movement(db, movement_id)
    if not movement:
        raise HTTPException(404, "Inventory movement not found")
    return movement


@router.get("/{product_id}", response_model=InventoryOut)
def get_inventory(product_id: str, db: Session = Depends(get_db)):
    record = inventory_service.get_inventory_by_product_id(db, product_id)
    if not record:
        raise HTTPException(404, "Inventory not found")
    return record


@router.get("/{product_id}/audit", response_model=InventoryAudit)
def audit_inventory(product_id: str, db: Session = Depends(get_db)):
    """Compare the on-hand quantity with the net of the movement ledger."""
    return inventory_service.audit_inventory(db, product_id)
