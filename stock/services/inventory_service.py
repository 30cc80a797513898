import logging
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session

from stock.config import settings
from stock.database import atomic
from stock.errors import NotFoundError, ValidationError
from stock.models.inventory import CREDIT_TYPES, InventoryMovement, InventoryRecord, MovementType
from stock.models.product import Product
from stock.schemas.inventory import PurchaseCreate

logger = logging.getLogger(__name__)


def get_inventory_by_product_id(db: Session, product_id: str) -> InventoryRecord | None:
    return db.query(InventoryRecord).filter(InventoryRecord.product_id == product_id).first()


def list_inventory(db: Session, skip: int = 0, limit: int | None = None, query: str | None = None) -> list[InventoryRecord]:
    q = db.query(InventoryRecord).join(InventoryRecord.product)
    if query:
        pattern = f"%{query}%"
        q = q.filter(Product.name.ilike(pattern) | Product.description.ilike(pattern))
    return q.order_by(Product.name).offset(skip).limit(settings.DEFAULT_PAGE_SIZE if limit is None else limit).all()


def list_low_stock(db: Session, threshold: int | None = None) -> list[InventoryRecord]:
    if threshold is None:
        threshold = settings.LOW_STOCK_THRESHOLD
    return (
        db.query(InventoryRecord)
        .filter(InventoryRecord.quantity <= threshold)
        .order_by(InventoryRecord.quantity)
        .all()
    )


def apply_movement(db: Session, movement: InventoryMovement) -> InventoryRecord:
    """Apply one movement's effect to the product's on-hand quantity.

    Does not commit: callers run this inside their own ``atomic`` block
    together with the insert of the movement itself. The delta is applied
    by the database (``quantity = quantity + delta``) so that sessions
    holding a stale copy of the record never overwrite each other.
    """
    record = get_inventory_by_product_id(db, movement.product_id)
    if not record:
        raise NotFoundError("Inventory for product", movement.product_id)

    if movement.movement_type in CREDIT_TYPES:
        delta = movement.quantity
    else:
        delta = -movement.quantity

    record.quantity = InventoryRecord.quantity + delta
    record.last_update = datetime.now(timezone.utc)
    db.flush()
    db.refresh(record)

    if delta < 0 and record.quantity < 0 and not settings.ALLOW_NEGATIVE_STOCK:
        # Nothing is committed here; the caller's atomic block rolls the update back
        raise ValidationError(
            {"quantity": [f"insufficient stock for {movement.product_name or movement.product_id}"]},
            f"Insufficient stock. Current: {record.quantity - delta}, requested: {movement.quantity}",
        )
    return record


def record_movement(
    db: Session,
    product_id: str,
    quantity: int,
    movement_type: MovementType,
    related_id: str | None = None,
) -> InventoryMovement:
    """Insert a ledger entry and apply it. The caller owns the transaction."""
    if quantity is None or quantity <= 0:
        raise ValidationError.for_field("quantity", "must be greater than 0")
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise ValidationError.for_field("product_id", f"product {product_id} not found")

    movement = InventoryMovement(
        product_id=product.id,
        product_name=product.name,
        quantity=quantity,
        movement_type=movement_type,
        related_id=related_id,
    )
    db.add(movement)
    db.flush()
    apply_movement(db, movement)
    return movement


def create_purchase(db: Session, data: PurchaseCreate) -> InventoryMovement:
    with atomic(db):
        movement = record_movement(db, data.product_id, data.quantity, MovementType.PURCHASE)
    logger.info("Purchase of %d recorded for product %s", movement.quantity, movement.product_id)
    db.refresh(movement)
    return movement


def get_movement(db: Session, movement_id: str) -> InventoryMovement | None:
    return db.query(InventoryMovement).filter(InventoryMovement.id == movement_id).first()


def list_movements(
    db: Session,
    skip: int = 0,
    limit: int | None = None,
    product_id: str | None = None,
    related_id: str | None = None,
    movement_type: MovementType | None = None,
) -> list[InventoryMovement]:
    q = db.query(InventoryMovement)
    if product_id:
        q = q.filter(InventoryMovement.product_id == product_id)
    if related_id:
        q = q.filter(InventoryMovement.related_id == related_id)
    if movement_type:
        q = q.filter(InventoryMovement.movement_type == movement_type)
    return q.order_by(InventoryMovement.created_at.desc()).offset(skip).limit(settings.DEFAULT_PAGE_SIZE if limit is None else limit).all()


def ledger_balance(db: Session, product_id: str) -> int:
    """Net of all committed movements for a product: credits minus debits."""
    rows = (
        db.query(InventoryMovement.movement_type, func.coalesce(func.sum(InventoryMovement.quantity), 0))
        .filter(InventoryMovement.product_id == product_id)
        .group_by(InventoryMovement.movement_type)
        .all()
    )
    balance = 0
    for movement_type, total in rows:
        balance += total if movement_type in CREDIT_TYPES else -total
    return balance


def audit_inventory(db: Session, product_id: str) -> dict:
    record = get_inventory_by_product_id(db, product_id)
    if not record:
        raise NotFoundError("Inventory for product", product_id)
    balance = ledger_balance(db, product_id)
    return {
        "product_id": product_id,
        "quantity": record.quantity,
        "ledger_balance": balance,
        "consistent": record.quantity == balance,
    }
