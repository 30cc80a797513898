import logging
from collections import Counter
from dataclasses import asdict, dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from stock.config import settings
from stock.database import atomic
from stock.errors import NotFoundError, StateError, ValidationError
from stock.models.customer import Customer
from stock.models.inventory import InventoryMovement, MovementType
from stock.models.product import Product
from stock.models.sale import Sale, SaleItem, SaleStatus
from stock.schemas.sale import SaleCreate, SaleUpdate
from stock.services.inventory_service import record_movement

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class PricedItem:
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


@dataclass(frozen=True)
class SaleDraft:
    """A validated sale, ready to be persisted."""

    customer_id: str
    sale_date: date
    items: tuple[PricedItem, ...]

    @property
    def total_amount(self) -> Decimal:
        return sum((item.subtotal for item in self.items), Decimal("0"))


def price_item(product: Product, quantity: int) -> PricedItem:
    unit_price = Decimal(product.price).quantize(CENTS)
    return PricedItem(
        product_id=product.id,
        product_name=product.name,
        quantity=quantity,
        unit_price=unit_price,
        subtotal=(unit_price * quantity).quantize(CENTS),
    )


def build_sale(db: Session, data: SaleCreate) -> SaleDraft:
    """Validate a sale request and price its items from current product prices.

    Collects every field error before raising, so the caller can show them all.
    """
    errors: dict[str, list[str]] = {}

    if not data.customer_id:
        errors["customer_id"] = ["can't be blank"]
    elif not db.query(Customer).filter(Customer.id == data.customer_id).first():
        errors["customer_id"] = ["customer not found"]

    if not data.items:
        errors["items"] = ["at least one item is required"]

    priced: list[PricedItem] = []
    for i, item in enumerate(data.items):
        if item.quantity is None or item.quantity <= 0:
            errors.setdefault(f"items[{i}].quantity", []).append("must be greater than 0")
        product = db.query(Product).filter(Product.id == item.product_id).first()
        if not product:
            errors.setdefault(f"items[{i}].product_id", []).append("product not found")
            continue
        if item.quantity and item.quantity > 0:
            priced.append(price_item(product, item.quantity))

    counts = Counter(item.product_id for item in data.items if item.product_id)
    if any(n > 1 for n in counts.values()):
        errors.setdefault("items", []).append("duplicate items found")

    if errors:
        raise ValidationError(errors)

    return SaleDraft(
        customer_id=data.customer_id,
        sale_date=data.sale_date or date.today(),
        items=tuple(priced),
    )


def create_sale(db: Session, data: SaleCreate) -> Sale:
    draft = build_sale(db, data)
    sale = Sale(
        status=SaleStatus.PENDING,
        customer_id=draft.customer_id,
        sale_date=draft.sale_date,
        total_amount=draft.total_amount,
        items=[SaleItem(position=i, **asdict(item)) for i, item in enumerate(draft.items)],
    )

    with atomic(db):
        db.add(sale)
        db.flush()
        for item in sale.items:
            record_movement(db, item.product_id, item.quantity, MovementType.SALE, related_id=sale.id)

    logger.info("Sale %s created with %d items, total %s", sale.id, len(draft.items), draft.total_amount)
    db.refresh(sale)
    return sale


def get_sale(db: Session, sale_id: str) -> Sale | None:
    return db.query(Sale).filter(Sale.id == sale_id).first()


def list_sales(
    db: Session,
    skip: int = 0,
    limit: int | None = None,
    query: str | None = None,
    status: SaleStatus | None = None,
    customer_id: str | None = None,
) -> list[Sale]:
    q = db.query(Sale).join(Sale.customer)
    if query:
        q = q.filter(Customer.name.ilike(f"%{query}%"))
    if status:
        q = q.filter(Sale.status == status)
    if customer_id:
        q = q.filter(Sale.customer_id == customer_id)
    return q.order_by(Sale.created_at.desc()).offset(skip).limit(settings.DEFAULT_PAGE_SIZE if limit is None else limit).all()


def _validate_update(db: Session, update_data: dict) -> None:
    errors = {}
    if "status" in update_data and update_data["status"] is None:
        errors["status"] = ["can't be blank"]
    if "sale_date" in update_data and update_data["sale_date"] is None:
        errors["sale_date"] = ["can't be blank"]
    if "customer_id" in update_data:
        customer_id = update_data["customer_id"]
        if not customer_id:
            errors["customer_id"] = ["can't be blank"]
        elif not db.query(Customer).filter(Customer.id == customer_id).first():
            errors["customer_id"] = ["customer not found"]
    if errors:
        raise ValidationError(errors)


def _reverse_sale_movements(db: Session, sale: Sale) -> int:
    """Emit one sale_reversal for each sale movement of ``sale`` not yet reversed."""
    movements = (
        db.query(InventoryMovement)
        .filter(
            InventoryMovement.related_id == sale.id,
            InventoryMovement.movement_type.in_([MovementType.SALE, MovementType.SALE_REVERSAL]),
        )
        .order_by(InventoryMovement.created_at)
        .all()
    )
    # A sale holds at most one line per product (build_sale rejects duplicates),
    # so (product_id, quantity) identifies the sale movement a reversal undid.
    already_reversed = Counter(
        (m.product_id, m.quantity) for m in movements if m.movement_type == MovementType.SALE_REVERSAL
    )

    count = 0
    for movement in movements:
        if movement.movement_type != MovementType.SALE:
            continue
        key = (movement.product_id, movement.quantity)
        if already_reversed[key] > 0:
            already_reversed[key] -= 1
            continue
        if movement.product_id is None:
            logger.warning(
                "Skipping reversal of movement %s: product %s no longer exists",
                movement.id, movement.product_name,
            )
            continue
        record_movement(db, movement.product_id, movement.quantity, MovementType.SALE_REVERSAL, related_id=sale.id)
        count += 1
    return count


def update_sale(db: Session, sale_id: str, data: SaleUpdate) -> Sale:
    sale = get_sale(db, sale_id)
    if not sale:
        raise NotFoundError("Sale", sale_id)

    update_data = data.model_dump(exclude_unset=True)
    _validate_update(db, update_data)

    if update_data.get("status") == SaleStatus.CANCELED:
        if sale.status == SaleStatus.CANCELED:
            # Stock was already given back on the first cancellation
            return sale
        if sale.status == SaleStatus.DELIVERED:
            raise StateError("Cannot modify a sale in this status")
        with atomic(db):
            reversals = _reverse_sale_movements(db, sale)
            for field, value in update_data.items():
                setattr(sale, field, value)
        logger.info("Sale %s canceled, %d movements reversed", sale.id, reversals)
    else:
        if sale.is_terminal:
            raise StateError("Cannot modify a sale in this status")
        with atomic(db):
            for field, value in update_data.items():
                setattr(sale, field, value)

    db.refresh(sale)
    return sale


def cancel_sale(db: Session, sale_id: str) -> Sale:
    return update_sale(db, sale_id, SaleUpdate(status=SaleStatus.CANCELED))


def delete_sale(db: Session, sale_id: str) -> None:
    """Delete a canceled sale. Its ledger entries are kept, unlinked."""
    sale = get_sale(db, sale_id)
    if not sale:
        raise NotFoundError("Sale", sale_id)
    if sale.status != SaleStatus.CANCELED:
        raise StateError("Only canceled sales can be deleted")
    with atomic(db):
        db.query(InventoryMovement).filter(InventoryMovement.related_id == sale.id).update(
            {InventoryMovement.related_id: None}, synchronize_session=False
        )
        db.delete(sale)
    logger.info("Sale %s deleted", sale_id)
