import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stock.config import settings
from stock.database import atomic
from stock.errors import NotFoundError, ValidationError
from stock.models.inventory import InventoryMovement, InventoryRecord
from stock.models.product import Product
from stock.schemas.product import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)


def _validate(db: Session, fields: dict, product_id: str | None = None) -> None:
    errors: dict[str, list[str]] = {}
    if "name" in fields:
        name = (fields["name"] or "").strip()
        if not name:
            errors.setdefault("name", []).append("can't be blank")
        else:
            fields["name"] = name
            existing = get_product_by_name(db, name)
            if existing and existing.id != product_id:
                errors.setdefault("name", []).append("has already been taken")
    if "price" in fields:
        if fields["price"] is None:
            errors.setdefault("price", []).append("can't be blank")
        elif fields["price"] < 0:
            errors.setdefault("price", []).append("must be greater than or equal to 0")
    if "unit_of_measure" in fields and fields["unit_of_measure"] is None:
        errors.setdefault("unit_of_measure", []).append("can't be blank")
    if errors:
        raise ValidationError(errors)


def create_product(db: Session, data: ProductCreate) -> Product:
    fields = data.model_dump()
    _validate(db, fields)
    product = Product(**fields)
    try:
        with atomic(db):
            db.add(product)
            db.flush()
            # Every product owns exactly one inventory record from creation
            db.add(InventoryRecord(product_id=product.id, quantity=0))
    except IntegrityError:
        raise ValidationError.for_field("name", "has already been taken")
    logger.info("Product %s (%s) created", product.name, product.id)
    db.refresh(product)
    return product


def get_product(db: Session, product_id: str) -> Product | None:
    return db.query(Product).filter(Product.id == product_id).first()


def get_product_by_name(db: Session, name: str) -> Product | None:
    return db.query(Product).filter(Product.name == name).first()


def list_products(db: Session, skip: int = 0, limit: int | None = None, query: str | None = None) -> list[Product]:
    q = db.query(Product)
    if query:
        pattern = f"%{query}%"
        q = q.filter(Product.name.ilike(pattern) | Product.description.ilike(pattern))
    return q.order_by(Product.created_at.desc()).offset(skip).limit(settings.DEFAULT_PAGE_SIZE if limit is None else limit).all()


def update_product(db: Session, product_id: str, data: ProductUpdate) -> Product:
    product = get_product(db, product_id)
    if not product:
        raise NotFoundError("Product", product_id)
    update_data = data.model_dump(exclude_unset=True)
    _validate(db, update_data, product_id=product.id)
    try:
        with atomic(db):
            for field, value in update_data.items():
                setattr(product, field, value)
    except IntegrityError:
        raise ValidationError.for_field("name", "has already been taken")
    db.refresh(product)
    return product


def delete_product(db: Session, product_id: str) -> None:
    """Delete a product and its inventory record.

    Ledger entries stay, detached from the product but keeping its name.
    Sale items are snapshots and are left untouched.
    """
    product = get_product(db, product_id)
    if not product:
        raise NotFoundError("Product", product_id)
    with atomic(db):
        db.query(InventoryMovement).filter(InventoryMovement.product_id == product.id).update(
            {InventoryMovement.product_id: None}, synchronize_session=False
        )
        db.delete(product)
    logger.info("Product %s deleted", product_id)
