import logging

from sqlalchemy.orm import Session

from stock.config import settings
from stock.database import atomic
from stock.errors import NotFoundError, StateError, ValidationError
from stock.models.customer import Customer
from stock.models.sale import Sale
from stock.schemas.customer import CustomerCreate, CustomerUpdate

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "email", "phone")


def _validate(fields: dict) -> None:
    errors = {}
    for field in REQUIRED_FIELDS:
        if field in fields:
            value = (fields[field] or "").strip()
            if not value:
                errors[field] = ["can't be blank"]
            else:
                fields[field] = value
    if errors:
        raise ValidationError(errors)


def create_customer(db: Session, data: CustomerCreate) -> Customer:
    fields = data.model_dump()
    _validate(fields)
    customer = Customer(**fields)
    with atomic(db):
        db.add(customer)
    logger.info("Customer %s created", customer.id)
    db.refresh(customer)
    return customer


def get_customer(db: Session, customer_id: str) -> Customer | None:
    return db.query(Customer).filter(Customer.id == customer_id).first()


def list_customers(db: Session, skip: int = 0, limit: int | None = None, query: str | None = None) -> list[Customer]:
    q = db.query(Customer)
    if query:
        q = q.filter(Customer.name.ilike(f"%{query}%"))
    return q.order_by(Customer.name).offset(skip).limit(settings.DEFAULT_PAGE_SIZE if limit is None else limit).all()


def update_customer(db: Session, customer_id: str, data: CustomerUpdate) -> Customer:
    customer = get_customer(db, customer_id)
    if not customer:
        raise NotFoundError("Customer", customer_id)
    update_data = data.model_dump(exclude_unset=True)
    _validate(update_data)
    with atomic(db):
        for field, value in update_data.items():
            setattr(customer, field, value)
    db.refresh(customer)
    return customer


def delete_customer(db: Session, customer_id: str) -> None:
    customer = get_customer(db, customer_id)
    if not customer:
        raise NotFoundError("Customer", customer_id)
    if db.query(Sale).filter(Sale.customer_id == customer.id).first():
        raise StateError("Cannot delete a customer that has sales")
    with atomic(db):
        db.delete(customer)


def list_customer_sales(db: Session, customer_id: str) -> list[Sale]:
    customer = get_customer(db, customer_id)
    if not customer:
        raise NotFoundError("Customer", customer_id)
    return (
        db.query(Sale)
        .filter(Sale.customer_id == customer.id)
        .order_by(Sale.sale_date.desc(), Sale.created_at.desc())
        .all()
    )
