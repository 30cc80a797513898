from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from stock.config import settings
from stock.database import Base
from stock.errors import NotFoundError, ValidationError
from stock.models.inventory import InventoryMovement, InventoryRecord, MovementType
from stock.schemas.inventory import PurchaseCreate
from stock.schemas.product import ProductCreate
from stock.services import inventory_service, product_service, sale_service


def test_new_product_starts_with_zero_on_hand(make_product, on_hand):
    product = make_product()
    assert on_hand(product.id) == 0


def test_purchase_credits_on_hand_and_logs_movement(db, make_product, on_hand):
    product = make_product()
    movement = inventory_service.create_purchase(db, PurchaseCreate(product_id=product.id, quantity=12))

    assert movement.movement_type == MovementType.PURCHASE
    assert movement.quantity == 12
    assert movement.product_name == product.name
    assert movement.related_id is None
    assert on_hand(product.id) == 12


def test_apply_movement_direction_by_type(db, make_product):
    product = make_product(stock=10)

    for movement_type, qty, expected in [
        (MovementType.SALE, 4, 6),
        (MovementType.SALE_REVERSAL, 4, 10),
        (MovementType.PURCHASE, 5, 15),
    ]:
        movement = InventoryMovement(product_id=product.id, quantity=qty, movement_type=movement_type)
        record = inventory_service.apply_movement(db, movement)
        assert record.quantity == expected
        assert record.last_update is not None
    db.rollback()


def test_apply_movement_without_inventory_record(db, make_product):
    product = make_product()
    db.query(InventoryRecord).filter(InventoryRecord.product_id == product.id).delete()
    db.commit()

    movement = InventoryMovement(product_id=product.id, quantity=1, movement_type=MovementType.SALE)
    with pytest.raises(NotFoundError):
        inventory_service.apply_movement(db, movement)


def test_sale_movement_may_drive_stock_negative_by_default(db, make_product, on_hand):
    product = make_product(stock=2)
    inventory_service.record_movement(db, product.id, 5, MovementType.SALE)
    db.commit()
    assert on_hand(product.id) == -3


def test_negative_stock_guard(db, make_product, on_hand, monkeypatch):
    monkeypatch.setattr(settings, "ALLOW_NEGATIVE_STOCK", False)
    product = make_product(stock=2)

    with pytest.raises(ValidationError) as exc:
        inventory_service.record_movement(db, product.id, 5, MovementType.SALE)
    db.rollback()

    assert "quantity" in exc.value.errors
    assert on_hand(product.id) == 2


@pytest.mark.parametrize("quantity", [0, -3])
def test_purchase_requires_positive_quantity(db, make_product, quantity):
    product = make_product()
    with pytest.raises(ValidationError) as exc:
        inventory_service.create_purchase(db, PurchaseCreate(product_id=product.id, quantity=quantity))
    assert exc.value.errors == {"quantity": ["must be greater than 0"]}
    assert db.query(InventoryMovement).count() == 0


def test_purchase_for_unknown_product(db):
    with pytest.raises(ValidationError) as exc:
        inventory_service.create_purchase(db, PurchaseCreate(product_id="missing", quantity=1))
    assert "product_id" in exc.value.errors


def test_ledger_balance_matches_on_hand(db, make_product, make_sale):
    product = make_product(stock=10)
    inventory_service.create_purchase(db, PurchaseCreate(product_id=product.id, quantity=5))
    make_sale((product, 3))
    sale = make_sale((product, 4))
    sale_service.cancel_sale(db, sale.id)

    audit = inventory_service.audit_inventory(db, product.id)
    assert audit == {"product_id": product.id, "quantity": 12, "ledger_balance": 12, "consistent": True}


def test_audit_detects_drift(db, make_product):
    product = make_product(stock=3)
    record = inventory_service.get_inventory_by_product_id(db, product.id)
    record.quantity = 99
    db.commit()

    audit = inventory_service.audit_inventory(db, product.id)
    assert audit["ledger_balance"] == 3
    assert audit["consistent"] is False


def test_list_movements_filters(db, make_product, make_sale):
    wine = make_product(name="Malbec", stock=10)
    other = make_product(name="Merlot", stock=10)
    sale = make_sale((wine, 1), (other, 2))

    assert len(inventory_service.list_movements(db, related_id=sale.id)) == 2
    assert len(inventory_service.list_movements(db, product_id=wine.id)) == 2
    purchases = inventory_service.list_movements(db, movement_type=MovementType.PURCHASE)
    assert {m.product_id for m in purchases} == {wine.id, other.id}


def test_list_inventory_and_low_stock(db, make_product):
    make_product(name="Cabernet Sauvignon", stock=20)
    make_product(name="Chardonnay", stock=2)

    found = inventory_service.list_inventory(db, query="cabernet")
    assert [r.product_name for r in found] == ["Cabernet Sauvignon"]

    low = inventory_service.list_low_stock(db, threshold=5)
    assert [r.product_name for r in low] == ["Chardonnay"]


def test_overlapping_sales_from_two_sessions_both_count(tmp_path):
    """Two sessions that loaded the same record each debit it; neither update is lost."""
    file_engine = create_engine(f"sqlite:///{tmp_path / 'stock.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=file_engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    first, second = Session(), Session()
    try:
        product = product_service.create_product(first, ProductCreate(name="Carmenere", price=Decimal("30.00")))
        inventory_service.create_purchase(first, PurchaseCreate(product_id=product.id, quantity=10))

        assert inventory_service.get_inventory_by_product_id(first, product.id).quantity == 10
        assert inventory_service.get_inventory_by_product_id(second, product.id).quantity == 10

        inventory_service.record_movement(first, product.id, 3, MovementType.SALE)
        first.commit()
        inventory_service.record_movement(second, product.id, 2, MovementType.SALE)
        second.commit()

        audit = inventory_service.audit_inventory(first, product.id)
        assert audit["quantity"] == 5
        assert audit["ledger_balance"] == 5
        assert audit["consistent"] is True
    finally:
        first.close()
        second.close()
        file_engine.dispose()


def test_list_movements_defaults_to_configured_page_size(db, make_product, monkeypatch):
    make_product(stock=1)
    make_product(stock=1)
    monkeypatch.setattr(settings, "DEFAULT_PAGE_SIZE", 1)

    assert len(inventory_service.list_movements(db)) == 1
    assert len(inventory_service.list_inventory(db)) == 1
    assert len(inventory_service.list_movements(db, limit=10)) == 2
