from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from stock.config import settings
from stock.models.inventory import InventoryRecord
from stock.models.sale import Sale, SaleStatus


def inventory_summary(db: Session, threshold: int | None = None) -> dict:
    if threshold is None:
        threshold = settings.LOW_STOCK_THRESHOLD
    records = db.query(InventoryRecord).join(InventoryRecord.product).all()
    total_units = sum(r.quantity for r in records)
    # Negative on-hand (oversold) stock is not counted as value
    total_value = sum((max(r.quantity, 0) * r.product.price for r in records), Decimal("0"))
    low_stock = [r for r in records if r.quantity <= threshold]

    return {
        "total_products": len(records),
        "total_units_in_stock": total_units,
        "total_inventory_value": total_value,
        "low_stock_count": len(low_stock),
        "low_stock_items": [
            {"product_id": r.product_id, "name": r.product.name, "quantity": r.quantity} for r in low_stock
        ],
    }


def sales_summary(db: Session, start_date: date | None = None, end_date: date | None = None) -> dict:
    q = db.query(Sale)
    if start_date:
        q = q.filter(Sale.sale_date >= start_date)
    if end_date:
        q = q.filter(Sale.sale_date <= end_date)

    sales = q.all()
    by_status = {s.value: 0 for s in SaleStatus}
    total_revenue = Decimal("0")

    for sale in sales:
        by_status[SaleStatus(sale.status).value] += 1
        if sale.status != SaleStatus.CANCELED:
            total_revenue += sale.total_amount

    return {
        "total_sales": len(sales),
        "sales_by_status": by_status,
        "total_revenue": total_revenue,
        "date_range": {
            "start": start_date.isoformat() if start_date else None,
            "end": end_date.isoformat() if end_date else None,
        },
    }
