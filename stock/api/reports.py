from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stock.database import get_db
from stock.services import report_service

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/inventory")
def inventory_report(threshold: int | None = None, db: Session = Depends(get_db)):
    return report_service.inventory_summary(db, threshold)


@router.get("/sales")
def sales_report(start_date: date | None = None, end_date: date | None = None, db: Session = Depends(get_db)):
    return report_service.sales_summary(db, start_date, end_date)
