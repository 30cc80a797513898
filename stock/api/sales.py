from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from stock.database import get_db
from stock.models.sale import SaleStatus
from stock.schemas.sale import SaleCreate, SaleOut, SaleUpdate
from stock.services import sale_service

router = APIRouter(prefix="/sales", tags=["Sales"])


@router.post("", response_model=SaleOut, status_code=201)
def create_sale(data: SaleCreate, db: Session = Depends(get_db)):
    return sale_service.create_sale(db, data)


@router.get("", response_model=list[SaleOut])
def list_sales(
    skip: int = 0,
    limit: int | None = None,
    query: str | None = None,
    status: SaleStatus | None = None,
    customer_id: str | None = None,
    db: Session = Depends(get_db),
):
    return sale_service.list_sales(db, skip=skip, limit=limit, query=query, status=status, customer_id=customer_id)


@router.get("/{sale_id}", response_model=SaleOut)
def get_sale(sale_id: str, db: Session = Depends(get_db)):
    sale = sale_service.get_sale(db, sale_id)
    if not sale:
        raise HTTPException(404, "Sale not found")
    return sale


@router.patch("/{sale_id}", response_model=SaleOut)
def update_sale(sale_id: str, data: SaleUpdate, db: Session = Depends(get_db)):
    return sale_service.update_sale(db, sale_id, data)


@router.post("/{sale_id}/cancel", response_model=SaleOut)
def cancel_sale(sale_id: str, db: Session = Depends(get_db)):
    return sale_service.cancel_sale(db, sale_id)


@router.delete("/{sale_id}", status_code=204)
def delete_sale(sale_id: str, db: Session = Depends(get_db)):
    sale_service.delete_sale(db, sale_id)
