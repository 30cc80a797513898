from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from stock.database import get_db
from stock.schemas.customer import CustomerCreate, CustomerOut, CustomerUpdate
from stock.schemas.sale import SaleOut
from stock.services import customer_service

router = APIRouter(prefix="/customers", tags=["Customers"])


@router.post("", response_model=CustomerOut, status_code=201)
def create_customer(data: CustomerCreate, db: Session = Depends(get_db)):
    return customer_service.create_customer(db, data)


@router.get("", response_model=list[CustomerOut])
def list_customers(skip: int = 0, limit: int | None = None, query: str | None = None, db: Session = Depends(get_db)):
    return customer_service.list_customers(db, skip=skip, limit=limit, query=query)


@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: str, db: Session = Depends(get_db)):
    customer = customer_service.get_customer(db, customer_id)
    if not customer:
        raise HTTPException(404, "Customer not found")
    return customer


@router.patch("/{customer_id}", response_model=CustomerOut)
def update_customer(customer_id: str, data: CustomerUpdate, db: Session = Depends(get_db)):
    return customer_service.update_customer(db, customer_id, data)


@router.delete("/{customer_id}", status_code=204)
def delete_customer(customer_id: str, db: Session = Depends(get_db)):
    customer_service.delete_customer(db, customer_id)


@router.get("/{customer_id}/sales", response_model=list[SaleOut])
def customer_sales(customer_id: str, db: Session = Depends(get_db)):
    return customer_service.list_customer_sales(db, customer_id)
