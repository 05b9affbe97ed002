from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from smallbiz.db.database import get_db
from smallbiz.schemas.customer import CustomerCreate, CustomerHistoryOut, CustomerOut, CustomerUpdate
from smallbiz.schemas.sales import SaleOut
from smallbiz.services import customers as customer_service

router = APIRouter(prefix="/customers", tags=["Customers"])


@router.post("", response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
def create_customer(payload: CustomerCreate, db: Session = Depends(get_db)):
    return customer_service.create_customer(db, payload)


@router.get("", response_model=list[CustomerOut])
def list_customers(db: Session = Depends(get_db)):
    return customer_service.list_customers(db)


@router.patch("/{customer_id}", response_model=CustomerOut)
def update_customer(customer_id: int, payload: CustomerUpdate, db: Session = Depends(get_db)):
    return customer_service.update_customer(db, customer_id, payload)


@router.get("/{customer_id}/history", response_model=CustomerHistoryOut)
def customer_history(customer_id: int, db: Session = Depends(get_db)):
    sales = customer_service.get_customer_history(db, customer_id)
    return CustomerHistoryOut(
        customer_id=customer_id,
        sales=[SaleOut.model_validate(sale) for sale in sales],
    )
