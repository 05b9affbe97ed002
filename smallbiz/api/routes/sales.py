from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from smallbiz.db.database import get_db
from smallbiz.models.sales import PaymentStatus
from smallbiz.schemas.sales import SaleCreate, SaleDetailsOut, SaleItemOut, SaleOut
from smallbiz.services import sales as sale_service

router = APIRouter(prefix="/sales", tags=["Sales"])


@router.post("", response_model=SaleOut, status_code=status.HTTP_201_CREATED)
def create_sale(payload: SaleCreate, db: Session = Depends(get_db)):
    return sale_service.create_sale(db, payload)


@router.get("", response_model=list[SaleOut])
def list_sales(
    customer_id: int | None = None,
    payment_status: PaymentStatus | None = None,
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    db: Session = Depends(get_db),
):
    return sale_service.list_sales(
        db,
        customer_id=customer_id,
        payment_status=payment_status,
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/{sale_id}", response_model=SaleDetailsOut)
def sale_details(sale_id: int, db: Session = Depends(get_db)):
    sale, items = sale_service.get_sale_details(db, sale_id)
    return SaleDetailsOut(
        sale=SaleOut.model_validate(sale),
        items=[SaleItemOut.model_validate(item) for item in items],
    )
