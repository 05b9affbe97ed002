from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from smallbiz.db.database import get_db
from smallbiz.schemas.inventory import LowStockItemOut, StockAdjustmentCreate, StockAdjustmentOut
from smallbiz.services import inventory as inventory_service

router = APIRouter(prefix="/inventory", tags=["Inventory"])


@router.post("/adjustments", response_model=StockAdjustmentOut, status_code=status.HTTP_201_CREATED)
def create_stock_adjustment(payload: StockAdjustmentCreate, db: Session = Depends(get_db)):
    return inventory_service.create_stock_adjustment(db, payload)


@router.get("/adjustments", response_model=list[StockAdjustmentOut])
def list_stock_adjustments(product_id: int | None = None, db: Session = Depends(get_db)):
    return inventory_service.list_stock_adjustments(db, product_id=product_id)


@router.get("/low-stock", response_model=list[LowStockItemOut])
def low_stock_products(db: Session = Depends(get_db)):
    return inventory_service.get_low_stock_products(db)
