from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from smallbiz.db.database import get_db
from smallbiz.schemas.common import DeleteResult
from smallbiz.schemas.inventory import ProductCreate, ProductOut, ProductUpdate
from smallbiz.services import products as product_service

router = APIRouter(prefix="/products", tags=["Products"])


@router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    return product_service.create_product(db, payload)


@router.get("", response_model=list[ProductOut])
def list_products(db: Session = Depends(get_db)):
    return product_service.list_products(db)


@router.patch("/{product_id}", response_model=ProductOut)
def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    return product_service.update_product(db, product_id, payload)


@router.delete("/{product_id}", response_model=DeleteResult)
def delete_product(product_id: int, db: Session = Depends(get_db)):
    message = product_service.delete_product(db, product_id)
    return DeleteResult(success=True, message=message)
