import logging
from datetime import datetime

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from smallbiz.core.exceptions import ConflictError, NotFoundError
from smallbiz.models.inventory import Product, StockAdjustment
from smallbiz.models.sales import SaleItem
from smallbiz.schemas.inventory import ProductCreate, ProductUpdate
from smallbiz.services.money import quantize_money

logger = logging.getLogger(__name__)


def get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if not product:
        raise NotFoundError(f"Product with ID {product_id} not found")
    return product


def list_products(db: Session) -> list[Product]:
    return list(db.scalars(select(Product).order_by(Product.name.asc(), Product.id.asc())).all())


def create_product(db: Session, payload: ProductCreate) -> Product:
    product = Product(
        name=payload.name,
        description=payload.description,
        price=quantize_money(payload.price),
        stock_quantity=None if payload.is_service else payload.stock_quantity,
        is_service=payload.is_service,
        low_stock_threshold=None if payload.is_service else payload.low_stock_threshold,
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    logger.info("product %s created (service=%s)", product.id, product.is_service)
    return product


def update_product(db: Session, product_id: int, payload: ProductUpdate) -> Product:
    product = get_product(db, product_id)

    changes = payload.model_dump(exclude_unset=True)
    if "price" in changes:
        changes["price"] = quantize_money(changes["price"])
    for field, value in changes.items():
        setattr(product, field, value)

    if product.is_service:
        product.stock_quantity = None
        product.low_stock_threshold = None
    product.updated_at = datetime.utcnow()

    db.commit()
    db.refresh(product)
    logger.info("product %s updated: %s", product.id, sorted(changes))
    return product


def delete_product(db: Session, product_id: int) -> str:
    product = get_product(db, product_id)

    sold = db.scalar(select(exists().where(SaleItem.product_id == product_id)))
    adjusted = db.scalar(select(exists().where(StockAdjustment.product_id == product_id)))
    if sold or adjusted:
        logger.warning("refusing to delete product %s: referenced by sales or adjustments", product_id)
        raise ConflictError(
            f'Cannot delete product "{product.name}": it is referenced by existing sales or stock adjustments'
        )

    name = product.name
    db.delete(product)
    db.commit()
    logger.info("product %s deleted", product_id)
    return f'Product "{name}" deleted successfully'
