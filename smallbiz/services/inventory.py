import logging
from datetime import datetime

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from smallbiz.core.exceptions import NotFoundError, ValidationError
from smallbiz.core.time_utils import to_naive_utc
from smallbiz.models.inventory import AdjustmentType, Product, StockAdjustment
from smallbiz.schemas.inventory import LowStockItemOut, StockAdjustmentCreate

logger = logging.getLogger(__name__)


def _resulting_stock(current: int, adjustment_type: AdjustmentType, quantity_change: int) -> int:
    if adjustment_type == AdjustmentType.CORRECTION:
        if quantity_change < 0:
            raise ValidationError("Stock correction cannot result in negative stock")
        return quantity_change

    if adjustment_type == AdjustmentType.INCREASE:
        new_stock = current + quantity_change
    else:
        new_stock = current - quantity_change
    if new_stock < 0:
        raise ValidationError("Stock adjustment would result in negative stock")
    return new_stock


def create_stock_adjustment(db: Session, payload: StockAdjustmentCreate) -> StockAdjustment:
    try:
        product = db.scalar(select(Product).where(Product.id == payload.product_id).with_for_update())
        if not product:
            raise NotFoundError(f"Product with ID {payload.product_id} not found")
        if product.is_service:
            raise ValidationError("Cannot adjust stock for services")

        quantity_before = product.stock_quantity or 0
        quantity_after = _resulting_stock(quantity_before, payload.adjustment_type, payload.quantity_change)

        adjustment = StockAdjustment(
            product_id=product.id,
            adjustment_type=payload.adjustment_type,
            quantity_change=payload.quantity_change,
            reason=payload.reason,
            adjusted_by=payload.adjusted_by,
            adjustment_date=to_naive_utc(payload.adjustment_date) or datetime.utcnow(),
        )
        product.stock_quantity = quantity_after
        product.updated_at = datetime.utcnow()
        db.add(adjustment)
        db.commit()
    except ValidationError as exc:
        db.rollback()
        logger.warning("stock adjustment on product %s rejected: %s", payload.product_id, exc.message)
        raise
    except Exception:
        db.rollback()
        raise

    db.refresh(adjustment)
    logger.info(
        "product %s stock %s -> %s (%s by %s)",
        adjustment.product_id,
        quantity_before,
        quantity_after,
        adjustment.adjustment_type.value,
        adjustment.adjusted_by,
    )
    return adjustment


def list_stock_adjustments(db: Session, product_id: int | None = None) -> list[StockAdjustment]:
    query = (
        select(StockAdjustment)
        .join(Product, Product.id == StockAdjustment.product_id)
        .order_by(StockAdjustment.adjustment_date.desc(), StockAdjustment.id.desc())
    )
    if product_id is not None:
        query = query.where(StockAdjustment.product_id == product_id)
    return list(db.scalars(query).all())


def get_low_stock_products(db: Session) -> list[LowStockItemOut]:
    current_stock = func.coalesce(Product.stock_quantity, 0)
    query = (
        select(Product)
        .where(
            Product.is_service.is_(False),
            or_(
                current_stock <= Product.low_stock_threshold,
                # no threshold configured: only an empty shelf counts
                and_(Product.low_stock_threshold.is_(None), current_stock == 0),
            ),
        )
        .order_by(current_stock.asc(), Product.id.asc())
    )
    items = []
    for product in db.scalars(query).all():
        stock = product.stock_quantity or 0
        threshold = product.low_stock_threshold or 0
        items.append(
            LowStockItemOut(
                product_id=product.id,
                product_name=product.name,
                current_stock=stock,
                low_stock_threshold=threshold,
                stock_difference=threshold - stock,
            )
        )
    return items
