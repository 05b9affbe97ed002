"""Sale recording.

A sale is validated against the stored customer and product rows, then the
sale header, one detail row per submitted line and the stock decrements are
written in a single transaction. Stock decrements are aggregated per product
while detail rows keep the submitted line granularity.
"""
import logging
from collections import defaultdict
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from smallbiz.core.config import settings
from smallbiz.core.exceptions import ConflictError, NotFoundError, ValidationError
from smallbiz.core.time_utils import to_naive_utc
from smallbiz.models.inventory import Product
from smallbiz.models.sales import PaymentStatus, Sale, SaleItem
from smallbiz.schemas.sales import SaleCreate
from smallbiz.services.customers import get_customer
from smallbiz.services.money import quantize_money, within_tolerance

logger = logging.getLogger(__name__)


def _insufficient_stock(product: Product, required: int) -> ConflictError:
    logger.warning(
        "insufficient stock for product %s: available=%s required=%s",
        product.id,
        product.stock_quantity,
        required,
    )
    return ConflictError(
        f'Insufficient stock for product "{product.name}". '
        f"Available: {product.stock_quantity}, Required: {required}"
    )


def _load_products(db: Session, product_ids: list[int]) -> dict[int, Product]:
    rows = db.scalars(
        select(Product)
        .where(Product.id.in_(product_ids))
        .order_by(Product.id.asc())
        .with_for_update()
    ).all()
    products = {product.id: product for product in rows}
    missing = [product_id for product_id in product_ids if product_id not in products]
    if missing:
        raise NotFoundError(f"Products not found: {', '.join(str(product_id) for product_id in missing)}")
    return products


def _plan_stock_decrements(
    products: dict[int, Product],
    requested: dict[int, Decimal],
) -> dict[int, int]:
    decrements: dict[int, int] = {}
    for product_id, quantity in requested.items():
        product = products[product_id]
        if not product.tracks_stock:
            continue
        if quantity != quantity.to_integral_value():
            raise ValidationError(
                f'Quantity for product "{product.name}" must be a whole number, got {quantity}'
            )
        required = int(quantity)
        if product.stock_quantity < required:
            raise _insufficient_stock(product, required)
        decrements[product_id] = required
    return decrements


def create_sale(db: Session, payload: SaleCreate) -> Sale:
    tolerance = settings.money_tolerance
    try:
        if payload.customer_id is not None:
            get_customer(db, payload.customer_id)

        product_ids = sorted({item.product_id for item in payload.items})
        products = _load_products(db, product_ids)

        calculated_total = Decimal("0")
        requested: dict[int, Decimal] = defaultdict(Decimal)
        for item in payload.items:
            product = products[item.product_id]
            expected = item.quantity * item.unit_price
            if not within_tolerance(item.subtotal, expected, tolerance):
                raise ValidationError(
                    f'Invalid subtotal for product "{product.name}". '
                    f"Expected: {quantize_money(expected)}, Provided: {quantize_money(item.subtotal)}"
                )
            calculated_total += item.subtotal
            requested[item.product_id] += item.quantity

        if not within_tolerance(payload.total_amount, calculated_total, tolerance):
            raise ValidationError(
                f"Total amount mismatch. Expected: {quantize_money(calculated_total)}, "
                f"Provided: {quantize_money(payload.total_amount)}"
            )

        decrements = _plan_stock_decrements(products, requested)

        sale = Sale(
            customer_id=payload.customer_id,
            total_amount=quantize_money(payload.total_amount),
            payment_method=payload.payment_method,
            payment_status=payload.payment_status,
            transaction_date=to_naive_utc(payload.transaction_date) or datetime.utcnow(),
            notes=payload.notes,
        )
        sale.items = [
            SaleItem(
                product_id=item.product_id,
                quantity=quantize_money(item.quantity),
                unit_price=quantize_money(item.unit_price),
                subtotal=quantize_money(item.subtotal),
            )
            for item in payload.items
        ]
        db.add(sale)
        db.flush()

        now = datetime.utcnow()
        for product_id, quantity in decrements.items():
            result = db.execute(
                update(Product)
                .where(Product.id == product_id, Product.stock_quantity >= quantity)
                .values(stock_quantity=Product.stock_quantity - quantity, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                db.refresh(products[product_id])
                raise _insufficient_stock(products[product_id], quantity)

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(sale)
    logger.info(
        "sale %s recorded: %d items, total %s, status %s",
        sale.id,
        len(payload.items),
        sale.total_amount,
        sale.payment_status.value,
    )
    return sale


def list_sales(
    db: Session,
    *,
    customer_id: int | None = None,
    payment_status: PaymentStatus | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> list[Sale]:
    query = select(Sale).order_by(Sale.transaction_date.desc(), Sale.id.desc())
    if customer_id is not None:
        query = query.where(Sale.customer_id == customer_id)
    if payment_status is not None:
        query = query.where(Sale.payment_status == payment_status)
    if date_from is not None:
        query = query.where(Sale.transaction_date >= to_naive_utc(date_from))
    if date_to is not None:
        query = query.where(Sale.transaction_date <= to_naive_utc(date_to))
    return list(db.scalars(query).all())


def get_sale(db: Session, sale_id: int) -> Sale:
    sale = db.get(Sale, sale_id)
    if not sale:
        raise NotFoundError(f"Sale with ID {sale_id} not found")
    return sale


def get_sale_details(db: Session, sale_id: int) -> tuple[Sale, list[SaleItem]]:
    sale = get_sale(db, sale_id)
    return sale, list(sale.items)
