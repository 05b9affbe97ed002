from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from smallbiz.core.exceptions import ValidationError
from smallbiz.core.time_utils import to_naive_utc
from smallbiz.models.customer import Customer
from smallbiz.models.inventory import Product
from smallbiz.models.sales import PaymentStatus, Sale, SaleItem
from smallbiz.schemas.reports import (
    PaymentMethodRevenueOut,
    RevenueSummaryOut,
    SalesReportRowOut,
    TopCustomerOut,
    TopProductOut,
)
from smallbiz.services.money import average, quantize_money


def _period_label(db: Session, period: str):
    """Day or month bucket of a sale's transaction date, rendered as text by the database."""
    monthly = period == "monthly"
    if db.get_bind().dialect.name == "sqlite":
        return func.strftime("%Y-%m" if monthly else "%Y-%m-%d", Sale.transaction_date)
    return func.to_char(Sale.transaction_date, "YYYY-MM" if monthly else "YYYY-MM-DD")


def _paid_sales_between(query, start_date: datetime, end_date: datetime):
    start = to_naive_utc(start_date)
    end = to_naive_utc(end_date)
    if start > end:
        raise ValidationError("start_date must not be after end_date")
    return query.where(
        Sale.payment_status == PaymentStatus.PAID,
        Sale.transaction_date >= start,
        Sale.transaction_date <= end,
    )


def get_sales_report(
    db: Session,
    start_date: datetime,
    end_date: datetime,
    period: str = "daily",
) -> list[SalesReportRowOut]:
    paid = _paid_sales_between(
        select(_period_label(db, period).label("period"), Sale.total_amount.label("amount")),
        start_date,
        end_date,
    ).subquery()
    rows = db.execute(
        select(paid.c.period, func.sum(paid.c.amount), func.count())
        .group_by(paid.c.period)
        .order_by(paid.c.period.desc())
    ).all()

    report = []
    for label, total, count in rows:
        total = quantize_money(total)
        report.append(
            SalesReportRowOut(
                period=str(label),
                total_sales=total,
                total_transactions=int(count),
                average_transaction=average(total, int(count)),
            )
        )
    return report


def get_top_products(db: Session, limit: int = 10) -> list[TopProductOut]:
    revenue = func.sum(SaleItem.subtotal)
    rows = db.execute(
        select(
            Product.id,
            Product.name,
            func.coalesce(func.sum(SaleItem.quantity), 0).label("quantity"),
            func.coalesce(revenue, 0).label("revenue"),
        )
        .select_from(SaleItem)
        .join(Product, Product.id == SaleItem.product_id)
        .join(Sale, Sale.id == SaleItem.sale_id)
        .where(Sale.payment_status == PaymentStatus.PAID)
        .group_by(Product.id, Product.name)
        .order_by(revenue.desc(), Product.id.asc())
        .limit(limit)
    ).all()
    return [
        TopProductOut(
            product_id=int(row[0]),
            product_name=str(row[1]),
            total_quantity_sold=quantize_money(row[2]),
            total_revenue=quantize_money(row[3]),
        )
        for row in rows
    ]


def get_top_customers(db: Session, limit: int = 10) -> list[TopCustomerOut]:
    spent = func.sum(Sale.total_amount)
    # inner join drops walk-in sales
    rows = db.execute(
        select(
            Customer.id,
            Customer.name,
            func.count(Sale.id).label("purchases"),
            func.coalesce(spent, 0).label("spent"),
        )
        .select_from(Sale)
        .join(Customer, Customer.id == Sale.customer_id)
        .where(Sale.payment_status == PaymentStatus.PAID)
        .group_by(Customer.id, Customer.name)
        .order_by(spent.desc(), Customer.id.asc())
        .limit(limit)
    ).all()
    return [
        TopCustomerOut(
            customer_id=int(row[0]),
            customer_name=str(row[1]),
            total_purchases=int(row[2]),
            total_spent=quantize_money(row[3]),
        )
        for row in rows
    ]


def get_revenue_summary(db: Session, start_date: datetime, end_date: datetime) -> RevenueSummaryOut:
    amount = func.coalesce(func.sum(Sale.total_amount), 0)
    rows = db.execute(
        _paid_sales_between(
            select(Sale.payment_method, amount.label("amount"), func.count(Sale.id).label("count")),
            start_date,
            end_date,
        ).group_by(Sale.payment_method)
    ).all()

    by_method = [
        PaymentMethodRevenueOut(
            payment_method=row[0],
            total_amount=quantize_money(row[1]),
            transaction_count=int(row[2]),
        )
        for row in rows
    ]
    by_method.sort(key=lambda item: (-item.total_amount, item.payment_method.value))

    total_revenue = sum((item.total_amount for item in by_method), Decimal("0"))
    total_transactions = sum(item.transaction_count for item in by_method)
    return RevenueSummaryOut(
        total_revenue=quantize_money(total_revenue),
        total_transactions=total_transactions,
        average_transaction=average(total_revenue, total_transactions),
        revenue_by_payment_method=by_method,
        period_start=start_date,
        period_end=end_date,
    )
