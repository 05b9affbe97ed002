from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from smallbiz.models.sales import PaymentMethod
from smallbiz.schemas.common import Money

ReportPeriod = Literal["daily", "monthly"]


class SalesReportRowOut(BaseModel):
    period: str
    total_sales: Money
    total_transactions: int
    average_transaction: Money


class TopProductOut(BaseModel):
    product_id: int
    product_name: str
    total_quantity_sold: Money
    total_revenue: Money


class TopCustomerOut(BaseModel):
    customer_id: int
    customer_name: str
    total_purchases: int
    total_spent: Money


class PaymentMethodRevenueOut(BaseModel):
    payment_method: PaymentMethod
    total_amount: Money
    transaction_count: int


class RevenueSummaryOut(BaseModel):
    total_revenue: Money
    total_transactions: int
    average_transaction: Money
    revenue_by_payment_method: list[PaymentMethodRevenueOut]
    period_start: datetime
    period_end: datetime
