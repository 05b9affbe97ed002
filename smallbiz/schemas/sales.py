from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from smallbiz.models.sales import PaymentMethod, PaymentStatus
from smallbiz.schemas.common import Money


class SaleItemIn(BaseModel):
    product_id: int
    quantity: Decimal = Field(gt=0, decimal_places=2)
    unit_price: Decimal = Field(gt=0, decimal_places=2)
    subtotal: Decimal = Field(gt=0, decimal_places=2)


class SaleCreate(BaseModel):
    customer_id: int | None = None
    total_amount: Decimal = Field(gt=0, decimal_places=2)
    payment_method: PaymentMethod
    payment_status: PaymentStatus = PaymentStatus.PAID
    transaction_date: datetime | None = None
    notes: str | None = None
    items: list[SaleItemIn] = Field(min_length=1)


class SaleOut(BaseModel):
    id: int
    customer_id: int | None
    total_amount: Money
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    transaction_date: datetime
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SaleItemOut(BaseModel):
    id: int
    sale_id: int
    product_id: int
    quantity: Money
    unit_price: Money
    subtotal: Money
    created_at: datetime

    model_config = {"from_attributes": True}


class SaleDetailsOut(BaseModel):
    sale: SaleOut
    items: list[SaleItemOut]
