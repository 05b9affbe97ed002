from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from smallbiz.models.inventory import AdjustmentType
from smallbiz.schemas.common import Money, required_text


class ProductCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None
    price: Decimal = Field(gt=0, decimal_places=2)
    stock_quantity: int | None = Field(default=None, ge=0)
    is_service: bool = False
    low_stock_threshold: int | None = Field(default=None, ge=0)

    _name_required = field_validator("name")(required_text)


class ProductUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    price: Decimal | None = Field(default=None, gt=0, decimal_places=2)
    stock_quantity: int | None = Field(default=None, ge=0)
    is_service: bool | None = None
    low_stock_threshold: int | None = Field(default=None, ge=0)

    @field_validator("name", "price", "is_service")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value

    _name_required = field_validator("name")(required_text)


class ProductOut(BaseModel):
    id: int
    name: str
    description: str | None
    price: Money
    stock_quantity: int | None
    is_service: bool
    low_stock_threshold: int | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class StockAdjustmentCreate(BaseModel):
    product_id: int
    adjustment_type: AdjustmentType
    quantity_change: int = Field(description="Delta for increase/decrease, absolute level for correction")
    reason: str = Field(min_length=1, max_length=255)
    adjusted_by: str = Field(min_length=1, max_length=120)
    adjustment_date: datetime | None = None


class StockAdjustmentOut(BaseModel):
    id: int
    product_id: int
    adjustment_type: AdjustmentType
    quantity_change: int
    reason: str
    adjusted_by: str
    adjustment_date: datetime
    created_at: datetime

    model_config = {"from_attributes": True}


class LowStockItemOut(BaseModel):
    product_id: int
    product_name: str
    current_stock: int
    low_stock_threshold: int
    stock_difference: int
