from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from smallbiz.schemas.common import required_text
from smallbiz.schemas.sales import SaleOut


class CustomerCreate(BaseModel):
    name: str = Field(min_length=1, max_length=160)
    phone: str | None = Field(default=None, max_length=64)
    email: EmailStr | None = None
    address: str | None = None

    _name_required = field_validator("name")(required_text)


class CustomerUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=160)
    phone: str | None = Field(default=None, max_length=64)
    email: EmailStr | None = None
    address: str | None = None

    @field_validator("name")
    @classmethod
    def _name_not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value

    _name_required = field_validator("name")(required_text)


class CustomerOut(BaseModel):
    id: int
    name: str
    phone: str | None
    email: str | None
    address: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CustomerHistoryOut(BaseModel):
    customer_id: int
    sales: list[SaleOut]
