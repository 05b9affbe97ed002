from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, PlainSerializer

# Stored as Numeric(10, 2); sent to clients as JSON numbers, not strings.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


def required_text(value: str | None) -> str | None:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


class DeleteResult(BaseModel):
    success: bool
    message: str
