# backend/drivebook/schemas/base.py
"""Common bases and field types for request and response schemas."""

from decimal import Decimal, InvalidOperation
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer


class ResponseModel(BaseModel):
    """Outgoing payloads; built straight from ORM rows."""

    model_config = ConfigDict(use_enum_values=True, populate_by_name=True, from_attributes=True)


class RequestModel(BaseModel):
    """Incoming payloads. Unknown keys are a 422, strings are stripped."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True, str_strip_whitespace=True)


def _to_decimal(value: Any) -> Any:
    # bool is an int subclass; True must not become a price of 1
    if isinstance(value, bool):
        raise ValueError("amount must be a number")
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"invalid amount: {value!r}") from None
    return value


# Decimal internally, a JSON number on the wire
Money = Annotated[
    Decimal,
    BeforeValidator(_to_decimal),
    PlainSerializer(float, return_type=float),
]
