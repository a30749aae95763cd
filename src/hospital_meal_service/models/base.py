"""Shared model configuration and DynamoDB value conversion helpers."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base model exposing camelCase JSON while keeping snake_case attributes.

    Incoming payloads may use either form; responses are serialized by alias.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def to_decimal(value: float | int | None) -> Decimal | None:
    """Convert a number to Decimal for DynamoDB, which rejects floats."""
    if value is None:
        return None
    return Decimal(str(value))


def from_decimal(value: Any) -> float | None:
    """Convert a DynamoDB number back to float."""
    if value is None:
        return None
    return float(value)


def drop_none(data: dict[str, Any]) -> dict[str, Any]:
    """Remove keys whose value is None; DynamoDB items omit absent attributes."""
    return {key: value for key, value in data.items() if value is not None}
