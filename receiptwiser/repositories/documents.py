"""Conversion between domain models and MongoDB documents.

Currency crosses into MongoDB as Decimal128 and comes back as float.
"""
from decimal import Decimal
from typing import Any, Dict, Iterable

from bson import Decimal128

from receiptwiser.utils.money import to_decimal


def to_decimal128(value: float) -> Decimal128:
    return Decimal128(to_decimal(value))


def from_decimal128(value: Any) -> Any:
    if isinstance(value, Decimal128):
        return float(value.to_decimal())
    if isinstance(value, Decimal):
        return float(value)
    return value


def encode_amounts(doc: Dict[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
    """Return a copy of ``doc`` with the named fields stored as Decimal128."""
    encoded = dict(doc)
    for field in fields:
        if encoded.get(field) is not None:
            encoded[field] = to_decimal128(encoded[field])
    return encoded


def decode_amounts(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``doc`` with Decimal128 values turned back into floats."""
    return {key: from_decimal128(value) for key, value in doc.items()}
