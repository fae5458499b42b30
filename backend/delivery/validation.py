from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, TypeVar

from .errors import InvalidInputError


E = TypeVar("E")


def ensure_payload(payload: Any) -> dict:
    """Request bodies are JSON objects; anything else is rejected."""
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise InvalidInputError("Invalid JSON payload")
    return payload


def require_fields(payload: dict, fields: Iterable[str]) -> None:
    missing = [f for f in fields if payload.get(f) in (None, "")]
    if missing:
        raise InvalidInputError(f"Missing required fields: {', '.join(missing)}")


def clean_text(value: Any, field: str, *, max_length: int | None = None) -> str:
    """
    Normalize a required text field. Blank strings are rejected so that a
    PUT cannot erase a customer's name or address.
    """
    if value is None:
        raise InvalidInputError(f"{field} cannot be null")
    if isinstance(value, (dict, list, bool)):
        raise InvalidInputError(f"{field} must be a string")
    text = str(value).strip()
    if not text:
        raise InvalidInputError(f"{field} cannot be blank")
    if max_length is not None and len(text) > max_length:
        raise InvalidInputError(f"{field} exceeds max length {max_length}")
    return text


def optional_text(value: Any, field: str) -> str | None:
    if value is None:
        return None
    if isinstance(value, (dict, list, bool)):
        raise InvalidInputError(f"{field} must be a string")
    return str(value).strip() or None


def parse_enum(enum_cls: type[E], value: Any, field: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidInputError(f"Invalid {field} '{value}'. Must be one of: {allowed}")


def parse_id(value: Any, field: str) -> int:
    """Accepts integers and digit strings; rejects bools, floats and blanks."""
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise InvalidInputError(f"{field} must be an integer")


def parse_amount(value: Any) -> Decimal:
    """
    Payment amounts: strictly positive, at most two decimal places once
    quantized. Booleans are not numbers here even though bool subclasses int.
    """
    if value is None or value == "" or isinstance(value, bool):
        raise InvalidInputError("amount is required and must be greater than 0")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidInputError("amount must be a number")
    if not amount.is_finite():
        raise InvalidInputError("amount must be a number")
    try:
        amount = amount.quantize(Decimal("0.01"))
    except InvalidOperation:
        raise InvalidInputError("amount is out of range")
    if amount <= 0:
        raise InvalidInputError("amount is required and must be greater than 0")
    return amount


def stringify_detail(value: Any) -> str:
    """Detail values are stored as text; booleans keep their JSON spelling."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
