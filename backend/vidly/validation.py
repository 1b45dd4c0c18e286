from __future__ import annotations

from typing import Any


class ValidationError(ValueError):
    """400-level input problem."""


# Largest value a signed 64-bit INTEGER column holds
MAX_IDENTIFIER = 2 ** 63 - 1
MAX_IDENTIFIER_DIGITS = len(str(MAX_IDENTIFIER))


def parse_identifier(value: Any, field: str) -> int:
    """
    Normalize a client-supplied record identifier to a positive int.

    Accepts ints and strings of decimal digits ("42", " 42 ").
    Rejects None, blank strings, booleans, floats, signs, scientific
    notation, anything <= 0 and anything past the 64-bit INTEGER range.
    """
    if value is None:
        raise ValidationError(f"{field} is required")

    # bool is a subclass of int
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer id")

    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} is required")
        if not stripped.isdigit() or not stripped.isascii():
            raise ValidationError(f"{field} must be an integer id")
        if len(stripped.lstrip("0")) > MAX_IDENTIFIER_DIGITS:
            raise ValidationError(f"{field} is out of range")
        parsed = int(stripped.lstrip("0") or "0")
    else:
        raise ValidationError(f"{field} must be an integer id")

    if parsed <= 0:
        raise ValidationError(f"{field} must be a positive integer id")
    if parsed > MAX_IDENTIFIER:
        raise ValidationError(f"{field} is out of range")

    return parsed


def require_identifiers(payload: Any, *fields: str) -> dict[str, int]:
    """
    Pull and validate the named identifier fields from a JSON body.

    Returns {field: int}. Raises ValidationError on the first bad field,
    in the order given.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    return {field: parse_identifier(payload.get(field), field) for field in fields}
