"""Shared utilities used across the detailing core."""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from detailing.errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("012-345 6789")
        '0123456789'
        >>> normalize_phone("+60 (12) 345-6789")
        '+60123456789'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def is_valid_email(value: str) -> bool:
    """Loose shape check: something@something.tld with no whitespace."""
    return bool(EMAIL_PATTERN.match(value))


def clean_text(value: Optional[str]) -> Optional[str]:
    """Strip a free-text field, collapsing blank input to None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def to_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    """Exact Decimal for a money-like value; floats go through their repr."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError(f"Not a number: {value!r}", code="invalid_number")
    try:
        return Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Not a number: {value!r}", code="invalid_number") from None
