from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ..errors import ValidationError

# quantities are stored in 32-bit integer columns
MAX_QUANTITY = 2**31 - 1


def ensure_quantity(value: Any, field: str = "quantity") -> int:
    """Return ``value`` as an int in ``[1, MAX_QUANTITY]``. Out-of-range values are rejected, never clamped."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required", field=field)
    try:
        as_int = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{field} must be an integer", field=field) from None
    if isinstance(value, float) and value != as_int:
        raise ValidationError(f"{field} must be an integer", field=field)
    if as_int < 1:
        raise ValidationError(f"{field} must be at least 1", field=field)
    if as_int > MAX_QUANTITY:
        raise ValidationError(f"{field} must be at most {MAX_QUANTITY}", field=field)
    return as_int


def ensure_money(value: Any, field: str, default: Optional[Decimal] = None) -> Decimal:
    if value is None:
        if default is not None:
            return default
        raise ValidationError(f"{field} is required", field=field)
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field)
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", field=field) from None
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"{field} must be >= 0", field=field)
    return amount


def ensure_text(value: Any, field: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValidationError(f"{field} is required", field=field)
    return text


def optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
