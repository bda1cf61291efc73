"""
Quantity policy: normalizes free-text numeric entry and checks bounds.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from services import errors
from services.errors import DomainError, Result

BELOW_MINIMUM = "below_minimum"
ABOVE_MAXIMUM = "above_maximum"

# currency sign, per-unit suffix and unit labels typed alongside the number
_DECORATION = re.compile(r"(₹|/\s*kg\b|\bkgs?\b)", re.IGNORECASE)


def normalize_number(raw, field_name: str = "quantity") -> Result[Decimal]:
    """
    Turn user input such as ``"1,500"``, ``"700 kg"`` or ``"₹8,200/kg"`` into a Decimal.

    Returns ``NotANumber`` when the value is empty, negative or not a finite number.
    """
    if raw is None or isinstance(raw, bool):
        return errors.not_a_number(field_name, raw)
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, (int, float)):
        value = Decimal(str(raw))
    else:
        cleaned = _DECORATION.sub("", str(raw)).replace(",", "").strip()
        if not cleaned:
            return errors.not_a_number(field_name, raw)
        try:
            value = Decimal(cleaned)
        except InvalidOperation:
            return errors.not_a_number(field_name, raw)

    if not value.is_finite() or value < 0:
        return errors.not_a_number(field_name, raw)
    return value


def validate_quantity(proposed: Decimal, minimum: Decimal, maximum: Decimal) -> Optional[DomainError]:
    """Return ``None`` when ``minimum <= proposed <= maximum``, else ``QuantityOutOfRange``."""
    if proposed < minimum:
        return errors.quantity_out_of_range(BELOW_MINIMUM, minimum)
    if proposed > maximum:
        return errors.quantity_out_of_range(ABOVE_MAXIMUM, maximum)
    return None


def validate_requirement_bounds(required: Decimal, minimum: Decimal) -> Optional[DomainError]:
    if required <= 0:
        return errors.invalid_quantity("Required quantity must be greater than zero")
    if minimum <= 0:
        return errors.invalid_quantity("Minimum supply quantity must be greater than zero")
    if minimum > required:
        return errors.invalid_quantity(
            f"Minimum supply quantity ({minimum}kg) cannot exceed required quantity ({required}kg)"
        )
    return None


def validate_quote_quantity(proposed: Decimal, requirement) -> Optional[DomainError]:
    return validate_quantity(
        proposed,
        Decimal(requirement.minimum_quantity),
        Decimal(requirement.required_quantity),
    )
