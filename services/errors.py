"""
Typed outcomes for the negotiation workflow.

Expected domain conditions are *returned* as ``DomainError`` values so the
caller can tell invalid input, a state conflict and a missing record apart.
Only transport failures on the client side are raised as exceptions.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, TypeVar, Union

VALIDATION = "validation"
CONFLICT = "conflict"
NOT_FOUND = "not_found"
FORBIDDEN = "forbidden"

T = TypeVar("T")


@dataclass(frozen=True)
class DomainError:
    code: str
    kind: str
    message: str
    extra: Dict[str, Any] = field(default_factory=dict)

    def as_detail(self) -> Dict[str, Any]:
        detail = {"code": self.code, "kind": self.kind, "message": self.message}
        detail.update({k: _jsonable(v) for k, v in self.extra.items()})
        return detail


def _jsonable(value):
    if value is None or isinstance(value, (bool, int, str)):
        return value
    return str(value)


Result = Union[T, DomainError]


def is_error(value) -> bool:
    return isinstance(value, DomainError)


# Validation errors

def not_a_number(field_name: str, raw) -> DomainError:
    return DomainError("NotANumber", VALIDATION, f"{field_name} must be a non-negative number, got {raw!r}",
                       {"field": field_name})


def quantity_out_of_range(reason: str, bound) -> DomainError:
    if reason == "below_minimum":
        message = f"Quantity cannot be less than the minimum quantity ({bound}kg)"
    else:
        message = f"Quantity cannot be more than the required quantity ({bound}kg)"
    return DomainError("QuantityOutOfRange", VALIDATION, message, {"reason": reason, "bound": bound})


def invalid_quantity(message: str) -> DomainError:
    return DomainError("InvalidQuantity", VALIDATION, message)


def price_exceeds_ceiling(ceiling) -> DomainError:
    return DomainError("PriceExceedsCeiling", VALIDATION,
                       f"Price cannot be higher than the ceiling price ₹{ceiling}", {"ceiling": ceiling})


def price_below_floor(floor) -> DomainError:
    return DomainError("PriceBelowFloor", VALIDATION,
                       f"Price cannot be lower than expected price ₹{floor}", {"floor": floor})


def invalid_price(field_name: str = "price") -> DomainError:
    return DomainError("InvalidPrice", VALIDATION, f"{field_name} must be greater than zero", {"field": field_name})


def missing_field(field_name: str) -> DomainError:
    return DomainError("MissingField", VALIDATION, f"{field_name} is required", {"field": field_name})


def deadline_passed(deadline) -> DomainError:
    return DomainError("DeadlinePassed", VALIDATION, f"Delivery deadline {deadline} is in the past",
                       {"deadline": deadline})


# State conflicts

def requirement_not_open(status, reason: Optional[str] = None) -> DomainError:
    message = f"Requirement is not open for quotes (status: {getattr(status, 'value', status)})"
    if reason:
        message = f"{message}: {reason}"
    return DomainError("RequirementNotOpen", CONFLICT, message, {"status": getattr(status, "value", status)})


def duplicate_acceptance(accepted_quote_id) -> DomainError:
    return DomainError("DuplicateAcceptance", CONFLICT,
                       "Another quote has already been accepted for this requirement",
                       {"accepted_quote_id": accepted_quote_id})


def already_terminal(status) -> DomainError:
    value = getattr(status, "value", status)
    return DomainError("AlreadyTerminal", CONFLICT, f"Requirement is already {value}", {"status": value})


def quote_not_open(status) -> DomainError:
    value = getattr(status, "value", status)
    return DomainError("QuoteNotOpen", CONFLICT, f"Quote already responded to (status: {value})", {"status": value})


def order_not_confirmable(message: str) -> DomainError:
    return DomainError("OrderNotConfirmable", CONFLICT, message)


# Lookups and permissions

def requirement_not_found(requirement_id) -> DomainError:
    return DomainError("RequirementNotFound", NOT_FOUND, "Requirement not found", {"requirement_id": requirement_id})


def quote_not_found(quote_id) -> DomainError:
    return DomainError("QuoteNotFound", NOT_FOUND, "Quote not found", {"quote_id": quote_id})


def user_not_found(user_id) -> DomainError:
    return DomainError("UserNotFound", NOT_FOUND, "User not found", {"user_id": user_id})


def not_permitted(message: str) -> DomainError:
    return DomainError("NotPermitted", FORBIDDEN, message)
