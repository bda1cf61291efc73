import enum


class UserRole(str, enum.Enum):
    buyer = "buyer"
    merchant = "merchant"
    admin = "admin"


class RequirementStatus(str, enum.Enum):
    draft = "draft"
    active = "active"
    viewed = "viewed"
    responded = "responded"
    selected = "selected"
    closed = "closed"
    confirmed = "confirmed"


class QuoteStatus(str, enum.Enum):
    new = "new"
    accepted = "accepted"
    rejected = "rejected"


class OrderStatus(str, enum.Enum):
    placed = "placed"
    confirmed = "confirmed"
    cancelled = "cancelled"
