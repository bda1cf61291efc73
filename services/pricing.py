"""
Pricing policy: ceiling prices per grade and origin (₹ per kg).
"""
from decimal import Decimal
from typing import Optional

from services import errors
from services.errors import DomainError

ANY_ORIGIN = "any"

GRADES = ("W180", "W240", "W320", "SW240", "SW320", "mixed")
ORIGINS = ("india", "vietnam", "ghana", "tanzania", ANY_ORIGIN)

CEILING_PRICES = {
    "W180": {"india": 8500, "vietnam": 8200, "ghana": 7800, "tanzania": 7500},
    "W240": {"india": 8300, "vietnam": 8000, "ghana": 7600, "tanzania": 7300},
    "W320": {"india": 8100, "vietnam": 7800, "ghana": 7400, "tanzania": 7100},
    "SW240": {"india": 8200, "vietnam": 7900, "ghana": 7500, "tanzania": 7200},
    "SW320": {"india": 8000, "vietnam": 7700, "ghana": 7300, "tanzania": 7000},
    "mixed": {"india": 7800, "vietnam": 7500, "ghana": 7100, "tanzania": 6800},
}


def ceiling_price(grade: Optional[str], origin: Optional[str]) -> Optional[Decimal]:
    """Ceiling for the pair, or ``None`` when origin is ``any`` or the pair is not in the table."""
    if not grade or not origin:
        return None
    origin = origin.strip().lower()
    if origin == ANY_ORIGIN:
        return None
    price = CEILING_PRICES.get(grade.strip(), {}).get(origin)
    return Decimal(price) if price is not None else None


def validate_price(proposed: Decimal, grade: Optional[str], origin: Optional[str]) -> Optional[DomainError]:
    """Check a requirement's expected price against the ceiling for its grade and origin."""
    if proposed <= 0:
        return errors.invalid_price("expected_price")
    ceiling = ceiling_price(grade, origin)
    if ceiling is not None and proposed > ceiling:
        return errors.price_exceeds_ceiling(ceiling)
    return None


def validate_quote_price(proposed: Decimal, requirement) -> Optional[DomainError]:
    """
    Floor check for a quote: unless the buyer allows lower bids, the quoted
    price may not undercut the requirement's expected price.
    """
    if proposed <= 0:
        return errors.invalid_price("price")
    if not requirement.allow_lower_bid:
        floor = Decimal(requirement.expected_price)
        if proposed < floor:
            return errors.price_below_floor(floor)
    return None
