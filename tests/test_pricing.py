from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace

import pytest

from services import pricing


class TestCeilingPrice:
    def test_known_pair(self):
        assert pricing.ceiling_price("W240", "india") == Decimal("8300")

    def test_origin_is_case_insensitive(self):
        assert pricing.ceiling_price("SW320", "Vietnam") == Decimal("7700")

    def test_any_origin_has_no_ceiling(self):
        assert pricing.ceiling_price("W240", "any") is None

    def test_unknown_grade_has_no_ceiling(self):
        assert pricing.ceiling_price("W450", "india") is None

    def test_unknown_origin_has_no_ceiling(self):
        assert pricing.ceiling_price("W240", "brazil") is None

    @pytest.mark.parametrize("grade", pricing.GRADES)
    def test_every_grade_covers_every_concrete_origin(self, grade):
        for origin in pricing.ORIGINS:
            if origin != pricing.ANY_ORIGIN:
                assert pricing.ceiling_price(grade, origin) is not None


class TestValidatePrice:
    def test_at_or_below_ceiling_is_ok(self):
        assert pricing.validate_price(Decimal("8000"), "W240", "india") is None
        assert pricing.validate_price(Decimal("8300"), "W240", "india") is None

    def test_above_ceiling(self):
        error = pricing.validate_price(Decimal("8301"), "W240", "india")
        assert error.code == "PriceExceedsCeiling"
        assert error.extra["ceiling"] == Decimal("8300")

    def test_no_ceiling_for_any_origin(self):
        assert pricing.validate_price(Decimal("99999"), "W240", "any") is None

    def test_zero_price_is_invalid(self):
        assert pricing.validate_price(Decimal("0"), "W240", "any").code == "InvalidPrice"


class TestValidateQuotePrice:
    def _requirement(self, allow_lower_bid):
        return SimpleNamespace(expected_price=Decimal("8000"), allow_lower_bid=allow_lower_bid)

    def test_below_floor_rejected_without_lower_bids(self):
        error = pricing.validate_quote_price(Decimal("7900"), self._requirement(False))
        assert error.code == "PriceBelowFloor"
        assert error.kind == "validation"

    def test_equal_to_floor_is_ok(self):
        assert pricing.validate_quote_price(Decimal("8000"), self._requirement(False)) is None

    def test_lower_bid_allowed(self):
        assert pricing.validate_quote_price(Decimal("6500"), self._requirement(True)) is None

    def test_lower_bid_must_still_be_positive(self):
        assert pricing.validate_quote_price(Decimal("0"), self._requirement(True)).code == "InvalidPrice"
