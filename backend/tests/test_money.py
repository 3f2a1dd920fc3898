"""
Currency coercion.
"""

from decimal import Decimal

import pytest

from salon.money import money_str, parse_money, to_money


class TestToMoney:
    def test_float_goes_through_str(self):
        assert to_money(15.5) == Decimal("15.50")

    def test_rounds_half_up(self):
        assert to_money("0.005") == Decimal("0.01")

    @pytest.mark.parametrize("value", ["1e30", Decimal("1e30"), 1e30])
    def test_too_large_is_value_error(self, value):
        with pytest.raises(ValueError, match="out of range"):
            to_money(value)

    @pytest.mark.parametrize("value", [None, True, "abc", "NaN", "Infinity"])
    def test_unparsable(self, value):
        with pytest.raises(ValueError):
            to_money(value)


class TestParseMoney:
    @pytest.mark.parametrize("value,expected", [("25", "25.00"), ("25.5", "25.50"), ("25.500", "25.50"), (40, "40.00")])
    def test_accepts_whole_cents(self, value, expected):
        assert money_str(parse_money(value)) == expected

    @pytest.mark.parametrize("value", ["0.005", "12.345", 0.125])
    def test_rejects_fractions_of_a_cent(self, value):
        with pytest.raises(ValueError, match="two decimal places"):
            parse_money(value)

    def test_too_large(self):
        with pytest.raises(ValueError, match="out of range"):
            parse_money("1e30")
