"""
Test suite for money arithmetic, formatting and amount parsing
"""

import pytest
from decimal import Decimal

from smartbank.currency import (
    Currency, Money, format_amount, to_decimal, decimal_from_string, has_valid_precision,
    is_representable
)


class TestMoney:
    """Test Money value semantics"""

    def test_rounds_to_currency_precision(self):
        assert Money(Decimal("10.005"), Currency.EGP).amount == Decimal("10.01")
        assert Money("3", Currency.EGP).amount == Decimal("3.00")

    def test_float_input_goes_through_string(self):
        assert Money(0.1, Currency.EGP) + Money(0.2, Currency.EGP) == Money("0.3", Currency.EGP)

    def test_arithmetic_and_comparison(self):
        a = Money("100.50", Currency.EGP)
        b = Money("0.50", Currency.EGP)

        assert a + b == Money("101", Currency.EGP)
        assert a - b == Money("100", Currency.EGP)
        assert b < a
        assert a >= b
        assert (-b).is_negative()
        assert Money.zero(Currency.EGP).is_zero()

    def test_mixed_currency_rejected(self):
        with pytest.raises(ValueError, match="Cannot add"):
            Money("1", Currency.EGP) + Money("1", Currency.USD)
        with pytest.raises(ValueError, match="Cannot compare"):
            Money("1", Currency.EGP) < Money("1", Currency.USD)

    def test_hashable(self):
        assert len({Money("1", Currency.EGP), Money("1.00", Currency.EGP)}) == 1


class TestFormatting:
    """Two decimals, thousands separator, currency suffix"""

    @pytest.mark.parametrize("amount,expected", [
        ("0", "0.00 EGP"),
        ("5.5", "5.50 EGP"),
        ("1000", "1,000.00 EGP"),
        ("1234567.89", "1,234,567.89 EGP"),
    ])
    def test_format_amount(self, amount, expected):
        assert format_amount(Money(amount, Currency.EGP)) == expected
        assert Money(amount, Currency.EGP).to_string() == expected

    def test_currency_from_code(self):
        assert Currency.from_code(" usd ") is Currency.USD
        with pytest.raises(ValueError):
            Currency.from_code("XYZ")


class TestParsing:
    """Test numeric conversion helpers"""

    @pytest.mark.parametrize("value,expected", [
        (5, Decimal("5")),
        ("12.34", Decimal("12.34")),
        (0.1, Decimal("0.1")),
        (Decimal("7.25"), Decimal("7.25")),
    ])
    def test_to_decimal(self, value, expected):
        assert to_decimal(value) == expected

    @pytest.mark.parametrize("value", ["abc", "", "NaN", "Infinity", float("inf"), True, None, [1]])
    def test_to_decimal_rejects(self, value):
        with pytest.raises(ValueError):
            to_decimal(value)

    @pytest.mark.parametrize("text,expected", [
        ("100", Decimal("100")),
        ("1,500.25", Decimal("1500.25")),
        ("12,50", Decimal("12.50")),
        ("1,000", Decimal("1000")),
        ("1,000,000", Decimal("1000000")),
        ("EGP 2,500,000.75", Decimal("2500000.75")),
        ("EGP 42.10", Decimal("42.10")),
        ("-5", Decimal("-5")),
    ])
    def test_decimal_from_string(self, text, expected):
        assert decimal_from_string(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "   "])
    def test_decimal_from_string_rejects(self, text):
        with pytest.raises(ValueError):
            decimal_from_string(text)

    def test_precision_check(self):
        assert has_valid_precision(Decimal("1.23"), Currency.EGP)
        assert has_valid_precision(Decimal("1"), Currency.EGP)
        assert not has_valid_precision(Decimal("1.234"), Currency.EGP)

    def test_out_of_range_amounts(self):
        assert is_representable(Decimal("99999999999999999999999999.99"), Currency.EGP)
        assert not is_representable(Decimal("1e26"), Currency.EGP)
        with pytest.raises(ValueError, match="out of range"):
            has_valid_precision(Decimal("1e27"), Currency.EGP)
        with pytest.raises(ValueError, match="out of range"):
            Money(Decimal("1e27"), Currency.EGP)
