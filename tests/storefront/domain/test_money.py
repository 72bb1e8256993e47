"""Tests for the Money value object and fixed-point helpers."""

from decimal import Decimal

import pytest
from protean.exceptions import ValidationError

from storefront.shared.money import Money, line_total, to_decimal


class TestToDecimal:
    def test_quantizes_to_cents(self):
        assert to_decimal("10") == Decimal("10.00")
        assert to_decimal(2.5) == Decimal("2.50")

    def test_rounds_half_up(self):
        assert to_decimal("10.005") == Decimal("10.01")

    def test_rejects_garbage(self):
        with pytest.raises(ValidationError):
            to_decimal("ten dollars")

    def test_rejects_infinity(self):
        with pytest.raises(ValidationError):
            to_decimal("Infinity")


class TestLineTotal:
    def test_multiplies_price_by_quantity(self):
        assert line_total("10.00", 2) == Decimal("20.00")
        assert line_total(Decimal("0.10"), 3) == Decimal("0.30")


class TestMoney:
    def test_of_builds_canonical_amount(self):
        money = Money.of("12.5")
        assert money.amount == "12.50"
        assert money.currency == "USD"
        assert money.value == Decimal("12.50")

    def test_custom_currency(self):
        assert Money.of(3, "EUR").currency == "EUR"

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            Money(amount="-1.00")

    def test_more_than_two_places_rejected(self):
        with pytest.raises(ValidationError):
            Money(amount="1.234")

    def test_equal_amounts_are_equal(self):
        assert Money.of("5") == Money.of("5.00")
