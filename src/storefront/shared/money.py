"""Money value object and fixed-point helpers.

Amounts are kept as canonical decimal strings ("10.00") so that they survive
every persistence provider without float rounding. Arithmetic happens on
``decimal.Decimal`` values quantized to cents.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String

from storefront.domain import storefront

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    """Coerce an int, str, float or Decimal into a cent-quantized Decimal."""
    if isinstance(value, Decimal):
        candidate = value
    else:
        try:
            candidate = Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError({"amount": [f"Invalid monetary amount: {value!r}"]}) from None

    if not candidate.is_finite():
        raise ValidationError({"amount": [f"Invalid monetary amount: {value!r}"]})

    return candidate.quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(unit_price, quantity: int) -> Decimal:
    """Subtotal of a line: unit price times quantity, in cents."""
    return to_decimal(to_decimal(unit_price) * quantity)


@storefront.value_object
class Money:
    """Value object representing a non-negative fixed-point amount with currency."""

    amount: String(required=True, max_length=32)
    currency: String(max_length=3, default="USD")

    @invariant.post
    def amount_must_be_non_negative_cents(self):
        try:
            value = Decimal(self.amount)
        except (InvalidOperation, TypeError):
            raise ValidationError({"amount": [f"Invalid monetary amount: {self.amount!r}"]}) from None

        if not value.is_finite() or value < 0:
            raise ValidationError({"amount": ["Amount must be a non-negative number"]})

        if value.as_tuple().exponent < -2:
            raise ValidationError({"amount": ["Amount cannot have more than two decimal places"]})

    @classmethod
    def of(cls, value, currency="USD"):
        return cls(amount=str(to_decimal(value)), currency=currency)

    @property
    def value(self) -> Decimal:
        return to_decimal(self.amount)
