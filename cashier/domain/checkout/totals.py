# cashier/domain/checkout/totals.py
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from .catalog import to_decimal

CENT = Decimal("0.01")
ZERO = Decimal("0")


def money(value: Decimal) -> Decimal:
    """Round a monetary amount to cents for display and tendering."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal = ZERO
    tax: Decimal = ZERO
    total: Decimal = ZERO

    def rounded(self) -> "Totals":
        return Totals(
            subtotal=money(self.subtotal),
            tax=money(self.tax),
            total=money(self.total),
        )


def compute_totals(items: Iterable, tax_rate: Decimal) -> Totals:
    """Derive subtotal, tax and total from line items.

    Amounts keep full Decimal precision; rounding happens only through
    ``money`` when a value is presented.
    """
    subtotal = sum((item.unit_price * item.quantity for item in items), ZERO)
    tax = subtotal * to_decimal(tax_rate)
    return Totals(subtotal=subtotal, tax=tax, total=subtotal + tax)
