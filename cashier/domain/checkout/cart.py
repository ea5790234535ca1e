# cashier/domain/checkout/cart.py
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import List, Optional, Tuple

from .catalog import CatalogEntry, to_decimal
from .totals import Totals, compute_totals


@dataclass
class LineItem:
    """One product's accumulated quantity within a transaction.

    Name and unit price are captured when the product is first scanned so
    the sale does not depend on later catalog changes.
    """

    product_id: str
    name: str
    unit_price: Decimal
    quantity: int = 1

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class Cart:
    """Ordered line items of the active sale with always-current totals."""

    def __init__(self, tax_rate: Decimal):
        self.tax_rate = to_decimal(tax_rate)
        self._items: List[LineItem] = []
        self.totals = Totals()

    @property
    def items(self) -> Tuple[LineItem, ...]:
        return tuple(self._items)

    @property
    def subtotal(self) -> Decimal:
        return self.totals.subtotal

    @property
    def tax(self) -> Decimal:
        return self.totals.tax

    @property
    def total(self) -> Decimal:
        return self.totals.total

    def find(self, product_id: str) -> Optional[LineItem]:
        for item in self._items:
            if item.product_id == product_id:
                return item
        return None

    def add_item(self, product_id: str, entry: CatalogEntry) -> LineItem:
        # merge if same product; keep the price captured at first scan
        item = self.find(product_id)
        if item is not None:
            item.quantity += 1
        else:
            item = LineItem(
                product_id=product_id,
                name=entry.name,
                unit_price=entry.unit_price,
            )
            self._items.append(item)
        self._recalculate()
        return item

    def remove_item(self, product_id: str) -> bool:
        remaining = [i for i in self._items if i.product_id != product_id]
        removed = len(remaining) != len(self._items)
        self._items = remaining
        self._recalculate()
        return removed

    def is_empty(self) -> bool:
        return len(self._items) == 0

    def clear(self) -> None:
        self._items = []
        self._recalculate()

    def snapshot(self) -> List[LineItem]:
        """Detached copies of the lines, safe to hand to event consumers."""
        return [replace(item) for item in self._items]

    def _recalculate(self) -> None:
        self.totals = compute_totals(self._items, self.tax_rate)

    def __len__(self) -> int:
        return len(self._items)
