# cashier/domain/checkout/catalog.py
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Protocol, runtime_checkable


def to_decimal(value) -> Decimal:
    """Convert a price from the catalog into a Decimal.

    Floats go through their shortest repr so 12.99 stays 12.99.
    """
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class CatalogEntry:
    """Read-only product reference data, keyed by product id."""

    product_id: str
    name: str
    unit_price: Decimal

    def __post_init__(self):
        price = to_decimal(self.unit_price)
        if price < 0:
            raise ValueError("unit_price must not be negative")
        object.__setattr__(self, "unit_price", price)


@runtime_checkable
class Catalog(Protocol):
    """Interface the checkout core uses to resolve products."""

    def lookup_by_id(self, product_id: str) -> Optional[CatalogEntry]:
        ...

    def search_by_name(self, term: str) -> List[CatalogEntry]:
        ...


# Demo product table used when no catalog database is configured
DEFAULT_PRODUCTS = (
    ("123456789", "Coffee Mug", "12.99"),
    ("987654321", "T-Shirt", "24.99"),
    ("456789123", "Notebook", "8.50"),
    ("789123456", "Pen", "2.99"),
)


class InMemoryCatalog:
    def __init__(self, entries: Iterable[CatalogEntry] = ()):
        self._entries: Dict[str, CatalogEntry] = {}
        for entry in entries:
            self._entries[entry.product_id] = entry

    @classmethod
    def default(cls) -> "InMemoryCatalog":
        return cls(
            CatalogEntry(product_id=pid, name=name, unit_price=Decimal(price))
            for pid, name, price in DEFAULT_PRODUCTS
        )

    def lookup_by_id(self, product_id: str) -> Optional[CatalogEntry]:
        return self._entries.get(product_id)

    def search_by_name(self, term: str) -> List[CatalogEntry]:
        needle = term.casefold()
        return [e for e in self._entries.values() if needle in e.name.casefold()]

    def __len__(self) -> int:
        return len(self._entries)
