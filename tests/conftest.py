"""Shared pytest fixtures for the checkout tests."""

from decimal import Decimal

import pytest

from cashier.domain.checkout.catalog import DEFAULT_PRODUCTS, CatalogEntry, InMemoryCatalog
from cashier.domain.checkout.payments import CardSettlement, CashSettlement, MobileSettlement, PaymentMethod
from cashier.domain.checkout.service import TransactionController

TAX_RATE = Decimal("0.085")

COFFEE_MUG = "123456789"
T_SHIRT = "987654321"
NOTEBOOK = "456789123"
PEN = "789123456"
DRESS_SHIRT = "555000111"


def make_entry(product_id: str, name: str, price: str) -> CatalogEntry:
    return CatalogEntry(product_id=product_id, name=name, unit_price=Decimal(price))


@pytest.fixture
def catalog():
    """Demo products plus a second shirt so "shirt" is ambiguous."""
    entries = [make_entry(*row) for row in DEFAULT_PRODUCTS]
    entries.append(make_entry(DRESS_SHIRT, "Dress Shirt", "39.99"))
    return InMemoryCatalog(entries)


@pytest.fixture
def settlements():
    return {
        PaymentMethod.CASH: CashSettlement(),
        PaymentMethod.CARD: CardSettlement(delay=0),
        PaymentMethod.MOBILE: MobileSettlement(delay=0),
    }


@pytest.fixture
def controller(catalog, settlements):
    return TransactionController(
        catalog,
        tax_rate=TAX_RATE,
        settlements=settlements,
        settlement_timeout=5.0,
    )


@pytest.fixture
def events(controller):
    """Every event the controller publishes, in order."""
    received = []
    controller.bus.subscribe(received.append)
    return received


def event_types(events):
    return [e.type for e in events]
