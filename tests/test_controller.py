"""Tests for product resolution and cart operations on the controller."""

from decimal import Decimal

from cashier.core.config import Settings
from cashier.domain.checkout.errors import FailureReason
from cashier.domain.checkout.events import AmbiguousMatch, CartChanged, ItemAdded, LookupFailed
from cashier.domain.checkout.service import ResolutionStatus, TransactionController, TransactionState
from conftest import COFFEE_MUG, DRESS_SHIRT, NOTEBOOK, T_SHIRT, event_types


def test_scan_known_product_adds_and_notifies(controller, events):
    result = controller.resolve_by_exact_id(COFFEE_MUG)

    assert result.ok
    assert result.status is ResolutionStatus.ADDED
    assert result.item.name == "Coffee Mug"
    assert controller.state is TransactionState.ACCUMULATING
    assert event_types(events) == ["item_added", "cart_changed"]
    assert isinstance(events[0], ItemAdded)
    assert events[0].message == "Added Coffee Mug to cart"
    assert events[1].subtotal == Decimal("12.99")


def test_scan_unknown_product_leaves_cart_alone(controller, events):
    result = controller.resolve_by_exact_id("000000000")

    assert result.reason is FailureReason.NOT_FOUND
    assert controller.cart.is_empty()
    assert controller.state is TransactionState.EMPTY
    assert len(events) == 1
    assert isinstance(events[0], LookupFailed)
    assert events[0].message == "Product not found: 000000000"


def test_scanning_twice_merges_quantity(controller):
    controller.resolve_by_exact_id(COFFEE_MUG)
    result = controller.resolve_by_exact_id(COFFEE_MUG)

    assert result.item.quantity == 2
    assert len(controller.cart.items) == 1


def test_cart_changed_carries_current_totals(controller, events):
    controller.resolve_by_exact_id(COFFEE_MUG)
    controller.resolve_by_exact_id(COFFEE_MUG)
    controller.resolve_by_exact_id(NOTEBOOK)

    last = [e for e in events if isinstance(e, CartChanged)][-1]
    assert [i.quantity for i in last.items] == [2, 1]
    assert last.subtotal == Decimal("34.48")
    assert last.tax == Decimal("2.9308")
    assert last.total == Decimal("37.4108")
    assert last.transaction_id == controller.transaction_id


def test_search_with_single_match_adds(controller, events):
    result = controller.resolve_by_search("MUG")

    assert result.status is ResolutionStatus.ADDED
    assert controller.cart.items[0].product_id == COFFEE_MUG
    assert event_types(events) == ["item_added", "cart_changed"]


def test_search_without_match_fails(controller, events):
    result = controller.resolve_by_search("umbrella")

    assert result.reason is FailureReason.NOT_FOUND
    assert controller.cart.is_empty()
    assert events[0].mode == "search"
    assert events[0].message == "No products found for: umbrella"


def test_ambiguous_search_waits_for_selection(controller, events):
    result = controller.resolve_by_search("shirt")

    assert result.status is ResolutionStatus.AMBIGUOUS
    assert result.reason is FailureReason.AMBIGUOUS_RESULT
    assert [c.product_id for c in result.candidates] == [T_SHIRT, DRESS_SHIRT]
    assert controller.cart.is_empty()
    assert len(events) == 1
    assert isinstance(events[0], AmbiguousMatch)
    assert len(events[0].candidates) == 2


def test_selecting_a_candidate_adds_it(controller, events):
    controller.resolve_by_search("shirt")

    result = controller.select_candidate(1)

    assert result.status is ResolutionStatus.ADDED
    assert controller.cart.items[0].product_id == DRESS_SHIRT
    assert controller.pending_candidates == []
    assert event_types(events) == ["ambiguous_match", "item_added", "cart_changed"]


def test_out_of_range_selection_is_ignored(controller, events):
    controller.resolve_by_search("shirt")
    events.clear()

    for index in (-1, 2, 7):
        result = controller.select_candidate(index)
        assert result.reason is FailureReason.INVALID_SELECTION

    assert controller.cart.is_empty()
    assert events == []
    assert len(controller.pending_candidates) == 2


def test_selection_without_pending_search_is_ignored(controller, events):
    result = controller.select_candidate(0)

    assert result.reason is FailureReason.INVALID_SELECTION
    assert controller.cart.is_empty()
    assert events == []


def test_new_lookup_discards_pending_candidates(controller):
    controller.resolve_by_search("shirt")
    controller.resolve_by_exact_id(NOTEBOOK)

    assert controller.select_candidate(0).reason is FailureReason.INVALID_SELECTION
    assert len(controller.cart.items) == 1


def test_remove_item_drops_line_and_stays_accumulating(controller, events):
    controller.resolve_by_exact_id(COFFEE_MUG)
    events.clear()

    result = controller.remove_item(COFFEE_MUG)

    assert result.status is ResolutionStatus.REMOVED
    assert controller.cart.is_empty()
    assert controller.state is TransactionState.ACCUMULATING
    assert event_types(events) == ["cart_changed"]
    assert events[0].total == 0


def test_remove_unknown_item_is_noop(controller, events):
    controller.resolve_by_exact_id(COFFEE_MUG)
    events.clear()

    result = controller.remove_item(NOTEBOOK)

    assert result.ok
    assert result.status is ResolutionStatus.UNCHANGED
    assert len(controller.cart.items) == 1
    assert events == []


def test_cancel_starts_new_transaction(controller, events):
    controller.resolve_by_exact_id(COFFEE_MUG)
    first_id = controller.transaction_id

    controller.cancel_transaction()

    assert controller.cart.is_empty()
    assert controller.state is TransactionState.EMPTY
    assert controller.transaction_id != first_id
    assert events[-1].type == "cart_changed"
    assert events[-1].items == []


def test_view_rounds_for_display(controller):
    controller.resolve_by_exact_id(COFFEE_MUG)
    controller.resolve_by_exact_id(COFFEE_MUG)
    controller.resolve_by_exact_id(NOTEBOOK)

    view = controller.view()

    assert view.state == "ACCUMULATING"
    assert [(i.name, i.quantity, i.line_total) for i in view.items] == [
        ("Coffee Mug", 2, Decimal("25.98")),
        ("Notebook", 1, Decimal("8.50")),
    ]
    assert (view.subtotal, view.tax, view.total) == (
        Decimal("34.48"),
        Decimal("2.93"),
        Decimal("37.41"),
    )


def test_tax_rate_comes_from_settings(catalog):
    config = Settings(
        TAX_RATE=Decimal("0.2"),
        CARD_SETTLEMENT_DELAY=0,
        MOBILE_SETTLEMENT_DELAY=0,
        SETTLEMENT_TIMEOUT=1.5,
    )
    controller = TransactionController.from_settings(catalog, config)

    controller.resolve_by_exact_id(NOTEBOOK)

    assert controller.cart.tax_rate == Decimal("0.2")
    assert controller.cart.tax == Decimal("1.700")
    assert controller.cart.total == Decimal("10.200")
    assert controller.settlement_timeout == 1.5
