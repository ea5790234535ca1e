# cashier/domain/checkout/events.py
from decimal import Decimal
from typing import Callable, List, Literal, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, computed_field

from .cart import LineItem
from .catalog import CatalogEntry
from .totals import Totals, money

logger = structlog.get_logger()


class CheckoutEvent(BaseModel):
    """Base for everything the checkout core tells the presentation layer."""

    type: str


class ItemAdded(CheckoutEvent):
    type: Literal["item_added"] = "item_added"
    product_id: str
    product_name: str
    quantity: int

    @computed_field
    @property
    def message(self) -> str:
        return f"Added {self.product_name} to cart"


class LookupFailed(CheckoutEvent):
    type: Literal["lookup_failed"] = "lookup_failed"
    query: str
    mode: Literal["id", "search"] = "id"

    @computed_field
    @property
    def message(self) -> str:
        if self.mode == "search":
            return f"No products found for: {self.query}"
        return f"Product not found: {self.query}"


class AmbiguousMatch(CheckoutEvent):
    type: Literal["ambiguous_match"] = "ambiguous_match"
    term: str
    candidates: List[CatalogEntry]

    @computed_field
    @property
    def message(self) -> str:
        return f"Multiple products found for: {self.term}"


class CartChanged(CheckoutEvent):
    type: Literal["cart_changed"] = "cart_changed"
    transaction_id: UUID
    items: List[LineItem]
    subtotal: Decimal
    tax: Decimal
    total: Decimal


class PaymentPending(CheckoutEvent):
    type: Literal["payment_pending"] = "payment_pending"
    method: str
    amount_due: Decimal

    @computed_field
    @property
    def message(self) -> str:
        if self.method == "mobile":
            return "Waiting for mobile payment..."
        return f"Processing {self.method} payment..."


class TenderRequested(CheckoutEvent):
    type: Literal["tender_requested"] = "tender_requested"
    amount_due: Decimal

    @computed_field
    @property
    def message(self) -> str:
        return f"Total: ${self.amount_due}. Enter cash amount received"


_FAILURE_MESSAGES = {
    "empty_cart": "No items in cart",
    "insufficient_payment": "Insufficient cash amount",
    "tender_required": "Cash amount required",
    "settlement_in_flight": "A payment is already in progress",
    "settlement_timeout": "Payment timed out",
    "unsupported_method": "Unsupported payment method",
    "settlement_declined": "Payment declined",
}


class PaymentFailed(CheckoutEvent):
    type: Literal["payment_failed"] = "payment_failed"
    method: Optional[str] = None
    reason: str

    @computed_field
    @property
    def message(self) -> str:
        return _FAILURE_MESSAGES.get(self.reason, "Payment failed")


class TransactionCompleted(CheckoutEvent):
    type: Literal["transaction_completed"] = "transaction_completed"
    transaction_id: UUID
    method: str
    items: List[LineItem]
    final_totals: Totals
    amount_due: Decimal
    tendered: Optional[Decimal] = None
    change: Optional[Decimal] = None

    @computed_field
    @property
    def message(self) -> str:
        if self.change is not None:
            return f"Payment successful! Change: ${money(self.change)}"
        return f"{self.method.capitalize()} payment successful! Total: ${self.amount_due}"

    @computed_field
    @property
    def completion_message(self) -> str:
        return "Transaction completed successfully!"


Handler = Callable[[CheckoutEvent], None]


class EventBus:
    """Synchronous publish/subscribe channel for checkout events."""

    def __init__(self):
        self._handlers: List[Handler] = []

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def publish(self, event: CheckoutEvent) -> None:
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                # a broken subscriber must not corrupt the sale
                logger.exception("event_handler_failed", event_type=event.type)
