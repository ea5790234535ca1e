# cashier/domain/checkout/service.py
import asyncio
import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID, uuid4

import structlog

from cashier.core.config import Settings, settings
from .cart import Cart, LineItem
from .catalog import Catalog, CatalogEntry
from .errors import FailureReason, SettlementError
from .events import (
    AmbiguousMatch,
    CartChanged,
    EventBus,
    ItemAdded,
    LookupFailed,
    PaymentFailed,
    PaymentPending,
    TenderRequested,
    TransactionCompleted,
)
from .payments import PaymentMethod, PaymentOutcome, Settlement, build_settlements, parse_method
from .schemas import LineItemOut, TransactionOut
from .totals import money

logger = structlog.get_logger()


class TransactionState(str, enum.Enum):
    EMPTY = "EMPTY"
    ACCUMULATING = "ACCUMULATING"
    SETTLING = "SETTLING"


class ResolutionStatus(str, enum.Enum):
    ADDED = "added"
    REMOVED = "removed"
    UNCHANGED = "unchanged"
    AMBIGUOUS = "ambiguous"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Resolution:
    """What a cart operation did; ``reason`` is set unless it succeeded."""

    status: ResolutionStatus
    item: Optional[LineItem] = None
    candidates: tuple = ()
    reason: Optional[FailureReason] = None

    @property
    def ok(self) -> bool:
        return self.reason is None


class TransactionController:
    """
    Owns the active sale: resolves scans and searches against the catalog,
    mutates the cart and settles payment.
    """

    def __init__(
        self,
        catalog: Catalog,
        tax_rate: Decimal = settings.TAX_RATE,
        settlements: Optional[Dict[PaymentMethod, Settlement]] = None,
        settlement_timeout: Optional[float] = settings.SETTLEMENT_TIMEOUT,
        bus: Optional[EventBus] = None,
    ):
        self.catalog = catalog
        self.cart = Cart(tax_rate)
        self.settlements = settlements if settlements is not None else build_settlements(settings)
        self.settlement_timeout = settlement_timeout
        self.bus = bus or EventBus()
        self.state = TransactionState.EMPTY
        self.transaction_id: UUID = uuid4()
        self._candidates: List[CatalogEntry] = []
        self._settling = False

    @classmethod
    def from_settings(cls, catalog: Catalog, config: Settings) -> "TransactionController":
        return cls(
            catalog,
            tax_rate=config.TAX_RATE,
            settlements=build_settlements(config),
            settlement_timeout=config.SETTLEMENT_TIMEOUT,
        )

    @property
    def settling(self) -> bool:
        return self._settling

    @property
    def pending_candidates(self) -> List[CatalogEntry]:
        return list(self._candidates)

    # ---- resolution ----

    def resolve_by_exact_id(self, product_id: str) -> Resolution:
        if self._settling:
            return self._rejected(FailureReason.SETTLEMENT_IN_FLIGHT)
        self._candidates = []

        entry = self.catalog.lookup_by_id(product_id)
        if entry is None:
            logger.info("lookup_failed", query=product_id, mode="id")
            self.bus.publish(LookupFailed(query=product_id, mode="id"))
            return Resolution(ResolutionStatus.UNCHANGED, reason=FailureReason.NOT_FOUND)
        return self._add(entry)

    def resolve_by_search(self, term: str) -> Resolution:
        if self._settling:
            return self._rejected(FailureReason.SETTLEMENT_IN_FLIGHT)
        self._candidates = []

        matches = self.catalog.search_by_name(term)
        if not matches:
            logger.info("lookup_failed", query=term, mode="search")
            self.bus.publish(LookupFailed(query=term, mode="search"))
            return Resolution(ResolutionStatus.UNCHANGED, reason=FailureReason.NOT_FOUND)
        if len(matches) == 1:
            return self._add(matches[0])

        # selection happens out of band through select_candidate
        self._candidates = list(matches)
        logger.info("ambiguous_match", term=term, candidates=len(matches))
        self.bus.publish(AmbiguousMatch(term=term, candidates=self._candidates))
        return Resolution(
            ResolutionStatus.AMBIGUOUS,
            candidates=tuple(self._candidates),
            reason=FailureReason.AMBIGUOUS_RESULT,
        )

    def select_candidate(self, index: int) -> Resolution:
        """Pick one of the candidates of the last ambiguous search.

        An out-of-range index, or no pending search, changes nothing and emits
        nothing; the candidates stay pending so the cashier can pick again.
        """
        if self._settling:
            return self._rejected(FailureReason.SETTLEMENT_IN_FLIGHT)
        if not 0 <= index < len(self._candidates):
            logger.debug("selection_ignored", index=index, candidates=len(self._candidates))
            return Resolution(ResolutionStatus.UNCHANGED, reason=FailureReason.INVALID_SELECTION)

        entry = self._candidates[index]
        self._candidates = []
        return self._add(entry)

    # ---- cart mutation ----

    def remove_item(self, product_id: str) -> Resolution:
        if self._settling:
            return self._rejected(FailureReason.SETTLEMENT_IN_FLIGHT)
        if not self.cart.remove_item(product_id):
            return Resolution(ResolutionStatus.UNCHANGED)

        logger.info("item_removed", transaction_id=str(self.transaction_id), product_id=product_id)
        self._publish_cart()
        return Resolution(ResolutionStatus.REMOVED)

    def cancel_transaction(self) -> Resolution:
        if self._settling:
            return self._rejected(FailureReason.SETTLEMENT_IN_FLIGHT)
        logger.info("transaction_cancelled", transaction_id=str(self.transaction_id), lines=len(self.cart))
        self._begin_transaction()
        self._publish_cart()
        return Resolution(ResolutionStatus.REMOVED)

    def _add(self, entry: CatalogEntry) -> Resolution:
        item = self.cart.add_item(entry.product_id, entry)
        self.state = TransactionState.ACCUMULATING
        logger.info(
            "item_added",
            transaction_id=str(self.transaction_id),
            product_id=entry.product_id,
            quantity=item.quantity,
        )
        self.bus.publish(ItemAdded(product_id=item.product_id, product_name=item.name, quantity=item.quantity))
        self._publish_cart()
        return Resolution(ResolutionStatus.ADDED, item=item)

    # ---- settlement ----

    async def settle_payment(self, method, tendered: Optional[Decimal] = None) -> PaymentOutcome:
        method_name = getattr(method, "value", method)
        if self._settling:
            return self._payment_failed(FailureReason.SETTLEMENT_IN_FLIGHT, method_name)
        if self.cart.is_empty():
            return self._payment_failed(FailureReason.EMPTY_CART, method_name)

        payment_method = parse_method(method)
        strategy = self.settlements.get(payment_method) if payment_method else None
        if strategy is None:
            return self._payment_failed(FailureReason.UNSUPPORTED_METHOD, method_name)

        amount_due = money(self.cart.total)
        log = logger.bind(transaction_id=str(self.transaction_id), method=method_name)

        if payment_method is PaymentMethod.CASH and tendered is None:
            self.bus.publish(TenderRequested(amount_due=amount_due))
            return self._payment_failed(FailureReason.TENDER_REQUIRED, method_name, amount_due)

        previous_state = self.state
        self._settling = True
        self.state = TransactionState.SETTLING
        log.info("settlement_started", amount_due=str(amount_due))
        try:
            if strategy.is_async:
                self.bus.publish(PaymentPending(method=method_name, amount_due=amount_due))
            outcome = await asyncio.wait_for(
                strategy.settle(amount_due, tendered),
                timeout=self.settlement_timeout,
            )
        except SettlementError as exc:
            outcome = PaymentOutcome.failed(exc.reason, method_name, amount_due, tendered)
        except asyncio.TimeoutError:
            log.warning("settlement_timeout", timeout=self.settlement_timeout)
            outcome = PaymentOutcome.failed(FailureReason.SETTLEMENT_TIMEOUT, method_name, amount_due, tendered)
        except asyncio.CancelledError:
            # cart is untouched; hand it back to the cashier
            self.state = previous_state
            log.warning("settlement_cancelled")
            raise
        finally:
            self._settling = False

        if not outcome.success:
            self.state = previous_state
            log.info("settlement_failed", reason=outcome.reason.value)
            self.bus.publish(PaymentFailed(method=method_name, reason=outcome.reason.value))
            return outcome

        self._complete(outcome)
        return outcome

    def _complete(self, outcome: PaymentOutcome) -> None:
        completed = TransactionCompleted(
            transaction_id=self.transaction_id,
            method=outcome.method,
            items=self.cart.snapshot(),
            final_totals=self.cart.totals,
            amount_due=outcome.amount_due,
            tendered=outcome.tendered,
            change=outcome.change,
        )
        logger.info(
            "transaction_completed",
            transaction_id=str(self.transaction_id),
            method=outcome.method,
            subtotal=str(self.cart.subtotal),
            tax=str(self.cart.tax),
            total=str(self.cart.total),
            lines=len(self.cart),
        )
        self._begin_transaction()
        self.bus.publish(completed)
        self._publish_cart()

    # ---- helpers ----

    def _begin_transaction(self) -> None:
        self.cart.clear()
        self._candidates = []
        self.transaction_id = uuid4()
        self.state = TransactionState.EMPTY

    def _publish_cart(self) -> None:
        totals = self.cart.totals
        self.bus.publish(
            CartChanged(
                transaction_id=self.transaction_id,
                items=self.cart.snapshot(),
                subtotal=totals.subtotal,
                tax=totals.tax,
                total=totals.total,
            )
        )

    def _rejected(self, reason: FailureReason) -> Resolution:
        logger.info("operation_rejected", transaction_id=str(self.transaction_id), reason=reason.value)
        return Resolution(ResolutionStatus.REJECTED, reason=reason)

    def _payment_failed(self, reason: FailureReason, method_name, amount_due=None) -> PaymentOutcome:
        logger.info("payment_rejected", transaction_id=str(self.transaction_id), reason=reason.value)
        self.bus.publish(PaymentFailed(method=method_name, reason=reason.value))
        return PaymentOutcome.failed(reason, method_name, amount_due)

    def view(self) -> TransactionOut:
        totals = self.cart.totals.rounded()
        return TransactionOut(
            id=self.transaction_id,
            state=self.state.value,
            items=[
                LineItemOut(
                    product_id=i.product_id,
                    name=i.name,
                    unit_price=money(i.unit_price),
                    quantity=i.quantity,
                    line_total=money(i.line_total),
                )
                for i in self.cart.items
            ],
            subtotal=totals.subtotal,
            tax=totals.tax,
            total=totals.total,
        )
