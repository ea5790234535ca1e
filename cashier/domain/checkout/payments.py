# cashier/domain/checkout/payments.py
import asyncio
import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional, Protocol

import structlog

from cashier.core.config import Settings
from .catalog import to_decimal
from .errors import FailureReason, InsufficientPaymentError, TenderRequiredError
from .totals import money

logger = structlog.get_logger()


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    MOBILE = "mobile"


@dataclass(frozen=True)
class PaymentOutcome:
    """Result of a settlement attempt.

    ``amount_due`` is the rounded total presented to the customer; ``change``
    is only set for cash.
    """

    success: bool
    method: Optional[str] = None
    amount_due: Optional[Decimal] = None
    tendered: Optional[Decimal] = None
    change: Optional[Decimal] = None
    reason: Optional[FailureReason] = None

    @classmethod
    def failed(cls, reason: FailureReason, method=None, amount_due=None, tendered=None):
        return cls(
            success=False,
            method=method,
            amount_due=amount_due,
            tendered=tendered,
            reason=reason,
        )


class Settlement(Protocol):
    method: PaymentMethod
    is_async: bool

    async def settle(self, amount_due: Decimal, tendered: Optional[Decimal] = None) -> PaymentOutcome:
        ...


class CashSettlement:
    method = PaymentMethod.CASH
    is_async = False

    async def settle(self, amount_due: Decimal, tendered: Optional[Decimal] = None) -> PaymentOutcome:
        if tendered is None:
            raise TenderRequiredError("cash amount received is required")
        tendered = to_decimal(tendered)
        if tendered < amount_due:
            raise InsufficientPaymentError(f"tendered {tendered} is below {amount_due}")
        return PaymentOutcome(
            success=True,
            method=self.method.value,
            amount_due=amount_due,
            tendered=tendered,
            change=money(tendered - amount_due),
        )


class DelayedSettlement:
    """Simulated terminal that approves after a fixed delay."""

    is_async = True

    def __init__(self, method: PaymentMethod, delay: float = 0.0):
        self.method = method
        self.delay = delay

    async def settle(self, amount_due: Decimal, tendered: Optional[Decimal] = None) -> PaymentOutcome:
        logger.debug("terminal_waiting", method=self.method.value, delay=self.delay)
        await asyncio.sleep(self.delay)
        return PaymentOutcome(success=True, method=self.method.value, amount_due=amount_due)


class CardSettlement(DelayedSettlement):
    def __init__(self, delay: float = 0.0):
        super().__init__(PaymentMethod.CARD, delay)


class MobileSettlement(DelayedSettlement):
    def __init__(self, delay: float = 0.0):
        super().__init__(PaymentMethod.MOBILE, delay)


def build_settlements(config: Settings) -> Dict[PaymentMethod, Settlement]:
    return {
        PaymentMethod.CASH: CashSettlement(),
        PaymentMethod.CARD: CardSettlement(config.CARD_SETTLEMENT_DELAY),
        PaymentMethod.MOBILE: MobileSettlement(config.MOBILE_SETTLEMENT_DELAY),
    }


def parse_method(method) -> Optional[PaymentMethod]:
    try:
        return PaymentMethod(method)
    except ValueError:
        return None
