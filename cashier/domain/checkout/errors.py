# cashier/domain/checkout/errors.py
import enum


class FailureReason(str, enum.Enum):
    NOT_FOUND = "not_found"
    AMBIGUOUS_RESULT = "ambiguous_result"
    INVALID_SELECTION = "invalid_selection"
    EMPTY_CART = "empty_cart"
    INSUFFICIENT_PAYMENT = "insufficient_payment"
    SETTLEMENT_IN_FLIGHT = "settlement_in_flight"
    TENDER_REQUIRED = "tender_required"
    SETTLEMENT_TIMEOUT = "settlement_timeout"
    UNSUPPORTED_METHOD = "unsupported_method"
    SETTLEMENT_DECLINED = "settlement_declined"


class SettlementError(Exception):
    """A payment strategy could not settle the amount due."""

    reason = FailureReason.SETTLEMENT_DECLINED


class InsufficientPaymentError(SettlementError):
    reason = FailureReason.INSUFFICIENT_PAYMENT


class TenderRequiredError(SettlementError):
    reason = FailureReason.TENDER_REQUIRED
