# cashier/api/v1/routes_checkout.py
from contextlib import contextmanager
from contextvars import ContextVar
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException

from cashier.core.config import settings
from cashier.db.base import SessionLocal
from cashier.db.repositories.catalog import SqlCatalog
from cashier.domain.checkout.catalog import Catalog, InMemoryCatalog
from cashier.domain.checkout.errors import FailureReason
from cashier.domain.checkout.schemas import (
    CatalogEntryOut,
    CommandOut,
    PaymentOut,
    PaymentRequest,
    ScanItem,
    SearchProduct,
    SelectCandidate,
    TransactionOut,
)
from cashier.domain.checkout.service import Resolution, TransactionController


router = APIRouter(prefix="/api/v1/transaction", tags=["transaction"])

ERROR_STATUS = {
    FailureReason.NOT_FOUND: 404,
    FailureReason.INVALID_SELECTION: 422,
    FailureReason.TENDER_REQUIRED: 422,
    FailureReason.UNSUPPORTED_METHOD: 422,
    FailureReason.EMPTY_CART: 409,
    FailureReason.SETTLEMENT_IN_FLIGHT: 409,
    FailureReason.INSUFFICIENT_PAYMENT: 402,
    FailureReason.SETTLEMENT_DECLINED: 402,
    FailureReason.SETTLEMENT_TIMEOUT: 504,
}


def get_catalog() -> Catalog:
    if settings.DB_SYNC_URL:
        return SqlCatalog(SessionLocal)
    return InMemoryCatalog.default()


@lru_cache
def get_controller() -> TransactionController:
    return TransactionController.from_settings(get_catalog(), settings)


_request_events: ContextVar[Optional[List[Dict[str, Any]]]] = ContextVar(
    "request_events", default=None
)


@contextmanager
def recording(controller: TransactionController):
    """Collect the events published while handling one request.

    Only events published from this request's context are kept; other
    requests hitting the shared controller during an await are ignored.
    """
    events: List[Dict[str, Any]] = []
    token = _request_events.set(events)

    def record(event) -> None:
        if _request_events.get() is events:
            events.append(event.model_dump(mode="json"))

    unsubscribe = controller.bus.subscribe(record)
    try:
        yield events
    finally:
        unsubscribe()
        _request_events.reset(token)


def _raise_for(reason: FailureReason, events: List[Dict[str, Any]]):
    raise HTTPException(
        status_code=ERROR_STATUS.get(reason, 400),
        detail={"reason": reason.value, "events": events},
    )


def _command_out(controller: TransactionController, result: Resolution, events) -> CommandOut:
    if result.reason is not None and result.reason is not FailureReason.AMBIGUOUS_RESULT:
        _raise_for(result.reason, events)
    return CommandOut(
        status=result.status.value,
        transaction=controller.view(),
        candidates=[CatalogEntryOut.model_validate(c, from_attributes=True) for c in result.candidates],
        events=events,
    )


@router.get("", response_model=TransactionOut)
async def get_transaction_endpoint(
    controller: TransactionController = Depends(get_controller),
):
    return controller.view()

@router.post("/scan", response_model=CommandOut)
async def scan_endpoint(
    payload: ScanItem,
    controller: TransactionController = Depends(get_controller),
):
    with recording(controller) as events:
        result = controller.resolve_by_exact_id(payload.product_id)
    return _command_out(controller, result, events)

@router.post("/search", response_model=CommandOut)
async def search_endpoint(
    payload: SearchProduct,
    controller: TransactionController = Depends(get_controller),
):
    with recording(controller) as events:
        result = controller.resolve_by_search(payload.term)
    return _command_out(controller, result, events)

@router.post("/selection", response_model=CommandOut)
async def select_endpoint(
    payload: SelectCandidate,
    controller: TransactionController = Depends(get_controller),
):
    with recording(controller) as events:
        result = controller.select_candidate(payload.index)
    return _command_out(controller, result, events)

@router.delete("/items/{product_id}", response_model=CommandOut)
async def remove_item_endpoint(
    product_id: str,
    controller: TransactionController = Depends(get_controller),
):
    with recording(controller) as events:
        result = controller.remove_item(product_id)
    return _command_out(controller, result, events)

@router.post("/cancel", response_model=CommandOut)
async def cancel_endpoint(
    controller: TransactionController = Depends(get_controller),
):
    with recording(controller) as events:
        result = controller.cancel_transaction()
    return _command_out(controller, result, events)

@router.post("/payments", response_model=PaymentOut)
async def payment_endpoint(
    payload: PaymentRequest,
    controller: TransactionController = Depends(get_controller),
):
    with recording(controller) as events:
        outcome = await controller.settle_payment(payload.method, payload.tendered)
    if not outcome.success:
        _raise_for(outcome.reason, events)
    return PaymentOut(
        success=True,
        method=outcome.method,
        amount_due=outcome.amount_due,
        tendered=outcome.tendered,
        change=outcome.change,
        transaction=controller.view(),
        events=events,
    )
