# cashier/domain/checkout/schemas.py
from decimal import Decimal
from pydantic import BaseModel, Field
from uuid import UUID
from typing import Any, Dict, List, Optional

class ScanItem(BaseModel):
    product_id: str = Field(min_length=1)

class SearchProduct(BaseModel):
    term: str = Field(min_length=1)

class SelectCandidate(BaseModel):
    index: int

class PaymentRequest(BaseModel):
    method: str
    tendered: Optional[Decimal] = Field(default=None, ge=0)

class CatalogEntryOut(BaseModel):
    product_id: str
    name: str
    unit_price: Decimal

    class Config:
        from_attributes = True

class LineItemOut(BaseModel):
    product_id: str
    name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal

class TransactionOut(BaseModel):
    id: UUID
    state: str
    items: List[LineItemOut]
    subtotal: Decimal
    tax: Decimal
    total: Decimal

class CommandOut(BaseModel):
    status: str
    transaction: TransactionOut
    candidates: List[CatalogEntryOut] = []
    events: List[Dict[str, Any]] = []

class PaymentOut(BaseModel):
    success: bool
    method: Optional[str]
    amount_due: Optional[Decimal]
    tendered: Optional[Decimal] = None
    change: Optional[Decimal] = None
    transaction: TransactionOut
    events: List[Dict[str, Any]] = []
