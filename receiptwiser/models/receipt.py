"""
Receipt domain models.

Design principles:
- Snapshots are frozen; engine operations return new objects
- Currency amounts are floats rounded to cents inside the core and
  Decimal128 in MongoDB
- Payments are append-only children of a receipt
"""

from typing import Optional, List
from datetime import datetime
from pydantic import Field

from receiptwiser.models.base import CamelModel, SnapshotModel, _utcnow, new_id


class ReceiptItem(SnapshotModel):
    """
    One line on the receipt.

    Invariant: total_price ~= unit_price * quantity to 2 decimals.
    """
    id: str = Field(default_factory=new_id)
    name: str = ""
    quantity: float = 1
    unit_price: float = Field(default=0.0, ge=0)
    total_price: float = Field(default=0.0, ge=0)


class PaymentItem(CamelModel):
    item_id: str
    item_name: str
    quantity: float
    amount: float


class Payment(SnapshotModel):
    id: str
    receipt_id: str
    payer_name: str
    items: List[PaymentItem]
    subtotal: float
    service_charge_amount: float
    tax_amount: float
    total: float
    created_at: datetime = Field(default_factory=_utcnow)


class ReceiptTotals(SnapshotModel):
    subtotal: float = 0.0
    service_charge_amount: float = 0.0
    tax_amount: float = 0.0
    total: float = 0.0


class Receipt(SnapshotModel):
    """
    Canonical receipt.

    Invariants (kept by the reconciliation engine):
    - subtotal == sum of item total prices
    - service_charge_amount == round2(subtotal * service_charge_percent / 100)
    - tax_amount == round2((subtotal + service_charge_amount) * tax_percent / 100)
    - total == subtotal + service_charge_amount + tax_amount
    """
    items: List[ReceiptItem] = []
    subtotal: float = Field(default=0.0, ge=0)
    service_charge_percent: float = Field(default=0.0, ge=0)
    service_charge_amount: float = Field(default=0.0, ge=0)
    tax_percent: float = Field(default=0.0, ge=0)
    tax_amount: float = Field(default=0.0, ge=0)
    total: float = Field(default=0.0, ge=0)
    discount_percent: float = Field(default=0.0, ge=0)  # carried by the share codec only

    creator_name: Optional[str] = None
    creator_phone: Optional[str] = None
    image_url: Optional[str] = None

    payments: List[Payment] = []


class SelectionEntry(SnapshotModel):
    """One item a diner picked, with how much of it they had."""
    item: ReceiptItem
    selected_quantity: float


class SelectedItem(ReceiptItem):
    selected_quantity: float


class UserBill(SnapshotModel):
    selected_items: List[SelectedItem] = []
    subtotal: float = 0.0
    service_charge_amount: float = 0.0
    tax_amount: float = 0.0
    total: float = 0.0
