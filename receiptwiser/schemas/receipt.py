from typing import Optional, List
from pydantic import Field

from receiptwiser.models.base import CamelModel
from receiptwiser.models.receipt import PaymentItem, Receipt


class ItemPatch(CamelModel):
    """Partial edit of one receipt item. Unset fields are left alone."""
    name: Optional[str] = None
    quantity: Optional[float] = Field(default=None, ge=0)
    unit_price: Optional[float] = Field(default=None, ge=0)
    total_price: Optional[float] = Field(default=None, ge=0)


class ReceiptCreatedResponse(CamelModel):
    id: str


class AnalyzeReceiptResponse(CamelModel):
    data: Receipt
    raw_content: Optional[str] = None


class PaymentCreate(CamelModel):
    """Payload recorded when a diner pays their share."""
    payer_name: str = ""
    items: List[PaymentItem] = []
    subtotal: float = Field(default=0.0, ge=0)
    service_charge_amount: float = Field(default=0.0, ge=0)
    tax_amount: float = Field(default=0.0, ge=0)
    total: float = Field(default=0.0, ge=0)


class ItemSelection(CamelModel):
    item_id: str
    quantity: float


class BillRequest(CamelModel):
    selections: List[ItemSelection] = []


class ShareResponse(CamelModel):
    token: str
    path: str
