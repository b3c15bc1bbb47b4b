"""
Compact receipt codec.

Shrinks a receipt to the smallest JSON-able form that can rebuild it:

    {"i": [{"n": name, "q": quantity, "p": unit price}],
     "t": total, "s": subtotal, "d": discount %, "tx": tax %, "sc": service charge %,
     "cn": creator name, "cp": creator phone}

Derived amounts (item totals, service charge, tax) are left out and recomputed
on decode with the same formulas the reconciliation engine uses. Subtotal and
total are carried as-is and are authoritative.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from receiptwiser.core.logging import get_logger
from receiptwiser.models.receipt import Receipt, ReceiptItem
from receiptwiser.utils.money import apply_percent, round2

logger = get_logger(__name__)

INVALID_RECEIPT_MESSAGE = "Failed to load receipt data. The link may be invalid or corrupted."

# Upper bound for any number in a shared payload.
MAX_COMPACT_VALUE = 1_000_000_000


class InvalidReceiptDataError(ValueError):
    """Raised when a shared payload cannot be turned back into a receipt."""

    def __init__(self, message: str = INVALID_RECEIPT_MESSAGE):
        super().__init__(message)
        self.message = message


class CompactItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    n: str
    q: float = Field(ge=0, le=MAX_COMPACT_VALUE)
    p: float = Field(ge=0, le=MAX_COMPACT_VALUE)


class CompactReceipt(BaseModel):
    model_config = ConfigDict(extra="ignore")

    i: List[CompactItem]
    t: float = Field(ge=0, le=MAX_COMPACT_VALUE)
    s: float = Field(ge=0, le=MAX_COMPACT_VALUE)
    d: float = Field(default=0.0, ge=0, le=MAX_COMPACT_VALUE)
    tx: float = Field(ge=0, le=MAX_COMPACT_VALUE)
    sc: float = Field(ge=0, le=MAX_COMPACT_VALUE)
    cn: Optional[str] = None
    cp: Optional[str] = None


def encode_receipt(receipt: Receipt) -> Dict[str, Any]:
    """Build the compact form of ``receipt`` without touching it."""
    compact: Dict[str, Any] = {
        "i": [
            {"n": item.name, "q": item.quantity, "p": round2(item.unit_price)}
            for item in receipt.items
        ],
        "t": round2(receipt.total),
        "s": round2(receipt.subtotal),
        "d": round2(receipt.discount_percent),
        "tx": round2(receipt.tax_percent),
        "sc": round2(receipt.service_charge_percent),
    }
    if receipt.creator_name:
        compact["cn"] = receipt.creator_name
    if receipt.creator_phone:
        compact["cp"] = receipt.creator_phone
    return compact


def decode_receipt(payload: Any) -> Receipt:
    """
    Rebuild a full receipt from its compact form.

    Raises InvalidReceiptDataError for anything that is not a well-formed
    compact receipt.
    """
    if not isinstance(payload, dict):
        raise InvalidReceiptDataError()

    try:
        compact = CompactReceipt.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Rejected compact receipt: %d validation errors", exc.error_count())
        raise InvalidReceiptDataError() from exc

    items = [
        ReceiptItem(
            id=f"item-{index}",
            name=item.n,
            quantity=item.q,
            unit_price=item.p,
            total_price=round2(item.p * item.q),
        )
        for index, item in enumerate(compact.i)
    ]

    service_charge_amount = round2(apply_percent(compact.s, compact.sc))
    tax_amount = round2(apply_percent(compact.s + service_charge_amount, compact.tx))

    extras: Dict[str, Any] = {}
    if compact.cn:
        extras["creator_name"] = compact.cn
    if compact.cp:
        extras["creator_phone"] = compact.cp

    return Receipt(
        items=items,
        subtotal=compact.s,
        total=compact.t,
        discount_percent=compact.d,
        tax_percent=compact.tx,
        service_charge_percent=compact.sc,
        tax_amount=tax_amount,
        service_charge_amount=service_charge_amount,
        **extras,
    )
