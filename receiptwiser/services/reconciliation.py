"""
Receipt reconciliation engine.

Keeps quantity, unit price and total price of each item consistent, and
keeps subtotal, service charge, tax and total in sync with the item list and
the two percentage inputs. Every function is pure: inputs are never mutated
and totals are always recomputed from scratch.
"""
from typing import Any, Iterable, List, Mapping, Optional, Union

from receiptwiser.core.logging import get_logger
from receiptwiser.models.base import new_id
from receiptwiser.models.extraction import ExtractedItem, ExtractedReceipt
from receiptwiser.models.receipt import Receipt, ReceiptItem, ReceiptTotals
from receiptwiser.schemas.receipt import ItemPatch
from receiptwiser.utils.money import (
    apply_percent,
    coerce_number,
    round2,
    safe_divide,
    sum_amounts,
)

logger = get_logger(__name__)

UNKNOWN_ITEM_NAME = "Unknown item"
# The editor does not accept quantities below one.
MIN_EDIT_QUANTITY = 1.0

RawItem = Union[ExtractedItem, ReceiptItem, Mapping[str, Any]]


def _as_extracted(raw: RawItem) -> ExtractedItem:
    if isinstance(raw, ExtractedItem):
        return raw
    if isinstance(raw, ReceiptItem):
        return ExtractedItem(
            id=raw.id,
            name=raw.name,
            quantity=raw.quantity,
            unit_price=raw.unit_price,
            total_price=raw.total_price,
        )
    if isinstance(raw, Mapping):
        return ExtractedItem.model_validate(dict(raw))
    return ExtractedItem()


def _non_negative(value: float) -> float:
    return value if value > 0 else 0.0


def initialize_items(raw_items: Iterable[RawItem]) -> List[ReceiptItem]:
    """
    Normalize items loaded from an external source.

    Missing or invalid numbers default to 1 (quantity) and 0 (prices). The
    total price is treated as authoritative and the unit price is re-derived
    from it, because extraction output often has unit and total disagreeing.
    A missing total with a known unit price is derived from the unit price.
    """
    items: List[ReceiptItem] = []
    for index, raw in enumerate(raw_items or []):
        extracted = _as_extracted(raw)

        quantity = coerce_number(extracted.quantity, 1.0)
        if quantity < 0:
            quantity = 1.0
        unit_price = _non_negative(coerce_number(extracted.unit_price, 0.0))
        total_price = _non_negative(coerce_number(extracted.total_price, 0.0))
        if not total_price and unit_price:
            total_price = round2(unit_price * quantity)
        else:
            total_price = round2(total_price)

        # Kept unrounded so unit_price * quantity reproduces the total.
        unit_price = safe_divide(total_price, quantity, fallback=unit_price)

        name = extracted.name if isinstance(extracted.name, str) and extracted.name.strip() else UNKNOWN_ITEM_NAME
        item_id = str(extracted.id) if extracted.id not in (None, "") else f"item-{index}"

        items.append(ReceiptItem(
            id=item_id,
            name=name,
            quantity=quantity,
            unit_price=unit_price,
            total_price=total_price,
        ))
    return items


def update_item(
    items: List[ReceiptItem],
    index: int,
    patch: Union[ItemPatch, Mapping[str, Any]],
) -> List[ReceiptItem]:
    """
    Apply an edit to one item and re-derive its dependent price.

    Quantity and unit price drive the total price. Editing the total price
    directly re-derives the unit price, unless quantity is not positive, in
    which case the unit price is left alone.
    """
    new_items = list(items)
    if not 0 <= index < len(new_items):
        return new_items

    if not isinstance(patch, ItemPatch):
        patch = ItemPatch.model_validate(dict(patch))
    changes = patch.model_dump(exclude_unset=True, exclude_none=True)
    if "quantity" in changes and changes["quantity"] < MIN_EDIT_QUANTITY:
        changes["quantity"] = MIN_EDIT_QUANTITY

    current = new_items[index].model_copy(update=changes)

    if "total_price" not in changes and ("quantity" in changes or "unit_price" in changes):
        current = current.model_copy(update={
            "total_price": round2(current.quantity * current.unit_price),
        })
    elif "total_price" in changes and current.quantity > 0:
        current = current.model_copy(update={
            "unit_price": round2(current.total_price / current.quantity),
        })

    new_items[index] = current
    return new_items


def add_item(items: List[ReceiptItem], item_id: Optional[str] = None) -> List[ReceiptItem]:
    """Append a blank item (quantity 1, zero prices)."""
    blank = ReceiptItem(
        id=item_id or new_id(),
        name="",
        quantity=1,
        unit_price=0.0,
        total_price=0.0,
    )
    return [*items, blank]


def remove_item(items: List[ReceiptItem], index: int) -> List[ReceiptItem]:
    """Drop the item at ``index``; the rest keep their order."""
    if not 0 <= index < len(items):
        return list(items)
    return [item for position, item in enumerate(items) if position != index]


def recompute_totals(
    items: Iterable[ReceiptItem],
    service_charge_percent: float,
    tax_percent: float,
) -> ReceiptTotals:
    """
    Recompute every receipt aggregate from the item list.

    Tax is charged on subtotal plus service charge.
    """
    subtotal = round2(sum_amounts(item.total_price for item in items))
    service_charge_amount = round2(apply_percent(subtotal, service_charge_percent))
    tax_amount = round2(apply_percent(subtotal + service_charge_amount, tax_percent))
    total = round2(sum_amounts([subtotal, service_charge_amount, tax_amount]))

    return ReceiptTotals(
        subtotal=subtotal,
        service_charge_amount=service_charge_amount,
        tax_amount=tax_amount,
        total=total,
    )


def apply_totals(
    receipt: Receipt,
    items: Optional[List[ReceiptItem]] = None,
    service_charge_percent: Optional[float] = None,
    tax_percent: Optional[float] = None,
) -> Receipt:
    """Return a copy of ``receipt`` with new inputs and freshly computed totals."""
    items = list(receipt.items if items is None else items)
    service_charge_percent = _non_negative(
        receipt.service_charge_percent if service_charge_percent is None else service_charge_percent
    )
    tax_percent = _non_negative(receipt.tax_percent if tax_percent is None else tax_percent)

    totals = recompute_totals(items, service_charge_percent, tax_percent)
    return receipt.model_copy(update={
        "items": items,
        "service_charge_percent": service_charge_percent,
        "tax_percent": tax_percent,
        **totals.model_dump(),
    })


def build_receipt(
    items: List[ReceiptItem],
    service_charge_percent: float = 0.0,
    tax_percent: float = 0.0,
    **extra: Any,
) -> Receipt:
    """Create a canonical receipt whose totals match its items."""
    return apply_totals(
        Receipt(**extra),
        items=items,
        service_charge_percent=service_charge_percent,
        tax_percent=tax_percent,
    )


def receipt_from_extraction(
    extracted: Union[ExtractedReceipt, Mapping[str, Any]],
    image_url: Optional[str] = None,
) -> Receipt:
    """
    Turn untrusted extraction output into a canonical Receipt.

    When the tax percent is missing but tax amount and subtotal were read,
    the percent is derived from them. Tax is charged on subtotal plus
    service charge, so the derivation uses the same base.
    """
    if not isinstance(extracted, ExtractedReceipt):
        extracted = ExtractedReceipt.model_validate(dict(extracted or {}))

    items = initialize_items(extracted.items)

    service_charge_percent = _non_negative(coerce_number(extracted.service_charge_percent, 0.0))
    tax_percent = _non_negative(coerce_number(extracted.tax_percent, 0.0))
    if not tax_percent:
        tax_amount = _non_negative(coerce_number(extracted.tax_amount, 0.0))
        subtotal = _non_negative(coerce_number(extracted.subtotal, 0.0))
        service_charge_amount = round2(apply_percent(subtotal, service_charge_percent))
        tax_percent = round2(safe_divide(tax_amount, subtotal + service_charge_amount) * 100)

    receipt = build_receipt(
        items,
        service_charge_percent=service_charge_percent,
        tax_percent=tax_percent,
        image_url=image_url,
    )

    reported_total = coerce_number(extracted.total, 0.0)
    if reported_total and abs(reported_total - receipt.total) >= 0.01:
        logger.warning(
            "Extracted total %.2f differs from reconciled total %.2f",
            reported_total,
            receipt.total,
        )
    return receipt
