"""
Proportional bill allocator.

A diner picks items (possibly fractional amounts of them) from a shared
receipt. Their bill charges service and tax using the receipt's percentages,
so bills of diners who together select everything add back up to the
receipt total.

A selection is a plain ``dict`` of item id to ``SelectionEntry`` kept in
insertion order. Every function returns a new selection.
"""
from typing import Dict, Iterable, Optional

from receiptwiser.models.receipt import (
    PaymentItem,
    Receipt,
    ReceiptItem,
    SelectedItem,
    SelectionEntry,
    UserBill,
)
from receiptwiser.schemas.receipt import ItemSelection, PaymentCreate
from receiptwiser.utils.money import apply_percent, round2, sum_amounts

Selection = Dict[str, SelectionEntry]


def _initial_quantity(item: ReceiptItem) -> float:
    # Items sold by fraction (0.5 kg) start fully selected.
    if 0 < item.quantity < 1:
        return item.quantity
    return 1.0


def toggle_item(selection: Selection, item: ReceiptItem) -> Selection:
    """Select ``item`` if it is not selected, otherwise drop it."""
    new_selection = dict(selection)
    if item.id in new_selection:
        del new_selection[item.id]
    else:
        new_selection[item.id] = SelectionEntry(item=item, selected_quantity=_initial_quantity(item))
    return new_selection


def set_selected_quantity(selection: Selection, item_id: str, quantity: float) -> Selection:
    """
    Record a quantity typed by the diner.

    Only the upper bound is enforced here; values below zero or partial
    entries are accepted until `clamp_selection` runs on commit.
    """
    new_selection = dict(selection)
    entry = new_selection.get(item_id)
    if entry is None:
        return new_selection
    new_selection[item_id] = entry.model_copy(update={
        "selected_quantity": min(quantity, entry.item.quantity),
    })
    return new_selection


def clamp_quantity(quantity: Optional[float], item: ReceiptItem) -> float:
    if quantity is None or quantity != quantity:
        return 0.0
    return min(max(quantity, 0.0), max(item.quantity, 0.0))


def clamp_selection(selection: Selection) -> Selection:
    """Clamp every selected quantity into ``[0, item.quantity]``."""
    return {
        item_id: entry.model_copy(update={
            "selected_quantity": clamp_quantity(entry.selected_quantity, entry.item),
        })
        for item_id, entry in selection.items()
    }


def selection_from_request(items: Iterable[ReceiptItem], selections: Iterable[ItemSelection]) -> Selection:
    """Build a clamped selection from ``{item_id, quantity}`` pairs; unknown ids are skipped."""
    by_id = {item.id: item for item in items}
    selection: Selection = {}
    for choice in selections:
        item = by_id.get(choice.item_id)
        if item is None:
            continue
        selection[item.id] = SelectionEntry(item=item, selected_quantity=choice.quantity)
    return clamp_selection(selection)


def calculate_bill(
    selection: Selection,
    service_charge_percent: float,
    tax_percent: float,
) -> UserBill:
    """
    Compute one diner's share.

    Service charge is a percentage of the diner's subtotal and tax is
    charged on subtotal plus service charge, as on the receipt itself.
    """
    entries = list(selection.values())

    subtotal = round2(sum(entry.item.unit_price * entry.selected_quantity for entry in entries))
    service_charge_amount = round2(apply_percent(subtotal, service_charge_percent))
    tax_amount = round2(apply_percent(subtotal + service_charge_amount, tax_percent))
    total = round2(sum_amounts([subtotal, service_charge_amount, tax_amount]))

    return UserBill(
        selected_items=[
            SelectedItem(**entry.item.model_dump(), selected_quantity=entry.selected_quantity)
            for entry in entries
        ],
        subtotal=subtotal,
        service_charge_amount=service_charge_amount,
        tax_amount=tax_amount,
        total=total,
    )


def calculate_receipt_bill(receipt: Receipt, selection: Selection) -> UserBill:
    return calculate_bill(selection, receipt.service_charge_percent, receipt.tax_percent)


def build_payment_request(
    selection: Selection,
    receipt: Receipt,
    payer_name: str,
) -> PaymentCreate:
    """Clamp the selection and turn the resulting bill into a payment payload."""
    clamped = {
        item_id: entry
        for item_id, entry in clamp_selection(selection).items()
        if entry.selected_quantity > 0
    }
    bill = calculate_receipt_bill(receipt, clamped)

    return PaymentCreate(
        payer_name=payer_name.strip(),
        items=[
            PaymentItem(
                item_id=selected.id,
                item_name=selected.name,
                quantity=selected.selected_quantity,
                amount=round2(selected.unit_price * selected.selected_quantity),
            )
            for selected in bill.selected_items
        ],
        subtotal=bill.subtotal,
        service_charge_amount=bill.service_charge_amount,
        tax_amount=bill.tax_amount,
        total=bill.total,
    )
