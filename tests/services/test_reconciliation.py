import pytest

from receiptwiser.models.extraction import ExtractedReceipt
from receiptwiser.models.receipt import Receipt, ReceiptItem
from receiptwiser.schemas.receipt import ItemPatch
from receiptwiser.services.reconciliation import (
    add_item,
    apply_totals,
    build_receipt,
    initialize_items,
    receipt_from_extraction,
    recompute_totals,
    remove_item,
    update_item,
)
from receiptwiser.utils.money import round2, sum_amounts


def _item(item_id, quantity, unit_price, total_price=None):
    if total_price is None:
        total_price = round2(quantity * unit_price)
    return ReceiptItem(id=item_id, name=item_id, quantity=quantity, unit_price=unit_price, total_price=total_price)


# initialize_items

def test_initialize_items_rederives_unit_price_from_total():
    items = initialize_items([
        {"name": "Beer", "quantity": 3, "unitPrice": 4.0, "totalPrice": 13.5},
    ])

    assert items[0].unit_price == 4.5
    assert items[0].total_price == 13.5
    assert items[0].quantity == 3


def test_initialize_items_keeps_rederived_unit_price_unrounded():
    items = initialize_items([{"name": "Dumplings", "quantity": 3, "totalPrice": 10}])

    assert items[0].unit_price == 10 / 3
    assert items[0].total_price == 10


def test_initialize_items_survives_huge_numbers():
    items = initialize_items([{"quantity": "1", "totalPrice": "1e30"}])

    assert items[0].total_price == 1e30
    assert items[0].unit_price == 1e30


def test_initialize_items_coerces_missing_and_string_fields():
    items = initialize_items([
        {"name": None, "quantity": "2", "totalPrice": "$9.00"},
        {"quantity": "lots", "unitPrice": None, "totalPrice": None},
        {"name": "Tip jar", "quantity": -4, "totalPrice": 1},
    ])

    assert items[0].name == "Unknown item"
    assert items[0].quantity == 2
    assert items[0].unit_price == 4.5
    assert items[1].quantity == 1
    assert items[1].unit_price == 0
    assert items[1].total_price == 0
    assert items[2].quantity == 1
    assert items[2].total_price == 1


def test_initialize_items_derives_missing_total_from_unit_price():
    items = initialize_items([{"name": "Tea", "quantity": 2, "unitPrice": 1.75}])

    assert items[0].total_price == 3.5
    assert items[0].unit_price == 1.75


def test_initialize_items_assigns_positional_ids():
    items = initialize_items([{"name": "A"}, {"id": "keep-me", "name": "B"}])

    assert [item.id for item in items] == ["item-0", "keep-me"]


def test_initialize_items_accepts_receipt_items(dinner_items):
    assert initialize_items(dinner_items) == dinner_items


def test_initialize_items_handles_empty_input():
    assert initialize_items([]) == []
    assert initialize_items(None) == []


# update_item

@pytest.mark.parametrize("patch", [
    {"quantity": 3},
    {"unit_price": 2.335},
    {"quantity": 7, "unit_price": 1.19},
])
def test_update_item_quantity_or_unit_price_drives_total(patch):
    items = [_item("a", 2, 4.0)]

    updated = update_item(items, 0, patch)

    item = updated[0]
    assert item.total_price == round2(item.quantity * item.unit_price)


def test_update_item_total_price_drives_unit_price():
    items = [_item("a", 3, 4.0)]

    updated = update_item(items, 0, {"total_price": 10.0})

    assert updated[0].total_price == 10.0
    assert updated[0].unit_price == round2(10.0 / 3)


def test_update_item_total_price_with_zero_quantity_keeps_unit_price():
    items = [ReceiptItem(id="a", name="a", quantity=0, unit_price=4.0, total_price=0.0)]

    updated = update_item(items, 0, ItemPatch(total_price=9.0))

    assert updated[0].total_price == 9.0
    assert updated[0].unit_price == 4.0


def test_update_item_total_price_wins_when_patched_with_quantity():
    items = [_item("a", 1, 5.0)]

    updated = update_item(items, 0, {"quantity": 4, "total_price": 10.0})

    assert updated[0].quantity == 4
    assert updated[0].unit_price == 2.5
    assert updated[0].total_price == 10.0


def test_update_item_enforces_minimum_edit_quantity():
    items = [_item("a", 2, 5.0)]

    updated = update_item(items, 0, {"quantity": 0})

    assert updated[0].quantity == 1
    assert updated[0].total_price == 5.0


def test_update_item_name_only_leaves_prices():
    items = [_item("a", 2, 5.0)]

    updated = update_item(items, 0, {"name": "Soup"})

    assert updated[0].name == "Soup"
    assert updated[0].total_price == 10.0


def test_update_item_does_not_mutate_input():
    items = [_item("a", 2, 5.0)]

    updated = update_item(items, 0, {"quantity": 5})

    assert items[0].quantity == 2
    assert updated is not items


def test_update_item_out_of_range_is_noop():
    items = [_item("a", 2, 5.0)]

    assert update_item(items, 3, {"quantity": 5}) == items
    assert update_item(items, -1, {"quantity": 5}) == items


# add_item / remove_item

def test_add_item_appends_blank_item():
    items = add_item([_item("a", 1, 1.0)])

    assert len(items) == 2
    new = items[-1]
    assert (new.quantity, new.unit_price, new.total_price, new.name) == (1, 0, 0, "")
    assert new.id and new.id != "a"


def test_add_item_generates_unique_ids():
    items = add_item(add_item([]))

    assert items[0].id != items[1].id


def test_remove_item_preserves_order():
    items = [_item("a", 1, 1.0), _item("b", 1, 2.0), _item("c", 1, 3.0)]

    remaining = remove_item(items, 1)

    assert [item.id for item in remaining] == ["a", "c"]
    assert len(items) == 3


def test_remove_item_out_of_range_is_noop():
    items = [_item("a", 1, 1.0)]

    assert remove_item(items, 5) == items


# recompute_totals

def test_recompute_totals_sample_receipt():
    items = [_item("coffee", 1, 3.50), _item("sandwich", 1, 7.95)]

    totals = recompute_totals(items, service_charge_percent=0, tax_percent=8.25)

    assert items[0].total_price == 3.50
    assert items[1].total_price == 7.95
    assert totals.subtotal == 11.45
    assert totals.service_charge_amount == 0
    assert totals.tax_amount == 0.94
    assert totals.total == 12.39


def test_recompute_totals_taxes_service_charge():
    totals = recompute_totals([_item("feast", 1, 100.0)], service_charge_percent=10, tax_percent=8)

    assert totals.subtotal == 100
    assert totals.service_charge_amount == 10
    assert totals.tax_amount == 8.80
    assert totals.total == 118.80


def test_recompute_totals_empty_receipt():
    totals = recompute_totals([], 10, 8)

    assert totals.subtotal == totals.service_charge_amount == totals.tax_amount == totals.total == 0


def test_recompute_totals_invariants(dinner_items):
    totals = recompute_totals(dinner_items, 12.5, 7)

    assert totals.subtotal == sum_amounts(item.total_price for item in dinner_items)
    assert totals.tax_amount == round2((totals.subtotal + totals.service_charge_amount) * 7 / 100)
    assert totals.total == pytest.approx(totals.subtotal + totals.service_charge_amount + totals.tax_amount)


def test_edits_do_not_accumulate_drift():
    items = [_item("a", 1, 0.1), _item("b", 1, 0.2)]
    for _ in range(50):
        items = update_item(items, 0, {"quantity": 3})
        items = update_item(items, 0, {"quantity": 1})

    totals = recompute_totals(items, 0, 0)

    assert totals.subtotal == 0.3


# apply_totals / build_receipt

def test_apply_totals_returns_new_receipt(dinner_receipt):
    updated = apply_totals(dinner_receipt, tax_percent=0)

    assert dinner_receipt.tax_percent == 8
    assert updated.tax_percent == 0
    assert updated.tax_amount == 0
    assert updated.total == round2(updated.subtotal + updated.service_charge_amount)


def test_apply_totals_clamps_negative_percentages(dinner_receipt):
    updated = apply_totals(dinner_receipt, service_charge_percent=-5)

    assert updated.service_charge_percent == 0
    assert updated.service_charge_amount == 0


def test_build_receipt_keeps_extra_fields(dinner_receipt):
    assert dinner_receipt.subtotal == 62.5
    assert dinner_receipt.service_charge_amount == 6.25
    assert dinner_receipt.tax_amount == 5.5
    assert dinner_receipt.total == 74.25
    assert dinner_receipt.creator_name == "Ana"


def test_build_receipt_after_item_edits():
    items = add_item([], item_id="x")
    items = update_item(items, 0, {"name": "Ramen", "quantity": 2, "unit_price": 13.9})

    receipt = build_receipt(items, service_charge_percent=10, tax_percent=9)

    assert receipt.subtotal == 27.8
    assert receipt.service_charge_amount == 2.78
    assert receipt.tax_amount == round2((27.8 + 2.78) * 0.09)


# receipt_from_extraction

def test_receipt_from_extraction_sample_data():
    receipt = receipt_from_extraction({
        "items": [
            {"name": "Coffee", "quantity": 1, "unitPrice": 3.5, "totalPrice": 3.5},
            {"name": "Sandwich", "quantity": 1, "unitPrice": 7.95, "totalPrice": 7.95},
        ],
        "subtotal": 11.45,
        "taxPercent": 8.25,
        "taxAmount": 0.94,
        "total": 12.39,
    }, image_url="https://example.com/r.jpg")

    assert isinstance(receipt, Receipt)
    assert receipt.subtotal == 11.45
    assert receipt.tax_amount == 0.94
    assert receipt.total == 12.39
    assert receipt.image_url == "https://example.com/r.jpg"


def test_receipt_from_extraction_derives_tax_percent_from_amount():
    receipt = receipt_from_extraction({
        "items": [{"name": "Pizza", "totalPrice": "20"}],
        "subtotal": "20.00",
        "taxAmount": "1.60",
    })

    assert receipt.tax_percent == 8
    assert receipt.tax_amount == 1.6


def test_receipt_from_extraction_derives_tax_percent_on_service_charged_base():
    receipt = receipt_from_extraction({
        "items": [{"name": "Feast", "totalPrice": 100}],
        "subtotal": 100,
        "serviceChargePercent": 10,
        "taxAmount": 8.8,
    })

    assert receipt.service_charge_amount == 10
    assert receipt.tax_percent == 8
    assert receipt.tax_amount == 8.8
    assert receipt.total == 118.8


def test_receipt_from_extraction_survives_huge_numbers():
    receipt = receipt_from_extraction({"items": [{"quantity": "1", "totalPrice": "1e30"}]})

    assert receipt.subtotal == 1e30


def test_receipt_from_extraction_tolerates_garbage():
    receipt = receipt_from_extraction(ExtractedReceipt.model_validate({
        "items": "not a list",
        "subtotal": None,
        "taxPercent": "n/a",
    }))

    assert receipt.items == []
    assert receipt.total == 0
    assert receipt.tax_percent == 0
