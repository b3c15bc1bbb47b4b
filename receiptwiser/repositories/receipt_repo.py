from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from receiptwiser.models.base import new_id
from receiptwiser.models.receipt import Receipt, ReceiptItem
from receiptwiser.repositories.documents import decode_amounts, encode_amounts
from receiptwiser.repositories.payment_repo import PaymentRepository

RECEIPT_AMOUNT_FIELDS = (
    "subtotal",
    "service_charge_percent",
    "service_charge_amount",
    "tax_percent",
    "tax_amount",
    "total",
    "discount_percent",
)
# unit_price is a rate re-derived from the total and is stored unrounded.
ITEM_AMOUNT_FIELDS = ("total_price",)


class ReceiptRepository:
    """Receipt database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["receipts"]

    def _to_document(self, receipt_id: str, receipt: Receipt) -> dict:
        receipt_doc = encode_amounts(
            receipt.model_dump(exclude={"items", "payments"}),
            RECEIPT_AMOUNT_FIELDS,
        )
        receipt_doc["_id"] = receipt_id
        receipt_doc["items"] = [
            {
                **encode_amounts(item.model_dump(), ITEM_AMOUNT_FIELDS),
                "order_index": index,
            }
            for index, item in enumerate(receipt.items)
        ]
        receipt_doc["created_at"] = datetime.now(timezone.utc)
        return receipt_doc

    async def create_receipt(self, receipt: Receipt) -> str:
        """Store a receipt snapshot and return its new id. Payments are stored separately."""
        receipt_id = new_id()
        await self.collection.insert_one(self._to_document(receipt_id, receipt))
        return receipt_id

    async def get_receipt(self, receipt_id: str) -> Optional[Receipt]:
        """Load a receipt with its items in original order and its payments, newest first."""
        doc = await self.collection.find_one({"_id": receipt_id})
        if not doc:
            return None

        items = sorted(doc.get("items", []), key=lambda item: item.get("order_index", 0))
        payments = await PaymentRepository(self.db).list_payments(receipt_id)

        fields = decode_amounts({
            key: value
            for key, value in doc.items()
            if key not in ("_id", "items", "created_at")
        })
        return Receipt(
            **fields,
            items=[
                ReceiptItem(**{
                    key: value
                    for key, value in decode_amounts(item).items()
                    if key != "order_index"
                })
                for item in items
            ],
            payments=payments,
        )

    async def exists(self, receipt_id: str) -> bool:
        doc = await self.collection.find_one({"_id": receipt_id}, {"_id": 1})
        return doc is not None
