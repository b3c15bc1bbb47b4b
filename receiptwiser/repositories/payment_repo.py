from datetime import datetime, timezone
from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase

from receiptwiser.models.base import new_id
from receiptwiser.models.receipt import Payment, PaymentItem
from receiptwiser.repositories.documents import decode_amounts, encode_amounts
from receiptwiser.schemas.receipt import PaymentCreate

PAYMENT_AMOUNT_FIELDS = ("subtotal", "service_charge_amount", "tax_amount", "total")


class PaymentRepository:
    """Append-only payment records. Payments are never updated or deleted."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["payments"]

    def _from_document(self, doc: dict) -> Payment:
        fields = decode_amounts(doc)
        fields["id"] = fields.pop("_id")
        fields["items"] = [PaymentItem(**decode_amounts(item)) for item in doc.get("items", [])]
        return Payment(**fields)

    async def list_payments(self, receipt_id: str) -> List[Payment]:
        cursor = self.collection.find({"receipt_id": receipt_id}).sort("created_at", -1)
        docs = await cursor.to_list(None)
        return [self._from_document(doc) for doc in docs]

    async def create_payment(self, receipt_id: str, payment_in: PaymentCreate) -> Payment:
        """Record a payment; id and timestamp are assigned here."""
        payment_doc = encode_amounts(
            payment_in.model_dump(exclude={"items"}),
            PAYMENT_AMOUNT_FIELDS,
        )
        payment_doc.update({
            "_id": new_id(),
            "receipt_id": receipt_id,
            "items": [
                encode_amounts(item.model_dump(), ("amount",))
                for item in payment_in.items
            ],
            "created_at": datetime.now(timezone.utc),
        })

        await self.collection.insert_one(payment_doc)
        return self._from_document(payment_doc)
