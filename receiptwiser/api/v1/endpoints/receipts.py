from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from receiptwiser.core.logging import get_logger
from receiptwiser.db.mongo import get_db
from receiptwiser.models.receipt import Payment, Receipt, UserBill
from receiptwiser.repositories.payment_repo import PaymentRepository
from receiptwiser.repositories.receipt_repo import ReceiptRepository
from receiptwiser.schemas.receipt import BillRequest, PaymentCreate, ReceiptCreatedResponse
from receiptwiser.services.allocator import calculate_receipt_bill, selection_from_request
from receiptwiser.services.reconciliation import apply_totals, initialize_items

logger = get_logger(__name__)

router = APIRouter()


def _reconcile(receipt: Receipt) -> Receipt:
    return apply_totals(receipt, items=initialize_items(receipt.items))


@router.post("", response_model=ReceiptCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_receipt(
    receipt_in: Receipt,
    db = Depends(get_db)
):
    """Store a receipt snapshot so it can be shared by id."""
    repo = ReceiptRepository(db)
    receipt_id = await repo.create_receipt(_reconcile(receipt_in))
    logger.info("Created receipt %s with %d items", receipt_id, len(receipt_in.items))
    return ReceiptCreatedResponse(id=receipt_id)


@router.post("/recalculate", response_model=Receipt)
async def recalculate_receipt(receipt_in: Receipt):
    """Recompute item prices and receipt totals without storing anything."""
    return _reconcile(receipt_in)


@router.get("/{receipt_id}", response_model=Receipt)
async def get_receipt(
    receipt_id: str,
    db = Depends(get_db)
):
    """Get a receipt with its payments"""
    receipt = await ReceiptRepository(db).get_receipt(receipt_id)
    if not receipt:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Receipt not found")
    return receipt


@router.get("/{receipt_id}/payments", response_model=List[Payment])
async def list_payments(
    receipt_id: str,
    db = Depends(get_db)
):
    """List payments for a receipt, newest first"""
    return await PaymentRepository(db).list_payments(receipt_id)


@router.post("/{receipt_id}/payments", response_model=Payment, status_code=status.HTTP_201_CREATED)
async def create_payment(
    receipt_id: str,
    payment_in: PaymentCreate,
    db = Depends(get_db)
):
    """Record that someone paid their share"""
    if not await ReceiptRepository(db).exists(receipt_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Receipt not found")

    if not payment_in.payer_name.strip() or not payment_in.items:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Payer name and items are required"
        )

    payment = await PaymentRepository(db).create_payment(receipt_id, payment_in)
    logger.info("Recorded payment %s on receipt %s", payment.id, receipt_id)
    return payment


@router.post("/{receipt_id}/bill", response_model=UserBill)
async def calculate_bill(
    receipt_id: str,
    request: BillRequest,
    db = Depends(get_db)
):
    """Compute one diner's share from their item selections"""
    receipt = await ReceiptRepository(db).get_receipt(receipt_id)
    if not receipt:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Receipt not found")

    selection = selection_from_request(receipt.items, request.selections)
    return calculate_receipt_bill(receipt, selection)
