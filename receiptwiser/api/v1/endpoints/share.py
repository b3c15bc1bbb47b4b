from fastapi import APIRouter, HTTPException, status

from receiptwiser.core.logging import get_logger
from receiptwiser.models.receipt import Receipt
from receiptwiser.schemas.receipt import ShareResponse
from receiptwiser.services.codec import InvalidReceiptDataError
from receiptwiser.services.share import create_share_token, load_share_token

logger = get_logger(__name__)

router = APIRouter()


@router.post("", response_model=ShareResponse)
async def share_receipt(receipt_in: Receipt):
    """Pack a receipt into a link token; nothing is stored server-side."""
    token = create_share_token(receipt_in)
    return ShareResponse(token=token, path=f"/share/{token}")


@router.get("/{token}", response_model=Receipt)
async def open_shared_receipt(token: str):
    """Rebuild a receipt from a link token"""
    try:
        return load_share_token(token)
    except InvalidReceiptDataError as e:
        logger.warning("Could not open shared receipt: %s", e.message)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": e.message, "action": "create_new_receipt"}
        )
