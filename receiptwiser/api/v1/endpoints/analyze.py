from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from receiptwiser.api.deps import get_extractor
from receiptwiser.core.config import settings
from receiptwiser.core.logging import get_logger
from receiptwiser.schemas.receipt import AnalyzeReceiptResponse
from receiptwiser.services.extraction import ExtractionError, ReceiptExtractor
from receiptwiser.services.reconciliation import receipt_from_extraction

logger = get_logger(__name__)

router = APIRouter()


@router.post("", response_model=AnalyzeReceiptResponse)
async def analyze_receipt(
    image: Optional[UploadFile] = File(None),
    extractor: ReceiptExtractor = Depends(get_extractor),
):
    """Extract line items from a receipt photo and return a reconciled receipt."""
    if image is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No image provided")

    mime_type = image.content_type or "image/jpeg"
    if not mime_type.startswith("image/"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is not an image")

    image_bytes = await image.read()
    if not image_bytes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No image provided")
    if len(image_bytes) > settings.MAX_FILE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Image exceeds {settings.MAX_FILE_SIZE} bytes"
        )

    logger.info("Image received: %s %s %dKB", image.filename, mime_type, round(len(image_bytes) / 1024))

    try:
        extracted = await run_in_threadpool(extractor.extract, image_bytes, mime_type)
    except ExtractionError as e:
        logger.error("Extraction failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to analyze receipt: {str(e)}"
        )

    return AnalyzeReceiptResponse(
        data=receipt_from_extraction(extracted),
        raw_content=extracted.raw_content,
    )
