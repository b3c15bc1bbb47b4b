"""
Receipt image extraction via the OpenAI vision API.

The extractor only returns a best-effort guess (`ExtractedReceipt`). It is
reconciled into a canonical receipt by the caller.
"""
import base64
import json
from typing import Optional

from openai import OpenAI, OpenAIError

from receiptwiser.core.logging import get_logger
from receiptwiser.models.extraction import ExtractedReceipt

logger = get_logger(__name__)

EXTRACTION_PROMPT = (
    "Analyze this receipt and extract all items with their quantities, names, and prices. "
    "Also extract tax information. Format the response as a JSON object with the following "
    "structure: { items: [{ name: string, quantity: number, unitPrice: number, totalPrice: number }], "
    "subtotal: number, taxPercent: number, taxAmount: number, total: number }"
)

SAMPLE_EXTRACTION = {
    "items": [
        {"id": "item-0", "name": "Coffee", "quantity": 1, "unitPrice": 3.5, "totalPrice": 3.5},
        {"id": "item-1", "name": "Sandwich", "quantity": 1, "unitPrice": 7.95, "totalPrice": 7.95},
    ],
    "subtotal": 11.45,
    "taxPercent": 8.25,
    "taxAmount": 0.94,
    "total": 12.39,
}


class ExtractionError(Exception):
    """The extraction service could not produce a result."""


class ReceiptExtractor:
    """Turns a receipt photo into an untrusted ExtractedReceipt.

    Without a client the extractor serves sample data, which keeps local
    development working without an API key.
    """

    def __init__(self, client: Optional[OpenAI], model: str = "gpt-4o-mini", max_tokens: int = 1500):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    def extract(self, image_bytes: bytes, mime_type: str) -> ExtractedReceipt:
        if self.client is None:
            logger.info("No extraction client configured, returning sample data")
            return ExtractedReceipt.model_validate(SAMPLE_EXTRACTION)

        encoded = base64.b64encode(image_bytes).decode("utf-8")
        logger.info("Calling %s with %d KB image", self.model, round(len(image_bytes) / 1024))

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": EXTRACTION_PROMPT},
                            {
                                "type": "image_url",
                                "image_url": {
                                    "detail": "high",
                                    "url": f"data:{mime_type};base64,{encoded}",
                                },
                            },
                        ],
                    }
                ],
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            raise ExtractionError(f"Error processing image: {str(e)}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ExtractionError("Invalid response content")

        return parse_extraction_content(content)


def parse_extraction_content(content: str) -> ExtractedReceipt:
    """Parse the model's JSON answer; unparsable answers give an empty result carrying the raw text."""
    try:
        parsed = json.loads(content)
    except ValueError:
        logger.warning("Could not parse extraction response: %s...", content[:200])
        return ExtractedReceipt(raw_content=content)

    if not isinstance(parsed, dict):
        logger.warning("Extraction response is not an object")
        return ExtractedReceipt(raw_content=content)

    return ExtractedReceipt.model_validate(parsed)
