from functools import lru_cache

from openai import OpenAI

from receiptwiser.core.config import settings
from receiptwiser.services.extraction import ReceiptExtractor


@lru_cache
def get_extractor() -> ReceiptExtractor:
    """Extractor shared by requests; built once from settings."""
    client = OpenAI(api_key=settings.OPENAI_API_KEY) if settings.OPENAI_API_KEY else None
    return ReceiptExtractor(
        client,
        model=settings.OPENAI_MODEL,
        max_tokens=settings.OPENAI_MAX_TOKENS,
    )
