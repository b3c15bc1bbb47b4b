"""
Share-link transport.

The compact receipt is serialized as tight JSON, zlib-compressed and written
as unpadded URL-safe base64, so it can sit directly in a URL path segment.
"""
import base64
import binascii
import json
import zlib
from typing import Any

from receiptwiser.models.receipt import Receipt
from receiptwiser.services.codec import InvalidReceiptDataError, decode_receipt, encode_receipt


def compress_payload(data: Any) -> str:
    raw = json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    packed = zlib.compress(raw, 9)
    return base64.urlsafe_b64encode(packed).decode("ascii").rstrip("=")


def decompress_payload(token: str) -> Any:
    if not token or not token.strip():
        raise InvalidReceiptDataError()

    token = token.strip()
    padded = token + "=" * (-len(token) % 4)
    try:
        packed = base64.urlsafe_b64decode(padded.encode("ascii"))
        raw = zlib.decompress(packed)
        return json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, zlib.error, ValueError) as exc:
        raise InvalidReceiptDataError() from exc


def create_share_token(receipt: Receipt) -> str:
    return compress_payload(encode_receipt(receipt))


def load_share_token(token: str) -> Receipt:
    return decode_receipt(decompress_payload(token))
