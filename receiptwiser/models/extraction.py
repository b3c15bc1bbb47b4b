"""
Untrusted extraction output.

Whatever the vision model returns lands here first. Every field is optional
and untyped; nothing in this module is trusted to be numeric or consistent.
`receiptwiser.services.reconciliation.receipt_from_extraction` is the only
place these models are turned into a canonical Receipt.
"""

from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ExtractedItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Any = None
    name: Any = None
    quantity: Any = None
    unit_price: Any = Field(default=None, alias="unitPrice")
    total_price: Any = Field(default=None, alias="totalPrice")


class ExtractedReceipt(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    items: List[ExtractedItem] = []
    subtotal: Any = None
    service_charge_percent: Any = Field(default=None, alias="serviceChargePercent")
    tax_percent: Any = Field(default=None, alias="taxPercent")
    tax_amount: Any = Field(default=None, alias="taxAmount")
    total: Any = None
    raw_content: Optional[str] = Field(default=None, alias="rawContent")

    @field_validator("items", mode="before")
    @classmethod
    def _only_mapping_items(cls, value: Any) -> list:
        # Models sometimes return a dict, a string or null in place of the list.
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict) or isinstance(item, ExtractedItem)]
