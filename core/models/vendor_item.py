"""
Raw Vendor Item Schema - One unit of inventory as reported by a vendor feed.

Items are ephemeral: they exist only for the duration of one reconciliation
pass and are folded into SelectedOption records during aggregation.
"""
import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.models.common import VendorText


# ============================================================================
# STATUS CONSTANTS
# ============================================================================

STATUS_AVAILABLE = "Available"
STATUS_SOLD = "Sold"


# ============================================================================
# RAW VENDOR ITEM MODEL
# ============================================================================

class RawVendorItem(BaseModel):
    """
    A single physical unit reported by a vendor.

    Field mapping from the vendor's JSON shape is owned by the feed adapter
    (services.reconciler.feeds); this model is the adapter-neutral result.

    Example:
        item = RawVendorItem(
            manufacturer="Apple",
            model="iPhone 13",
            color="Black",
            capacity="128",
            grade="A",
            esn="356789101112131",
            status="Available",
            price_paid=45000,
            position=0,
        )
    """
    model_config = ConfigDict(populate_by_name=True)

    # --- PRODUCT IDENTITY (pre-resolution, raw vendor strings) ---
    manufacturer: VendorText = ""
    model: VendorText = ""
    color: VendorText = ""
    capacity: VendorText = ""
    variant: VendorText = ""
    grade: VendorText = ""

    # --- UNIT IDENTIFIERS (first non-empty wins) ---
    serial_number: VendorText = ""
    esn: VendorText = ""
    hex_id: VendorText = ""
    sku: VendorText = ""
    item_id: VendorText = ""
    position: int = Field(0, ge=0, description="Index of the item in the feed payload")

    # --- STOCK AND PRICE ---
    status: VendorText = ""
    price_paid: float = Field(0.0, description="Price paid, in the vendor's currency unit")

    @field_validator("price_paid", mode="before")
    @classmethod
    def _coerce_price(cls, value):
        """Unparseable or missing prices count as 0."""
        try:
            price = float(value)
        except (TypeError, ValueError):
            return 0.0
        return price if math.isfinite(price) else 0.0

    @property
    def unit_identifier(self) -> str:
        """Serial, ESN, hex id, SKU, then a synthetic id from the vendor id or feed position."""
        for candidate in (self.serial_number, self.esn, self.hex_id, self.sku):
            if candidate:
                return candidate
        return f"item_{self.item_id or self.position}"

    @property
    def is_sold(self) -> bool:
        return self.status == STATUS_SOLD

    @property
    def is_available(self) -> bool:
        return self.status == STATUS_AVAILABLE
