"""
VendorSync Core Models

Exports for raw vendor items, catalog entries, vendor-product records and
sync summaries.
"""

# Shared field types
from core.models.common import PyObjectId, VendorText, utcnow

# Raw vendor items (ephemeral, one reconciliation pass)
from core.models.vendor_item import (
    RawVendorItem,
    STATUS_AVAILABLE,
    STATUS_SOLD,
)

# Catalog entries (canonical products and conditions)
from core.models.catalog import (
    CanonicalProduct,
    Condition,
    UNKNOWN_LABEL,
    create_canonical_product,
    create_condition,
)

# Persisted vendor-product records
from core.models.vendor_product import (
    OptionKey,
    RecordKey,
    SelectedOption,
    VendorProductRecord,
    options_match,
)

# Vendor feed configuration
from core.models.vendor_api import AdapterName, VendorApiConfig

# Run summaries
from core.models.sync_summary import SyncReport, VendorSyncSummary

__all__ = [
    "PyObjectId",
    "VendorText",
    "utcnow",
    # Raw items
    "RawVendorItem",
    "STATUS_AVAILABLE",
    "STATUS_SOLD",
    # Catalog
    "CanonicalProduct",
    "Condition",
    "UNKNOWN_LABEL",
    "create_canonical_product",
    "create_condition",
    # Vendor products
    "OptionKey",
    "RecordKey",
    "SelectedOption",
    "VendorProductRecord",
    "options_match",
    # Vendor config
    "AdapterName",
    "VendorApiConfig",
    # Summaries
    "SyncReport",
    "VendorSyncSummary",
]
