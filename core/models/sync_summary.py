"""
Sync Summary Schema - JSON-serializable outcome of a reconciliation run.

One VendorSyncSummary per vendor slot; SyncReport wraps them for the
top-level trigger. Reports use camelCase keys.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.models.common import utcnow


class VendorSyncSummary(BaseModel):
    """
    Counts for one vendor's reconciliation pass.

    Example (success):
        {
            "vendorId": "64f0...",
            "adapter": "wholecell",
            "totalFetched": 120,
            "groupsProcessed": 14,
            "validProducts": 12,
            "skippedProducts": 2,
            "newRecords": 3,
            "updatedRecords": 9,
            "markedOutOfStock": 1,
            "totalOperations": 13,
            ...
        }

    Example (failure):
        {"vendorId": "64f0...", "adapter": "generic", "error": "HTTP 401 ..."}
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    vendor_id: str
    adapter: Optional[str] = None
    total_fetched: int = 0
    malformed_items: int = 0
    groups_processed: int = 0
    valid_products: int = 0
    skipped_products: int = 0
    failed_groups: int = 0
    new_records: int = 0
    updated_records: int = 0
    marked_out_of_stock: int = 0
    total_operations: int = 0
    failed_operations: int = 0
    commit_errors: List[str] = Field(default_factory=list)
    dry_run: bool = False
    error: Optional[str] = None

    @classmethod
    def failed(cls, vendor_id: str, error: str, adapter: Optional[str] = None) -> "VendorSyncSummary":
        return cls(vendor_id=vendor_id, adapter=adapter, error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_report(self) -> Dict[str, Any]:
        if self.error is not None:
            return self.model_dump(by_alias=True, include={"vendor_id", "adapter", "error"})
        return self.model_dump(by_alias=True, exclude={"error"})


class SyncReport(BaseModel):
    """Top-level result of one trigger: every vendor slot, success or error."""

    message: str = "All vendor sync complete"
    adapter: Optional[str] = None
    started_at: datetime = Field(default_factory=utcnow)
    finished_at: Optional[datetime] = None
    summary: List[VendorSyncSummary] = Field(default_factory=list)

    @property
    def failed_vendors(self) -> List[str]:
        return [entry.vendor_id for entry in self.summary if not entry.ok]

    def to_report(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "adapter": self.adapter,
            "startedAt": self.started_at.isoformat(),
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
            "summary": [entry.to_report() for entry in self.summary],
        }
