"""
Error taxonomy for the reconciliation engine.

- FetchError: vendor polling failed; isolates the whole vendor.
- ResolutionError: product/condition lookup or creation failed; isolates one group.
- CommitError: one or more batch writes failed; successful writes stay applied.
- VendorConfigError: a vendor's configuration document is unusable.
"""
from typing import Dict, List, Optional


class ReconciliationError(Exception):
    """Base class for engine errors."""


class FetchError(ReconciliationError):
    """Network, auth or decoding failure while polling a vendor feed."""

    def __init__(self, message: str, vendor_id: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.vendor_id = vendor_id
        self.status_code = status_code


class ResolutionError(ReconciliationError):
    """Catalog lookup or insert failed for a product or condition."""


class VendorConfigError(ReconciliationError):
    """A vendor API document failed validation."""


class CommitError(ReconciliationError):
    """
    Some operations in an unordered batch failed.

    Attributes:
        failed: operation index -> error message, for each failed operation
        applied: number of operations the store reports as applied
    """

    def __init__(self, message: str, failed: Dict[int, str], applied: int = 0):
        super().__init__(message)
        self.failed = failed
        self.applied = applied

    @property
    def messages(self) -> List[str]:
        return [self.failed[index] for index in sorted(self.failed)]
