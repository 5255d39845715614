"""
Inventory Reconciliation Engine.

Normalizes vendor feeds into canonical vendor-product records:
fetch -> group -> resolve -> aggregate -> diff -> commit, once per vendor,
with vendors running concurrently.
"""

from services.reconciler.errors import (
    CommitError,
    FetchError,
    ReconciliationError,
    ResolutionError,
    VendorConfigError,
)
from services.reconciler.policies import (
    AdapterPolicy,
    GENERIC_POLICY,
    WHOLECELL_POLICY,
    policy_for,
)
from services.reconciler.orchestrator import (
    SyncOrchestrator,
    sync_all_vendors,
    sync_vendors,
    sync_wholecell_vendors,
)

__all__ = [
    "CommitError",
    "FetchError",
    "ReconciliationError",
    "ResolutionError",
    "VendorConfigError",
    "AdapterPolicy",
    "GENERIC_POLICY",
    "WHOLECELL_POLICY",
    "policy_for",
    "SyncOrchestrator",
    "sync_all_vendors",
    "sync_vendors",
    "sync_wholecell_vendors",
]
