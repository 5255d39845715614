"""
Write operations produced by the differencer and applied by the batcher.

The three kinds target disjoint record identities, so a plan can be applied
as one unordered batch.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List

from core.models import VendorProductRecord


class OperationKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    ZERO_OUT = "zero_out"


@dataclass(frozen=True)
class RecordOperation:
    kind: OperationKind
    record: VendorProductRecord


@dataclass
class ReconciliationPlan:
    """Create / update / zero-out operations for one vendor."""
    vendor_id: str
    creates: List[RecordOperation] = field(default_factory=list)
    updates: List[RecordOperation] = field(default_factory=list)
    zero_outs: List[RecordOperation] = field(default_factory=list)

    @property
    def operations(self) -> List[RecordOperation]:
        return [*self.creates, *self.updates, *self.zero_outs]

    def __len__(self) -> int:
        return len(self.creates) + len(self.updates) + len(self.zero_outs)

    def is_empty(self) -> bool:
        return len(self) == 0
