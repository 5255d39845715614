"""
Commit Batcher - apply one vendor's plan as a single unordered batch.

The batch is not atomic: a failed operation does not stop the others, and
nothing is rolled back. Counts reflect what was actually applied.
"""
from dataclasses import dataclass, field
from typing import List

from core.logging import get_logger, log_execution_time
from services.reconciler.errors import CommitError
from services.reconciler.operations import OperationKind, ReconciliationPlan
from services.reconciler.store import VendorProductStore

logger = get_logger("batcher")


@dataclass
class CommitResult:
    created: int = 0
    updated: int = 0
    zeroed: int = 0
    total_operations: int = 0
    failed_operations: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def applied(self) -> int:
        return self.created + self.updated + self.zeroed


class CommitBatcher:

    def __init__(self, store: VendorProductStore):
        self.store = store

    @log_execution_time(logger)
    async def commit(self, plan: ReconciliationPlan) -> CommitResult:
        operations = plan.operations
        result = CommitResult(total_operations=len(operations))
        if not operations:
            return result

        failed = {}
        try:
            await self.store.apply_unordered(operations)
        except CommitError as e:
            failed = e.failed
            result.errors = e.messages
            logger.error(
                f"Partial commit for vendor {plan.vendor_id}: {len(failed)} of {len(operations)} operations failed",
                extra={"vendor_id": plan.vendor_id, "failed": len(failed), "errors": e.messages[:5]},
            )

        for index, operation in enumerate(operations):
            if index in failed:
                continue
            if operation.kind is OperationKind.CREATE:
                result.created += 1
            elif operation.kind is OperationKind.UPDATE:
                result.updated += 1
            else:
                result.zeroed += 1

        result.failed_operations = len(failed)
        logger.info(
            f"Committed {result.applied} operations for vendor {plan.vendor_id}",
            extra={
                "vendor_id": plan.vendor_id,
                # "created" is a LogRecord attribute and cannot be passed in extra
                "records_created": result.created,
                "records_updated": result.updated,
                "records_zeroed": result.zeroed,
                "failed": result.failed_operations,
            },
        )
        return result
