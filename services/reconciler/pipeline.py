"""
Per-vendor reconciliation pipeline: group -> resolve -> aggregate -> diff -> commit.

A failure while processing one product group is logged and counted; the
remaining groups still run. Failures outside the group loop (reading the
vendor's persisted records) propagate to the orchestrator.
"""
from typing import Dict, List, Optional, Set

from bson import ObjectId

from core.logging import get_logger
from core.models import (
    RecordKey,
    SelectedOption,
    VendorApiConfig,
    VendorSyncSummary,
)
from services.reconciler.batcher import CommitBatcher
from services.reconciler.differ import diff_vendor_records, merge_additive
from services.reconciler.feeds import FeedResult
from services.reconciler.grouping import ItemGroup, build_selected_options, group_items, has_stock
from services.reconciler.policies import AdapterPolicy
from services.reconciler.resolver import ConditionResolver, ProductResolver
from services.reconciler.store import VendorProductStore

logger = get_logger("pipeline")

# Group label used when the adapter pins one condition per vendor
FIXED_CONDITION_LABEL = "fixed"


class VendorPipeline:
    """
    One reconciliation pass for one vendor.

    Usage:
        pipeline = VendorPipeline(vendor, policy, products, conditions, store)
        summary = await pipeline.reconcile(feed_result)
    """

    def __init__(
        self,
        vendor: VendorApiConfig,
        policy: AdapterPolicy,
        product_resolver: ProductResolver,
        condition_resolver: ConditionResolver,
        store: VendorProductStore,
        sync_to_db: bool = True,
    ):
        self.vendor = vendor
        self.policy = policy
        self.products = product_resolver
        self.conditions = condition_resolver
        self.store = store
        self.sync_to_db = sync_to_db

    async def _condition_id(self, group: ItemGroup) -> ObjectId:
        if self.policy.fixed_condition:
            return self.vendor.condition_id
        condition = await self.conditions.resolve(group.condition_label)
        return condition.id

    async def reconcile(self, feed: FeedResult) -> VendorSyncSummary:
        vendor_id = self.vendor.vendor_id
        summary = VendorSyncSummary(
            vendor_id=vendor_id,
            adapter=self.policy.name,
            total_fetched=feed.total,
            malformed_items=feed.malformed,
            dry_run=not self.sync_to_db,
        )

        fixed_label = FIXED_CONDITION_LABEL if self.policy.fixed_condition else None
        groups = group_items(feed.items, fixed_condition_label=fixed_label)
        summary.groups_processed = len(groups)

        fresh: Dict[RecordKey, List[SelectedOption]] = {}
        protected: Set[RecordKey] = set()

        for group in groups.values():
            record_key: Optional[RecordKey] = None
            try:
                product = await self.products.resolve(
                    group.manufacturer, group.model, self.policy.allow_create
                )
                if product is None:
                    summary.skipped_products += 1
                    logger.warning(
                        f"Skipping group {group.key}: no catalog product",
                        extra={"vendor_id": vendor_id, "group": group.key, "items": len(group.items)},
                    )
                    continue

                record_key = (product.id, await self._condition_id(group))
                options = build_selected_options(group.items, product, self.policy)
                summary.valid_products += 1

                if not has_stock(options):
                    continue
                if record_key in fresh:
                    # Two raw labels resolved to the same catalog entry
                    fresh[record_key] = merge_additive(fresh[record_key], options, self.policy)
                else:
                    fresh[record_key] = options
            except Exception:
                summary.failed_groups += 1
                if record_key is not None:
                    protected.add(record_key)
                logger.error(
                    f"Error processing group {group.key}",
                    exc_info=True,
                    extra={"vendor_id": vendor_id, "group": group.key},
                )

        persisted = await self.store.find_by_vendor(vendor_id)
        plan = diff_vendor_records(vendor_id, fresh, persisted, self.policy, protected=protected)
        summary.total_operations = len(plan)

        if not self.sync_to_db:
            summary.new_records = len(plan.creates)
            summary.updated_records = len(plan.updates)
            summary.marked_out_of_stock = len(plan.zero_outs)
            logger.info(
                f"DRY RUN for vendor {vendor_id}: {len(plan)} operations planned",
                extra={"vendor_id": vendor_id, "operations": len(plan)},
            )
            return summary

        result = await CommitBatcher(self.store).commit(plan)
        summary.new_records = result.created
        summary.updated_records = result.updated
        summary.marked_out_of_stock = result.zeroed
        summary.failed_operations = result.failed_operations
        summary.commit_errors = result.errors
        return summary
