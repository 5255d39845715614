"""
Differencer - compare freshly aggregated options with persisted records.

Produces three disjoint operation classes for one vendor:

    create    (product, condition) stocked now, no persisted record
    update    stocked now and persisted; options merged per adapter policy
    zero-out  persisted but absent now; every option's stock and unit list
              cleared, record identity and option set kept

Merge policies:
    replace   generic adapter; the fresh option list replaces the old one
              (options keep their persisted _id when the key survives)
    additive  Wholecell adapter; per (color, variant): stock summed, unit ids
              concatenated, price = min(old, new), discount re-pinned to price

Updates that would not change anything and zero-outs of records that are
already empty are not emitted.
"""
from datetime import datetime
from typing import Collection, Dict, List, Optional

from core.logging import get_logger
from core.models import (
    RecordKey,
    SelectedOption,
    VendorProductRecord,
    options_match,
    utcnow,
)
from services.reconciler.grouping import has_stock
from services.reconciler.operations import (
    OperationKind,
    ReconciliationPlan,
    RecordOperation,
)
from services.reconciler.policies import AdapterPolicy

logger = get_logger("differ")


# ============================================================================
# MERGE STRATEGIES
# ============================================================================

def replace_options(existing: List[SelectedOption], fresh: List[SelectedOption]) -> List[SelectedOption]:
    ids = {option.key: option.id for option in existing}
    return [option.model_copy(update={"id": ids.get(option.key, option.id)}) for option in fresh]


def merge_additive(
    existing: List[SelectedOption],
    fresh: List[SelectedOption],
    policy: AdapterPolicy,
) -> List[SelectedOption]:
    """
    Additive per-key merge. Options only present in `existing` are kept as-is.

    With policy.dedupe_unit_ids, only unit ids not already tracked add stock;
    otherwise stock is summed and unit ids concatenated without de-duplication.
    """
    merged = [option.model_copy(deep=True) for option in existing]
    by_key = {option.key: option for option in merged}

    for option in fresh:
        current = by_key.get(option.key)
        if current is None:
            current = option.model_copy(deep=True)
            merged.append(current)
            by_key[current.key] = current
            continue

        if policy.dedupe_unit_ids:
            known = set(current.unique_numbers)
            added = [unit for unit in dict.fromkeys(option.unique_numbers) if unit not in known]
            current.stock += len(added)
            current.unique_numbers.extend(added)
        else:
            current.stock += option.stock
            current.unique_numbers.extend(option.unique_numbers)

        current.price = min(current.price, option.price)
        current.discount = policy.discount_for(current.price)

    return merged


def merge_options(
    existing: List[SelectedOption],
    fresh: List[SelectedOption],
    policy: AdapterPolicy,
) -> List[SelectedOption]:
    if policy.merge_strategy == "replace":
        return replace_options(existing, fresh)
    return merge_additive(existing, fresh, policy)


def zero_options(options: List[SelectedOption]) -> List[SelectedOption]:
    return [option.model_copy(update={"stock": 0, "unique_numbers": []}) for option in options]


# ============================================================================
# DIFF
# ============================================================================

def diff_vendor_records(
    vendor_id: str,
    fresh: Dict[RecordKey, List[SelectedOption]],
    persisted: List[VendorProductRecord],
    policy: AdapterPolicy,
    protected: Collection[RecordKey] = (),
    now: Optional[datetime] = None,
) -> ReconciliationPlan:
    """
    Build the operation plan for one vendor.

    Args:
        vendor_id: Vendor whose records are being reconciled
        fresh: (product_id, condition_id) -> options aggregated this pass
        persisted: The vendor's current records
        policy: Adapter policy (merge strategy, discount rule)
        protected: Keys whose group failed this pass; never zeroed
        now: Timestamp for created_at/updated_at

    Returns:
        ReconciliationPlan with disjoint creates, updates and zero-outs
    """
    now = now or utcnow()
    plan = ReconciliationPlan(vendor_id=vendor_id)

    # Groups with no stock never create; an existing record falls to zero-out
    stocked = {key: options for key, options in fresh.items() if has_stock(options)}

    existing_by_key: Dict[RecordKey, VendorProductRecord] = {}
    for record in persisted:
        if record.key in existing_by_key:
            logger.warning(
                "Duplicate vendor product record, keeping the first",
                extra={"vendor_id": vendor_id, "record_id": str(record.id)},
            )
            continue
        existing_by_key[record.key] = record

    for key, options in stocked.items():
        existing = existing_by_key.get(key)
        if existing is None:
            record = VendorProductRecord(
                vendor_id=vendor_id,
                product_id=key[0],
                condition_id=key[1],
                selected_options=options,
                created_at=now,
                updated_at=now,
            )
            plan.creates.append(RecordOperation(OperationKind.CREATE, record))
            continue

        merged = merge_options(existing.selected_options, options, policy)
        if options_match(existing.selected_options, merged):
            continue
        updated = existing.model_copy(update={"selected_options": merged, "updated_at": now})
        plan.updates.append(RecordOperation(OperationKind.UPDATE, updated))

    for key, record in existing_by_key.items():
        if key in stocked or key in protected or record.is_zeroed:
            continue
        zeroed = record.model_copy(update={
            "selected_options": zero_options(record.selected_options),
            "updated_at": now,
        })
        plan.zero_outs.append(RecordOperation(OperationKind.ZERO_OUT, zeroed))

    logger.info(
        "Reconciliation plan built",
        extra={
            "vendor_id": vendor_id,
            "creates": len(plan.creates),
            "updates": len(plan.updates),
            "zero_outs": len(plan.zero_outs),
        },
    )
    return plan
