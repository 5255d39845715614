"""
Grouper and Option Aggregator.

Grouping partitions raw items by the raw strings
"{manufacturer}_{model}_{conditionLabel}" before any catalog resolution.
Items with no manufacturer/model still form a (degenerate) group; resolution
downstream decides what happens to it.

Aggregation folds one group's contributing items into SelectedOption buckets
keyed by (color, variant descriptor).
"""
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from core.models import (
    CanonicalProduct,
    OptionKey,
    RawVendorItem,
    SelectedOption,
    UNKNOWN_LABEL,
)
from services.reconciler.policies import AdapterPolicy

DEFAULT_RAM = "4GB RAM"
STANDARD_VARIANT = "Standard"

_GB_SUFFIX = re.compile(r"\s*GB$", re.IGNORECASE)


# ============================================================================
# GROUPER
# ============================================================================

@dataclass
class ItemGroup:
    key: str
    manufacturer: str
    model: str
    condition_label: str
    items: List[RawVendorItem] = field(default_factory=list)


def group_key(manufacturer: str, model: str, condition_label: str) -> str:
    return f"{manufacturer}_{model}_{condition_label}"


def group_items(
    items: Iterable[RawVendorItem],
    fixed_condition_label: Optional[str] = None,
) -> Dict[str, ItemGroup]:
    """
    Partition items by raw manufacturer, model and condition label.

    Args:
        items: Raw vendor items
        fixed_condition_label: Label used for every item instead of its grade
            (adapters with a pinned condition)

    Returns:
        Groups keyed by group_key(), in first-seen order
    """
    groups: Dict[str, ItemGroup] = {}
    for item in items:
        condition_label = fixed_condition_label or item.grade or UNKNOWN_LABEL
        key = group_key(item.manufacturer, item.model, condition_label)
        group = groups.get(key)
        if group is None:
            group = ItemGroup(
                key=key,
                manufacturer=item.manufacturer,
                model=item.model,
                condition_label=condition_label,
            )
            groups[key] = group
        group.items.append(item)
    return groups


# ============================================================================
# VARIANT DESCRIPTORS
# ============================================================================

def normalize_capacity(capacity: str) -> str:
    """'128GB', '128 gb' and '128' all become '128'."""
    return _GB_SUFFIX.sub("", (capacity or "").strip())


def _find_storage_token(tokens: List[str], capacity: str) -> Optional[str]:
    with_unit = re.compile(rf"(?<!\d){re.escape(capacity)}\s*GB", re.IGNORECASE)
    for token in tokens:
        if with_unit.search(token):
            return token

    bare = re.compile(rf"(?<!\d){re.escape(capacity)}(?!\d)")
    for token in tokens:
        if bare.search(token):
            return token
    return None


def derive_variant(item: RawVendorItem, product: Optional[CanonicalProduct] = None) -> str:
    """
    Human-readable variant descriptor for an item.

    Priority:
        1. the product's storage token matching the capacity ("128GB 4GB RAM")
        2. a synthesized "{capacity}GB 4GB RAM"
        3. the vendor-reported variant label
        4. "Standard"
    """
    capacity = normalize_capacity(item.capacity)
    if capacity:
        tokens = product.storage_tokens() if product else []
        if tokens:
            token = _find_storage_token(tokens, capacity)
            if token:
                return token
        if capacity.isdigit():
            return f"{capacity}GB {DEFAULT_RAM}"
        return f"{capacity} {DEFAULT_RAM}"
    if item.variant:
        return item.variant
    return STANDARD_VARIANT


# ============================================================================
# OPTION AGGREGATOR
# ============================================================================

def build_selected_options(
    items: Iterable[RawVendorItem],
    product: Optional[CanonicalProduct],
    policy: AdapterPolicy,
) -> List[SelectedOption]:
    """
    Fold contributing items into (color, variant) stock buckets.

    The first item under a key fixes the bucket's price (converted per
    policy) and discount; every contributing item adds one unit of stock and
    its unit identifier. Items the policy does not count are ignored.
    """
    options: Dict[OptionKey, SelectedOption] = {}
    for item in items:
        if not policy.contributes(item):
            continue

        color = item.color or UNKNOWN_LABEL
        variant = derive_variant(item, product)
        option = options.get((color, variant))
        if option is None:
            price = policy.convert_price(item.price_paid)
            option = SelectedOption(
                color=color,
                variant=variant,
                stock=0,
                price=price,
                discount=policy.discount_for(price),
            )
            options[(color, variant)] = option

        option.stock += 1
        option.unique_numbers.append(item.unit_identifier)

    return list(options.values())


def has_stock(options: List[SelectedOption]) -> bool:
    """False for an empty list or one where every option is at zero."""
    return any(option.stock > 0 for option in options)
