"""
Adapter policies.

The generic and Wholecell feeds share one pipeline. Everything that differs
between them lives in a small, frozen AdapterPolicy:

    generic    every non-Sold item counts, dollar prices, discount 0,
               products/conditions created on demand, options replaced on update
    wholecell  only Available items count, cent prices, discount = price,
               catalog products only, fixed condition, options merged additively
"""
import math
from dataclasses import dataclass, replace
from typing import Literal

from core.models import AdapterName, RawVendorItem

MergeStrategy = Literal["replace", "additive"]


@dataclass(frozen=True)
class AdapterPolicy:
    name: AdapterName
    allow_create: bool
    fixed_condition: bool
    only_available: bool
    price_in_cents: bool
    discount_equals_price: bool
    merge_strategy: MergeStrategy
    dedupe_unit_ids: bool = False

    def contributes(self, item: RawVendorItem) -> bool:
        """Whether the item adds a unit to stock."""
        if self.only_available:
            return item.is_available
        return not item.is_sold

    def convert_price(self, price_paid: float) -> float:
        """Vendor price to catalog price (cents are divided by 100, rounded half up)."""
        if self.price_in_cents:
            return math.floor(price_paid / 100 + 0.5)
        return price_paid

    def discount_for(self, price: float) -> float:
        return price if self.discount_equals_price else 0

    def with_dedupe(self, enabled: bool) -> "AdapterPolicy":
        return replace(self, dedupe_unit_ids=enabled)


GENERIC_POLICY = AdapterPolicy(
    name="generic",
    allow_create=True,
    fixed_condition=False,
    only_available=False,
    price_in_cents=False,
    discount_equals_price=False,
    merge_strategy="replace",
)

WHOLECELL_POLICY = AdapterPolicy(
    name="wholecell",
    allow_create=False,
    fixed_condition=True,
    only_available=True,
    price_in_cents=True,
    discount_equals_price=True,
    merge_strategy="additive",
)

POLICIES = {
    GENERIC_POLICY.name: GENERIC_POLICY,
    WHOLECELL_POLICY.name: WHOLECELL_POLICY,
}


def policy_for(adapter: str, dedupe_unit_ids: bool = False) -> AdapterPolicy:
    """Look up the policy for an adapter name."""
    try:
        policy = POLICIES[adapter]
    except KeyError:
        raise ValueError(f"Unknown adapter: {adapter}") from None
    return policy.with_dedupe(dedupe_unit_ids)
