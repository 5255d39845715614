"""
Vendor Product Schema - The persisted unit of reconciliation.

Architecture: One record per (vendor_id, product_id, condition_id)
- Each record owns a list of SelectedOption stock buckets keyed by (color, variant)
- Records are created, merged or zeroed; never deleted
- A record whose every option has stock 0 means "known but currently out of stock"

Collections:
- vendor_products: unique index on (vendor_id, product_id, condition_id)

Example Document:
    {
        "_id": ObjectId("..."),
        "vendor_id": "64f0c1d2e3a4b5c6d7e8f901",
        "product_id": ObjectId("..."),
        "condition_id": ObjectId("..."),
        "selected_options": [
            {
                "_id": ObjectId("..."),
                "color": "Black",
                "variant": "128GB 4GB RAM",
                "stock": 2,
                "price": 100,
                "discount": 100,
                "unique_numbers": ["SN001", "SN002"]
            }
        ],
        "created_at": "2024-01-16T00:00:00Z",
        "updated_at": "2024-01-16T00:00:00Z"
    }
"""
from datetime import datetime
from typing import List, Tuple

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field

from core.models.common import PyObjectId, utcnow


OptionKey = Tuple[str, str]
RecordKey = Tuple[ObjectId, ObjectId]


class SelectedOption(BaseModel):
    """A per-(color, variant) stock bucket within one vendor-product record."""
    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True, extra="ignore")

    id: PyObjectId = Field(default_factory=ObjectId, alias="_id")
    color: str
    variant: str
    stock: int = Field(0, ge=0)
    price: float = 0
    discount: float = 0
    unique_numbers: List[str] = Field(default_factory=list)

    @property
    def key(self) -> OptionKey:
        return (self.color, self.variant)

    def same_content(self, other: "SelectedOption") -> bool:
        """Equal ignoring the option identity."""
        return self.model_dump(exclude={"id"}) == other.model_dump(exclude={"id"})


class VendorProductRecord(BaseModel):
    """
    Stock held by one vendor for one (product, condition) combination.

    Stored in the 'vendor_products' collection.
    """
    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True, extra="ignore")

    id: PyObjectId = Field(default_factory=ObjectId, alias="_id")
    vendor_id: str
    product_id: PyObjectId
    condition_id: PyObjectId
    selected_options: List[SelectedOption] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def key(self) -> RecordKey:
        return (self.product_id, self.condition_id)

    @property
    def total_stock(self) -> int:
        return sum(option.stock for option in self.selected_options)

    @property
    def is_zeroed(self) -> bool:
        """True when no option holds stock or unit identifiers."""
        return all(
            option.stock == 0 and not option.unique_numbers
            for option in self.selected_options
        )

    def to_dict_for_db(self) -> dict:
        """Convert to dictionary for MongoDB insertion."""
        return self.model_dump(by_alias=True)

    def options_for_db(self) -> List[dict]:
        return [option.model_dump(by_alias=True) for option in self.selected_options]


def options_match(left: List[SelectedOption], right: List[SelectedOption]) -> bool:
    """True when both option lists hold the same content in the same order."""
    if len(left) != len(right):
        return False
    return all(a.same_content(b) for a, b in zip(left, right))
