"""
Catalog Schema - Canonical products and condition grades.

Both collections outlive any single vendor. The reconciliation engine reads
them for matching and only inserts new entries for adapters that allow it.
"""
from datetime import datetime
from typing import List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field

from core.models.common import PyObjectId, utcnow


UNKNOWN_LABEL = "Unknown"


class CanonicalProduct(BaseModel):
    """
    The catalog's de-duplicated representation of a manufacturer/model.

    Stored in the 'canonical_products' collection.

    `storage_spec` is an optional comma-separated list of variant tokens,
    e.g. "128GB 4GB RAM, 256GB 8GB RAM", used to derive variant descriptors.
    """
    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True, extra="ignore")

    id: PyObjectId = Field(default_factory=ObjectId, alias="_id")
    name: str
    manufacturer: str = UNKNOWN_LABEL
    model: str = ""
    category: str = UNKNOWN_LABEL
    storage_spec: Optional[str] = None
    images_by_color: List[dict] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def storage_tokens(self) -> List[str]:
        """Split storage_spec into trimmed, non-empty tokens."""
        if not self.storage_spec:
            return []
        return [token.strip() for token in self.storage_spec.split(",") if token.strip()]

    def to_dict_for_db(self) -> dict:
        """Convert to dictionary for MongoDB insertion."""
        return self.model_dump(by_alias=True)


class Condition(BaseModel):
    """A normalized grade label, stored in the 'conditions' collection."""
    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True, extra="ignore")

    id: PyObjectId = Field(default_factory=ObjectId, alias="_id")
    name: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def to_dict_for_db(self) -> dict:
        return self.model_dump(by_alias=True)


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_canonical_product(manufacturer: str, model: str) -> CanonicalProduct:
    """
    Factory for a product first sighted in a vendor feed.

    Category defaults to the manufacturer; images start empty.
    """
    name = f"{manufacturer} {model}".strip()
    return CanonicalProduct(
        name=name,
        manufacturer=manufacturer or UNKNOWN_LABEL,
        model=model or "",
        category=manufacturer or UNKNOWN_LABEL,
    )


def create_condition(label: str) -> Condition:
    """Factory for a grade label first sighted in a vendor feed."""
    return Condition(name=label or UNKNOWN_LABEL)
