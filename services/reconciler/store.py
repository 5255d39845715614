"""
Persistent store boundary.

Abstract interfaces for the catalog, the vendor-product collection and the
vendor list, with MongoDB implementations on top of the shared async
database handle from core.database. Tests substitute in-memory versions.
"""
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, InsertOne, UpdateOne
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import BulkWriteError, PyMongoError

from core.config import Config
from core.logging import get_logger
from core.models import CanonicalProduct, Condition, VendorProductRecord
from services.reconciler.errors import CommitError
from services.reconciler.operations import OperationKind, RecordOperation

logger = get_logger("store")


# ============================================================================
# INTERFACES
# ============================================================================

class CatalogStore(ABC):
    """Canonical products and conditions, with case-insensitive name lookup."""

    @abstractmethod
    async def find_product(self, name: str, exact: bool = True) -> Optional[CanonicalProduct]:
        """First product whose name equals (exact) or contains `name`, ignoring case."""

    @abstractmethod
    async def insert_product(self, product: CanonicalProduct) -> CanonicalProduct:
        ...

    @abstractmethod
    async def find_condition(self, name: str) -> Optional[Condition]:
        """Condition whose name equals `name`, ignoring case."""

    @abstractmethod
    async def insert_condition(self, condition: Condition) -> Condition:
        ...


class VendorProductStore(ABC):
    """Vendor-product records keyed by (vendor_id, product_id, condition_id)."""

    @abstractmethod
    async def find_by_vendor(self, vendor_id: str) -> List[VendorProductRecord]:
        ...

    @abstractmethod
    async def apply_unordered(self, operations: List[RecordOperation]) -> int:
        """
        Apply operations as one unordered batch.

        Returns:
            Number of operations applied.

        Raises:
            CommitError: some operations failed; the others remain applied.
        """

    async def ensure_indexes(self) -> None:
        """Create the unique (vendor, product, condition) index where supported."""


class VendorRegistry(ABC):
    """Source of the configured vendor list."""

    @abstractmethod
    async def list_vendor_documents(self) -> List[Dict[str, Any]]:
        ...


# ============================================================================
# MONGODB IMPLEMENTATIONS
# ============================================================================

def _name_filter(name: str, exact: bool) -> Dict[str, Any]:
    pattern = re.escape(name)
    if exact:
        pattern = f"^{pattern}$"
    return {"name": {"$regex": pattern, "$options": "i"}}


class MongoCatalogStore(CatalogStore):

    def __init__(self, db: AsyncDatabase, config: Config):
        self.products = db[config.PRODUCTS_COLLECTION]
        self.conditions = db[config.CONDITIONS_COLLECTION]

    async def find_product(self, name: str, exact: bool = True) -> Optional[CanonicalProduct]:
        doc = await self.products.find_one(_name_filter(name, exact))
        return CanonicalProduct.model_validate(doc) if doc else None

    async def insert_product(self, product: CanonicalProduct) -> CanonicalProduct:
        await self.products.insert_one(product.to_dict_for_db())
        logger.info(
            f"Created canonical product: {product.name}",
            extra={"product_id": str(product.id), "product_name": product.name},
        )
        return product

    async def find_condition(self, name: str) -> Optional[Condition]:
        doc = await self.conditions.find_one(_name_filter(name, exact=True))
        return Condition.model_validate(doc) if doc else None

    async def insert_condition(self, condition: Condition) -> Condition:
        await self.conditions.insert_one(condition.to_dict_for_db())
        logger.info(
            f"Created condition: {condition.name}",
            extra={"condition_id": str(condition.id), "condition_name": condition.name},
        )
        return condition


class MongoVendorProductStore(VendorProductStore):

    def __init__(self, db: AsyncDatabase, config: Config):
        self.collection = db[config.VENDOR_PRODUCTS_COLLECTION]

    async def find_by_vendor(self, vendor_id: str) -> List[VendorProductRecord]:
        cursor = self.collection.find({"vendor_id": vendor_id})
        return [VendorProductRecord.model_validate(doc) async for doc in cursor]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index(
            [("vendor_id", ASCENDING), ("product_id", ASCENDING), ("condition_id", ASCENDING)],
            unique=True,
            name="vendor_product_condition_unique",
        )

    @staticmethod
    def _to_request(operation: RecordOperation):
        record = operation.record
        if operation.kind is OperationKind.CREATE:
            return InsertOne(record.to_dict_for_db())
        return UpdateOne(
            {"_id": record.id},
            {"$set": {
                "selected_options": record.options_for_db(),
                "updated_at": record.updated_at,
            }},
        )

    async def apply_unordered(self, operations: List[RecordOperation]) -> int:
        if not operations:
            return 0

        requests = [self._to_request(operation) for operation in operations]
        try:
            result = await self.collection.bulk_write(requests, ordered=False)
        except BulkWriteError as e:
            details = e.details or {}
            failed = {
                error["index"]: error.get("errmsg", "write failed")
                for error in details.get("writeErrors", [])
            }
            applied = len(operations) - len(failed)
            raise CommitError(
                f"{len(failed)} of {len(operations)} operations failed",
                failed=failed,
                applied=applied,
            ) from e
        except PyMongoError as e:
            failed = {index: str(e) for index in range(len(operations))}
            raise CommitError(f"Batch write failed: {e}", failed=failed, applied=0) from e

        return result.inserted_count + result.matched_count


class MongoVendorRegistry(VendorRegistry):

    def __init__(self, db: AsyncDatabase, config: Config):
        self.collection = db[config.VENDOR_APIS_COLLECTION]

    async def list_vendor_documents(self) -> List[Dict[str, Any]]:
        return [doc async for doc in self.collection.find({})]
