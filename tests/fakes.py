"""
In-memory stand-ins for the MongoDB stores and the vendor HTTP session.
"""
import json
from typing import Any, Dict, List, Optional, Set

from bson import ObjectId
from curl_cffi import CurlError

from core.models import CanonicalProduct, Condition, VendorProductRecord
from services.reconciler.errors import CommitError
from services.reconciler.operations import OperationKind, RecordOperation
from services.reconciler.store import CatalogStore, VendorProductStore, VendorRegistry


class InMemoryCatalogStore(CatalogStore):

    def __init__(self, products: Optional[List[CanonicalProduct]] = None, conditions: Optional[List[Condition]] = None):
        self.products: List[CanonicalProduct] = list(products or [])
        self.conditions: List[Condition] = list(conditions or [])
        self.lookups: List[tuple] = []
        self.fail_on: Set[str] = set()

    async def find_product(self, name: str, exact: bool = True) -> Optional[CanonicalProduct]:
        self.lookups.append((name, exact))
        if name.lower() in self.fail_on:
            raise RuntimeError(f"catalog unavailable for {name}")
        needle = name.lower()
        for product in self.products:
            stored = product.name.lower()
            if (exact and stored == needle) or (not exact and needle in stored):
                return product
        return None

    async def insert_product(self, product: CanonicalProduct) -> CanonicalProduct:
        self.products.append(product)
        return product

    async def find_condition(self, name: str) -> Optional[Condition]:
        for condition in self.conditions:
            if condition.name.lower() == name.lower():
                return condition
        return None

    async def insert_condition(self, condition: Condition) -> Condition:
        self.conditions.append(condition)
        return condition


class InMemoryVendorProductStore(VendorProductStore):
    """Applies operations one by one; failures are collected, never rolled back."""

    def __init__(self, records: Optional[List[VendorProductRecord]] = None):
        self.records: Dict[ObjectId, VendorProductRecord] = {}
        for record in records or []:
            self.records[record.id] = record.model_copy(deep=True)
        self.fail_record_ids: Set[ObjectId] = set()
        self.batches: List[List[RecordOperation]] = []
        self.indexes_ensured = 0
        self.fail_reads = False

    async def find_by_vendor(self, vendor_id: str) -> List[VendorProductRecord]:
        if self.fail_reads:
            raise RuntimeError("vendor_products unavailable")
        return [
            record.model_copy(deep=True)
            for record in self.records.values()
            if record.vendor_id == vendor_id
        ]

    async def ensure_indexes(self) -> None:
        self.indexes_ensured += 1

    async def apply_unordered(self, operations: List[RecordOperation]) -> int:
        self.batches.append(list(operations))
        failed: Dict[int, str] = {}
        for index, operation in enumerate(operations):
            record = operation.record
            if record.id in self.fail_record_ids:
                failed[index] = f"injected failure for {record.id}"
                continue
            if operation.kind is OperationKind.CREATE:
                duplicate = any(
                    existing.vendor_id == record.vendor_id and existing.key == record.key
                    for existing in self.records.values()
                )
                if duplicate or record.id in self.records:
                    failed[index] = "E11000 duplicate key error"
                    continue
            elif record.id not in self.records:
                failed[index] = f"no record {record.id}"
                continue
            self.records[record.id] = record.model_copy(deep=True)

        if failed:
            raise CommitError(
                f"{len(failed)} of {len(operations)} operations failed",
                failed=failed,
                applied=len(operations) - len(failed),
            )
        return len(operations)

    def for_vendor(self, vendor_id: str) -> List[VendorProductRecord]:
        return [record for record in self.records.values() if record.vendor_id == vendor_id]


class InMemoryVendorRegistry(VendorRegistry):

    def __init__(self, documents: List[Dict[str, Any]], fail: bool = False):
        self.documents = documents
        self.fail = fail

    async def list_vendor_documents(self) -> List[Dict[str, Any]]:
        if self.fail:
            raise RuntimeError("vendor_apis unavailable")
        return [dict(doc) for doc in self.documents]


# ============================================================================
# FAKE HTTP
# ============================================================================

class FakeResponse:

    def __init__(self, status_code: int = 200, body: Any = None, text: Optional[str] = None):
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else json.dumps(body)

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """
    Routes GET requests by URL to canned responses or exceptions.

    Usage:
        routes = {"https://a.example": FakeResponse(200, {"data": []})}
        adapter = GenericFeedAdapter(config, session_factory=lambda: FakeSession(routes))
    """

    def __init__(self, routes: Dict[str, Any], calls: Optional[List[dict]] = None):
        self.routes = routes
        self.calls = calls if calls is not None else []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def get(self, url: str, headers: Optional[dict] = None, timeout: Optional[float] = None):
        self.calls.append({"url": url, "headers": headers or {}, "timeout": timeout})
        outcome = self.routes.get(url)
        if outcome is None:
            raise CurlError(f"Could not resolve host: {url}")
        if isinstance(outcome, list):
            outcome = outcome.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def wholecell_entry(
    manufacturer: str = "Acme",
    model: str = "X1",
    color: str = "Black",
    capacity: str = "128",
    status: str = "Available",
    price_cents: int = 10000,
    serial: Optional[str] = None,
    item_id: int = 1,
) -> Dict[str, Any]:
    """One Wholecell-shaped feed entry."""
    return {
        "id": item_id,
        "serial_number": serial,
        "esn": None,
        "status": status,
        "total_price_paid": price_cents,
        "product_variation": {
            "sku": f"SKU-{item_id}",
            "grade": "A",
            "product": {
                "manufacturer": manufacturer,
                "model": model,
                "color": color,
                "capacity": capacity,
            },
        },
    }


def generic_entry(
    manufacturer: str = "Apple",
    model: str = "iPhone 13",
    color: str = "Blue",
    capacity: Optional[str] = "256",
    grade: str = "B",
    status: str = "Available",
    price: float = 420.0,
    esn: Optional[str] = None,
    item_id: int = 1,
) -> Dict[str, Any]:
    """One generic-shaped feed entry."""
    return {
        "id": item_id,
        "esn": esn,
        "hex_id": None,
        "status": status,
        "total_price_paid": price,
        "product_variation": {
            "sku": None,
            "grade": grade,
            "product": {
                "manufacturer": manufacturer,
                "model": model,
                "color": color,
                "capacity": capacity,
            },
        },
    }
