"""
Vendor Feed Adapters - fetch and decode one vendor's raw item list.

Each adapter owns its vendor-specific field mapping. Adapters never retry;
retry policy belongs to the orchestrator.

Wire contract:
    GET {baseUrl}
    Authorization: Basic base64(appId:appSecret)
    Accept: application/json

    -> {"data": [ {...item...}, ... ]}

Any other body shape decodes to an empty item list.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from curl_cffi import CurlError
from curl_cffi.requests import AsyncSession
from pydantic import ValidationError

from core.config import Config
from core.logging import get_logger
from core.models import AdapterName, RawVendorItem, VendorApiConfig
from services.reconciler.errors import FetchError

logger = get_logger("vendor-feeds")


@dataclass
class FeedResult:
    """Decoded feed: usable items plus the count of entries that failed mapping."""
    items: List[RawVendorItem] = field(default_factory=list)
    malformed: int = 0

    @property
    def total(self) -> int:
        return len(self.items) + self.malformed


# ============================================================================
# BASE ADAPTER
# ============================================================================

class FeedAdapter(ABC):
    """
    Base class for vendor feed adapters.

    Subclasses implement map_item() to turn one JSON entry into a
    RawVendorItem. The HTTP session is created per fetch by session_factory,
    which tests replace with a fake.
    """

    name: AdapterName

    def __init__(self, config: Config, session_factory: Optional[Callable[[], Any]] = None):
        self.config = config
        self._session_factory = session_factory or AsyncSession

    @abstractmethod
    def map_item(self, raw: Dict[str, Any], position: int) -> RawVendorItem:
        """Map one feed entry. Raises ValidationError on unusable entries."""

    def feed_url(self, vendor: VendorApiConfig) -> str:
        return vendor.base_url or self.config.VENDOR_API_BASE_URL

    async def fetch(self, vendor: VendorApiConfig) -> FeedResult:
        """
        Poll the vendor feed once.

        Raises:
            FetchError: transport failure, timeout, non-2xx status or invalid JSON
        """
        url = self.feed_url(vendor)
        headers = {
            "Accept": "application/json",
            "Authorization": vendor.basic_auth_header(),
        }

        logger.info(
            f"Fetching items for vendor {vendor.vendor_id}",
            extra={"vendor_id": vendor.vendor_id, "adapter": self.name, "url": url},
        )

        try:
            async with self._session_factory() as session:
                response = await session.get(
                    url,
                    headers=headers,
                    timeout=self.config.VENDOR_FETCH_TIMEOUT,
                )
        except CurlError as e:
            raise FetchError(f"Request to vendor feed failed: {e}", vendor_id=vendor.vendor_id) from e

        if not 200 <= response.status_code < 300:
            raise FetchError(
                f"Vendor feed returned HTTP {response.status_code}",
                vendor_id=vendor.vendor_id,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchError("Vendor feed returned invalid JSON", vendor_id=vendor.vendor_id) from e

        result = self.decode(payload, vendor_id=vendor.vendor_id)
        logger.info(
            f"Vendor {vendor.vendor_id}: fetched {len(result.items)} items",
            extra={
                "vendor_id": vendor.vendor_id,
                "items": len(result.items),
                "malformed": result.malformed,
            },
        )
        return result

    def decode(self, payload: Any, vendor_id: Optional[str] = None) -> FeedResult:
        """Decode a JSON body; anything without a `data` list is an empty feed."""
        entries = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(entries, list):
            logger.warning(
                "Vendor feed body has no data array, treating as empty",
                extra={"vendor_id": vendor_id, "body_type": type(payload).__name__},
            )
            return FeedResult()

        result = FeedResult()
        for position, raw in enumerate(entries):
            if not isinstance(raw, dict):
                result.malformed += 1
                continue
            try:
                result.items.append(self.map_item(raw, position))
            except ValidationError:
                result.malformed += 1
                logger.warning(
                    f"Skipping malformed feed entry at position {position}",
                    exc_info=True,
                    extra={"vendor_id": vendor_id, "position": position},
                )
        return result


def _nested(raw: Dict[str, Any]) -> tuple:
    """(product_variation, product) sub-objects, tolerating nulls."""
    variation = raw.get("product_variation") or {}
    if not isinstance(variation, dict):
        variation = {}
    product = variation.get("product") or {}
    if not isinstance(product, dict):
        product = {}
    return variation, product


# ============================================================================
# CONCRETE ADAPTERS
# ============================================================================

class GenericFeedAdapter(FeedAdapter):
    """Feeds with free-form grades and dollar prices."""

    name = "generic"

    def map_item(self, raw: Dict[str, Any], position: int) -> RawVendorItem:
        variation, product = _nested(raw)
        return RawVendorItem(
            manufacturer=product.get("manufacturer"),
            model=product.get("model"),
            color=product.get("color"),
            capacity=product.get("capacity"),
            variant=product.get("variant"),
            grade=variation.get("grade"),
            esn=raw.get("esn"),
            hex_id=raw.get("hex_id"),
            sku=variation.get("sku"),
            item_id=raw.get("id"),
            position=position,
            status=raw.get("status"),
            price_paid=raw.get("total_price_paid"),
        )


class WholecellFeedAdapter(FeedAdapter):
    """
    Wholecell inventory feeds.

    Prices are reported in cents and units carry a serial number in addition
    to ESN/hex id. The grade is ignored: the vendor's condition is fixed.
    """

    name = "wholecell"

    def map_item(self, raw: Dict[str, Any], position: int) -> RawVendorItem:
        variation, product = _nested(raw)
        return RawVendorItem(
            manufacturer=product.get("manufacturer"),
            model=product.get("model"),
            color=product.get("color"),
            capacity=product.get("capacity"),
            variant=product.get("variant"),
            grade=variation.get("grade"),
            serial_number=raw.get("serial_number"),
            esn=raw.get("esn"),
            hex_id=raw.get("hex_id"),
            sku=variation.get("sku"),
            item_id=raw.get("id"),
            position=position,
            status=raw.get("status"),
            price_paid=raw.get("total_price_paid"),
        )


FEED_ADAPTERS = {
    GenericFeedAdapter.name: GenericFeedAdapter,
    WholecellFeedAdapter.name: WholecellFeedAdapter,
}


def get_feed_adapter(
    adapter: str,
    config: Config,
    session_factory: Optional[Callable[[], Any]] = None,
) -> FeedAdapter:
    """Build the feed adapter registered under `adapter`."""
    try:
        adapter_cls = FEED_ADAPTERS[adapter]
    except KeyError:
        raise ValueError(f"Unknown adapter: {adapter}") from None
    return adapter_cls(config, session_factory=session_factory)
