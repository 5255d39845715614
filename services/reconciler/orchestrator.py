"""
Sync Orchestrator.

Loads the configured vendor list and runs every vendor's pipeline
concurrently on one event loop. Each vendor's outcome lands in its own
summary slot: a failure at any stage of one vendor becomes that vendor's
error entry and leaves the others untouched. Only failures before the
fan-out (vendor list or indexes unavailable) escape run().
"""
import asyncio
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError
from pymongo.asynchronous.database import AsyncDatabase

from core.config import Config
from core.logging import get_logger, log_execution_time
from core.models import SyncReport, VendorApiConfig, VendorSyncSummary, utcnow
from services.reconciler.errors import FetchError, VendorConfigError
from services.reconciler.feeds import FEED_ADAPTERS, FeedAdapter, FeedResult, get_feed_adapter
from services.reconciler.pipeline import VendorPipeline
from services.reconciler.policies import policy_for
from services.reconciler.resolver import CatalogProductResolver, ConditionResolver
from services.reconciler.store import (
    CatalogStore,
    MongoCatalogStore,
    MongoVendorProductStore,
    MongoVendorRegistry,
    VendorProductStore,
    VendorRegistry,
)

logger = get_logger("orchestrator")


class SyncOrchestrator:
    """
    Fans the reconciliation pipeline out across vendors.

    The resolvers are shared by all vendor pipelines of one run so catalog
    lookups are cached and product creation is serialized.
    """

    def __init__(
        self,
        config: Config,
        registry: VendorRegistry,
        catalog: CatalogStore,
        vendor_store: VendorProductStore,
        session_factory: Optional[Callable[[], Any]] = None,
    ):
        self.config = config
        self.registry = registry
        self.catalog = catalog
        self.vendor_store = vendor_store
        self.session_factory = session_factory

    @classmethod
    def from_database(cls, config: Config, db: AsyncDatabase) -> "SyncOrchestrator":
        return cls(
            config=config,
            registry=MongoVendorRegistry(db, config),
            catalog=MongoCatalogStore(db, config),
            vendor_store=MongoVendorProductStore(db, config),
        )

    @log_execution_time(logger)
    async def run(self, adapter: Optional[str] = None, dry_run: Optional[bool] = None) -> SyncReport:
        """
        Sync all configured vendors, or only those using `adapter`.

        Args:
            adapter: "generic" or "wholecell" to scope the run; None for all
            dry_run: Override config.SYNC_TO_DB; True computes plans without writing

        Returns:
            SyncReport with one summary per vendor
        """
        if adapter is not None and adapter not in FEED_ADAPTERS:
            raise ValueError(f"Unknown adapter: {adapter}")
        sync_to_db = self.config.SYNC_TO_DB if dry_run is None else not dry_run

        report = SyncReport(adapter=adapter)
        logger.info("Starting sync for all vendors...", extra={"adapter": adapter, "sync_to_db": sync_to_db})

        documents = await self.registry.list_vendor_documents()
        if adapter is not None:
            documents = [doc for doc in documents if doc.get("adapter", "generic") == adapter]
        logger.info(f"Found {len(documents)} vendor API configs", extra={"vendors": len(documents)})

        if sync_to_db:
            await self.vendor_store.ensure_indexes()

        # One resolver pair per run, shared by every vendor
        products = CatalogProductResolver(self.catalog)
        conditions = ConditionResolver(self.catalog)

        results = await asyncio.gather(
            *(self._sync_vendor(doc, products, conditions, sync_to_db) for doc in documents),
            return_exceptions=True,
        )

        for doc, result in zip(documents, results):
            if isinstance(result, Exception):
                vendor_id = str(doc.get("vendorId", doc.get("_id", "unknown")))
                logger.error(
                    f"Vendor {vendor_id} sync failed: {result}",
                    exc_info=result,
                    extra={"vendor_id": vendor_id},
                )
                report.summary.append(
                    VendorSyncSummary.failed(
                        vendor_id=vendor_id,
                        error=str(result) or type(result).__name__,
                        adapter=doc.get("adapter", "generic"),
                    )
                )
            else:
                report.summary.append(result)

        report.finished_at = utcnow()
        logger.info(
            "All vendor sync complete",
            extra={"vendors": len(report.summary), "failed": report.failed_vendors},
        )
        return report

    async def _sync_vendor(
        self,
        document: Dict[str, Any],
        products: CatalogProductResolver,
        conditions: ConditionResolver,
        sync_to_db: bool,
    ) -> VendorSyncSummary:
        try:
            vendor = VendorApiConfig.model_validate(document)
        except ValidationError as e:
            raise VendorConfigError(f"Invalid vendor configuration: {e.errors()[0]['msg']}") from e

        policy = policy_for(vendor.adapter, dedupe_unit_ids=self.config.DEDUPE_UNIT_IDS)
        feed_adapter = get_feed_adapter(vendor.adapter, self.config, self.session_factory)
        feed = await self.fetch_with_retry(feed_adapter, vendor)

        pipeline = VendorPipeline(
            vendor=vendor,
            policy=policy,
            product_resolver=products,
            condition_resolver=conditions,
            store=self.vendor_store,
            sync_to_db=sync_to_db,
        )
        return await pipeline.reconcile(feed)

    async def fetch_with_retry(self, feed_adapter: FeedAdapter, vendor: VendorApiConfig) -> FeedResult:
        """Fetch with VENDOR_FETCH_RETRIES extra attempts and linear backoff."""
        attempts = max(self.config.VENDOR_FETCH_RETRIES, 0) + 1
        for attempt in range(1, attempts + 1):
            try:
                return await feed_adapter.fetch(vendor)
            except FetchError as e:
                if attempt >= attempts:
                    raise
                delay = self.config.VENDOR_FETCH_RETRY_DELAY * attempt
                logger.warning(
                    f"Fetch failed for vendor {vendor.vendor_id}, retrying in {delay:.1f}s",
                    extra={"vendor_id": vendor.vendor_id, "attempt": attempt, "error": str(e)},
                )
                await asyncio.sleep(delay)


# ============================================================================
# TRIGGERS
# ============================================================================

async def sync_vendors(
    config: Config,
    db: AsyncDatabase,
    adapter: Optional[str] = None,
    dry_run: Optional[bool] = None,
) -> Dict[str, Any]:
    """
    Run one sync and return the JSON-serializable report.

    `adapter=None` syncs every configured vendor; "generic" or "wholecell"
    scopes the run to one adapter class.
    """
    orchestrator = SyncOrchestrator.from_database(config, db)
    report = await orchestrator.run(adapter=adapter, dry_run=dry_run)
    return report.to_report()


async def sync_all_vendors(config: Config, db: AsyncDatabase) -> Dict[str, Any]:
    return await sync_vendors(config, db)


async def sync_wholecell_vendors(config: Config, db: AsyncDatabase) -> Dict[str, Any]:
    return await sync_vendors(config, db, adapter="wholecell")
