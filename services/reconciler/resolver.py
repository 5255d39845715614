"""
Product Resolver - match raw manufacturer/model strings to catalog entries.

Matching strategy (CatalogProductResolver):
    1. candidate = "{manufacturer} {model}".strip()
    2. case-insensitive exact match on the stored name
    3. when creation is not allowed and the candidate is longer than 3
       characters, case-insensitive substring match
    4. when creation is allowed, insert a new CanonicalProduct

First match wins; ties are not disambiguated. Callers depend only on the
ProductResolver interface so the strategy can be swapped.
"""
import asyncio
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

from core.logging import get_logger
from core.models import (
    CanonicalProduct,
    Condition,
    UNKNOWN_LABEL,
    create_canonical_product,
    create_condition,
)
from services.reconciler.errors import ResolutionError
from services.reconciler.store import CatalogStore

logger = get_logger("resolver")

# Substring matching only applies to candidates longer than this
SHORT_NAME_LIMIT = 3


def candidate_name(manufacturer: str, model: str) -> str:
    return f"{manufacturer or ''} {model or ''}".strip()


class ProductResolver(ABC):

    @abstractmethod
    async def resolve(self, manufacturer: str, model: str, allow_create: bool) -> Optional[CanonicalProduct]:
        """Matched or created product, or None when nothing matches."""


class CatalogProductResolver(ProductResolver):
    """
    Exact, then substring, then create, against a CatalogStore.

    Matches are cached per instance; misses are not, since another vendor
    pipeline sharing this resolver may create the product later in the run.
    Only the re-check and insert run under the lock, so concurrent pipelines
    do not insert the same product twice.
    """

    def __init__(self, catalog: CatalogStore):
        self.catalog = catalog
        self._cache: Dict[Tuple[str, bool], CanonicalProduct] = {}
        self._create_lock = asyncio.Lock()

    async def resolve(self, manufacturer: str, model: str, allow_create: bool) -> Optional[CanonicalProduct]:
        name = candidate_name(manufacturer, model)
        if not name:
            return None

        cache_key = (name.lower(), allow_create)
        if cache_key in self._cache:
            return self._cache[cache_key]

        try:
            product = await self._match(name, allow_create)
            if product is None and allow_create:
                async with self._create_lock:
                    product = await self._match(name, allow_create=True)
                    if product is None:
                        product = await self.catalog.insert_product(
                            create_canonical_product(manufacturer, model)
                        )
        except Exception as e:
            raise ResolutionError(f"Failed to resolve product '{name}': {e}") from e

        if product is None:
            logger.debug(f"No catalog match for '{name}'", extra={"candidate": name})
            return None
        self._cache[cache_key] = product
        return product

    async def _match(self, name: str, allow_create: bool) -> Optional[CanonicalProduct]:
        product = await self.catalog.find_product(name, exact=True)
        if product is None and not allow_create and len(name) > SHORT_NAME_LIMIT:
            product = await self.catalog.find_product(name, exact=False)
        return product


class ConditionResolver:
    """Find-or-create for grade labels, used by adapters without a fixed condition."""

    def __init__(self, catalog: CatalogStore):
        self.catalog = catalog
        self._cache: Dict[str, Condition] = {}
        self._create_lock = asyncio.Lock()

    async def resolve(self, label: str) -> Condition:
        label = (label or "").strip() or UNKNOWN_LABEL
        cache_key = label.lower()
        if cache_key in self._cache:
            return self._cache[cache_key]

        try:
            condition = await self.catalog.find_condition(label)
            if condition is None:
                async with self._create_lock:
                    condition = await self.catalog.find_condition(label)
                    if condition is None:
                        condition = await self.catalog.insert_condition(create_condition(label))
        except Exception as e:
            raise ResolutionError(f"Failed to resolve condition '{label}': {e}") from e

        self._cache[cache_key] = condition
        return condition
