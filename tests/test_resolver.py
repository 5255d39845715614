#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for product and condition resolution against the catalog.
"""
import asyncio
import sys
from pathlib import Path

import pytest

# Add project root and tests dir to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))
sys.path.insert(0, str(Path(__file__).parent))

from fakes import InMemoryCatalogStore

from core.models import CanonicalProduct, Condition
from services.reconciler.errors import ResolutionError
from services.reconciler.resolver import (
    CatalogProductResolver,
    ConditionResolver,
    candidate_name,
)


def _catalog(*names):
    return InMemoryCatalogStore(products=[CanonicalProduct(name=name) for name in names])


def test_candidate_name():
    assert candidate_name("Apple", "iPhone 13") == "Apple iPhone 13"
    assert candidate_name("", "Pixel 7") == "Pixel 7"
    assert candidate_name("  ", "") == ""


@pytest.mark.asyncio
async def test_exact_match_is_case_insensitive():
    catalog = _catalog("Apple iPhone 13", "Apple iPhone 13 Pro")
    resolver = CatalogProductResolver(catalog)

    product = await resolver.resolve("apple", "IPHONE 13", allow_create=False)

    assert product is not None
    assert product.name == "Apple iPhone 13"


@pytest.mark.asyncio
async def test_substring_match_when_creation_disallowed():
    catalog = _catalog("Samsung Galaxy S21 Ultra 5G")
    resolver = CatalogProductResolver(catalog)

    product = await resolver.resolve("Samsung", "Galaxy S21", allow_create=False)

    assert product is not None
    assert product.name == "Samsung Galaxy S21 Ultra 5G"
    assert catalog.lookups == [("Samsung Galaxy S21", True), ("Samsung Galaxy S21", False)]


@pytest.mark.asyncio
async def test_short_candidate_skips_substring_match():
    catalog = _catalog("Nokia X10")
    resolver = CatalogProductResolver(catalog)

    assert await resolver.resolve("", "X10", allow_create=False) is None
    assert catalog.lookups == [("X10", True)]


@pytest.mark.asyncio
async def test_no_match_without_creation_returns_none():
    catalog = _catalog("Apple iPhone 13")
    resolver = CatalogProductResolver(catalog)

    assert await resolver.resolve("Acme", "X1", allow_create=False) is None
    assert len(catalog.products) == 1


@pytest.mark.asyncio
async def test_create_when_allowed():
    """A new product takes its category from the manufacturer."""
    catalog = _catalog("Samsung Galaxy S21 Ultra 5G")
    resolver = CatalogProductResolver(catalog)

    product = await resolver.resolve("Samsung", "Galaxy S21", allow_create=True)

    # Substring matching does not apply when creation is allowed
    assert product.name == "Samsung Galaxy S21"
    assert product.manufacturer == "Samsung"
    assert product.model == "Galaxy S21"
    assert product.category == "Samsung"
    assert product.images_by_color == []
    assert len(catalog.products) == 2


@pytest.mark.asyncio
async def test_results_are_cached():
    catalog = _catalog()
    resolver = CatalogProductResolver(catalog)

    first = await resolver.resolve("Acme", "X1", allow_create=True)
    second = await resolver.resolve("ACME", "x1", allow_create=True)

    assert first is second
    assert len(catalog.products) == 1
    # Exact lookup, then the re-check under the lock; the second call is cached
    assert catalog.lookups == [("Acme X1", True), ("Acme X1", True)]


@pytest.mark.asyncio
async def test_misses_are_not_cached():
    """A product created by another vendor later in the run is found."""
    catalog = _catalog()
    restricted = CatalogProductResolver(catalog)
    creating = CatalogProductResolver(catalog)

    assert await restricted.resolve("Acme", "X1", allow_create=False) is None

    created = await creating.resolve("Acme", "X1", allow_create=True)
    found = await restricted.resolve("Acme", "X1", allow_create=False)

    assert found is not None
    assert found.id == created.id


@pytest.mark.asyncio
async def test_existing_product_resolves_without_create_lock():
    catalog = _catalog("Acme X1")
    resolver = CatalogProductResolver(catalog)

    async with resolver._create_lock:
        product = await asyncio.wait_for(resolver.resolve("Acme", "X1", allow_create=True), timeout=1)

    assert product.name == "Acme X1"


@pytest.mark.asyncio
async def test_empty_candidate_is_not_resolved():
    catalog = _catalog("Anything")
    resolver = CatalogProductResolver(catalog)

    assert await resolver.resolve("", "", allow_create=True) is None
    assert catalog.lookups == []
    assert len(catalog.products) == 1


@pytest.mark.asyncio
async def test_catalog_failure_raises_resolution_error():
    catalog = _catalog()
    catalog.fail_on.add("acme x1")
    resolver = CatalogProductResolver(catalog)

    with pytest.raises(ResolutionError):
        await resolver.resolve("Acme", "X1", allow_create=False)


@pytest.mark.asyncio
async def test_condition_find_or_create():
    existing = Condition(name="Grade A")
    catalog = InMemoryCatalogStore(conditions=[existing])
    resolver = ConditionResolver(catalog)

    assert (await resolver.resolve("grade a")).id == existing.id

    created = await resolver.resolve("B")
    assert created.name == "B"
    assert len(catalog.conditions) == 2

    again = await resolver.resolve("B")
    assert again.id == created.id
    assert len(catalog.conditions) == 2


@pytest.mark.asyncio
async def test_existing_condition_resolves_without_create_lock():
    """Lookups of known conditions do not wait on another pipeline's insert."""
    existing = Condition(name="Grade A")
    catalog = InMemoryCatalogStore(conditions=[existing])
    resolver = ConditionResolver(catalog)

    async with resolver._create_lock:
        condition = await asyncio.wait_for(resolver.resolve("Grade A"), timeout=1)

    assert condition.id == existing.id


@pytest.mark.asyncio
async def test_concurrent_condition_creation_inserts_once():
    catalog = InMemoryCatalogStore()
    resolver = ConditionResolver(catalog)

    first, second = await asyncio.gather(resolver.resolve("B"), resolver.resolve("B"))

    assert first.id == second.id
    assert len(catalog.conditions) == 1


@pytest.mark.asyncio
async def test_blank_condition_resolves_to_unknown():
    catalog = InMemoryCatalogStore()
    resolver = ConditionResolver(catalog)

    condition = await resolver.resolve("  ")

    assert condition.name == "Unknown"
