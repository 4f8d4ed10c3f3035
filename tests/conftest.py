"""Shared fixtures: a small raw catalog and a store built from it."""

from typing import Dict, List

import pytest

from catalog_browser.assignments import AssignmentOverlay
from catalog_browser.storage import InMemoryKeyValueStore
from catalog_browser.store import EntityStore
from catalog_common.normalize import CatalogTables, normalize_catalog_tables


@pytest.fixture
def raw_rows() -> Dict[str, List[dict]]:
    return {
        "business_processes": [
            {"id": "bp-1", "name": "Lead to Cash", "order": "2", "domain": "CRM"},
            {"id": "bp-2", "name": "Procure to Pay", "order": "1", "domain": "ERP"},
            {"id": "bp-9", "name": "Empty Process", "order": "3", "domain": "ERP"},
        ],
        "capabilities": [
            {"id": "cap-1", "name": "Lead Capture", "businessProcessId": "bp-1", "order": "1", "tags": "crm"},
            {"id": "cap-2", "name": "Scoring", "businessProcessId": "bp-1", "order": "2", "tags": ""},
            {"id": "cap-3", "name": "Purchase Orders", "businessProcessId": "bp-2", "order": "1", "tags": "erp, CRM"},
            {"id": "cap-4", "name": "Payments", "businessProcessId": "bp-2", "order": "2", "tags": "finance"},
        ],
        "vendors": [
            {"id": "v1", "name": "Vendor One"},
            {"id": "v2", "name": "Vendor Two"},
        ],
        "products": [
            {"id": "p1", "name": "Suite", "vendorId": "v1", "capabilityIds": "cap-1, cap-2", "domains": "CRM"},
            {"id": "p2", "name": "Lite", "vendorId": "v1", "capabilityIds": "cap-1", "domains": "CRM"},
            {"id": "p3", "name": "Buyer", "vendorId": "v2", "capabilityIds": "cap-3,cap-4,cap-1", "domains": "ERP, CRM"},
            {"id": "p4", "name": "Orphan", "vendorId": "v-missing", "capabilityIds": "cap-2", "domains": "CRM"},
        ],
        "product_evaluations": [
            {"id": "pe-1", "productId": "p1", "capabilityId": "cap-1", "goodFor": "Big teams | Fast ramp", "confidence": "high"},
            {"id": "pe-2", "productId": "p1", "capabilityId": "cap-1", "goodFor": "Duplicate", "confidence": "low"},
        ],
        "business_process_evaluations": [
            {"id": "bpe-1", "vendorId": "v1", "businessProcessId": "bp-1", "overallFit": "excellent", "strengths": "A|B"},
            {"id": "bpe-2", "vendorId": "v1", "businessProcessId": "bp-1", "overallFit": "poor"},
        ],
    }


@pytest.fixture
def tables(raw_rows) -> CatalogTables:
    records, _ = normalize_catalog_tables(raw_rows)
    return CatalogTables(**records)


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def store(tables, kv_store) -> EntityStore:
    store = EntityStore(AssignmentOverlay(kv_store))
    store.replace_collections(tables)
    return store
