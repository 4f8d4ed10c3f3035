"""
Read-only joins over an `EntityStore`.

Every function here is a pure function of the store's current contents: no
mutation, no exceptions for missing data. A lookup that finds nothing returns
None or an empty list, and references to ids that do not exist are treated
as unknown.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set, Tuple

from catalog_common.schema import (
    ALL_DOMAINS,
    DOMAIN_COLUMNS,
    PIPE,
    BusinessProcess,
    BusinessProcessEvaluation,
    Capability,
    Product,
    ProductEvaluation,
    Vendor,
)

from .assignments import resolve_assigned
from .store import EntityStore

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class VendorBestProduct:
    vendor_id: str
    product: Product
    capability_count: int


@dataclass(frozen=True)
class BusinessProcessDetail:
    """Everything the process detail view shows for one product."""

    product: Product
    vendor: Vendor
    business_process: BusinessProcess
    capabilities: Tuple[Capability, ...]
    evaluation: Optional[BusinessProcessEvaluation]
    related_products: Tuple[Product, ...]
    features: Tuple[str, ...]


# Lookups ------------------------------------------------------------------------


def find_business_process(store: EntityStore, process_id: Optional[str]) -> Optional[BusinessProcess]:
    return next((bp for bp in store.business_processes if bp.id == process_id), None)


def find_capability(store: EntityStore, capability_id: Optional[str]) -> Optional[Capability]:
    return next((c for c in store.capabilities if c.id == capability_id), None)


def find_vendor(store: EntityStore, vendor_id: Optional[str]) -> Optional[Vendor]:
    return next((v for v in store.vendors if v.id == vendor_id), None)


def find_product(store: EntityStore, product_id: Optional[str]) -> Optional[Product]:
    return next((p for p in store.products if p.id == product_id), None)


def find_business_process_evaluation(
    store: EntityStore, evaluation_id: Optional[str]
) -> Optional[BusinessProcessEvaluation]:
    return next((e for e in store.business_process_evaluations if e.id == evaluation_id), None)


def vendor_name(store: EntityStore, vendor_id: Optional[str]) -> str:
    vendor = find_vendor(store, vendor_id)
    return vendor.name if vendor and vendor.name else UNKNOWN


def product_features(product: Product) -> List[str]:
    return [feature.strip() for feature in product.features.split(PIPE) if feature.strip()]


# Process joins ------------------------------------------------------------------


def capabilities_for_process(store: EntityStore, process_id: str) -> List[Capability]:
    """Capabilities of a process, by display order (ties keep source order)."""

    caps = [c for c in store.capabilities if c.business_process_id == process_id]
    return sorted(caps, key=lambda c: c.order)


def _process_capability_ids(store: EntityStore, process_id: str) -> Set[str]:
    return {c.id for c in store.capabilities if c.business_process_id == process_id}


def products_for_business_process(store: EntityStore, process_id: str) -> List[Product]:
    """Products covering at least one capability of the process, in source order."""

    cap_ids = _process_capability_ids(store, process_id)
    if not cap_ids:
        return []
    return [p for p in store.products if cap_ids.intersection(p.capability_ids)]


def vendors_for_business_process(store: EntityStore, process_id: str) -> List[Vendor]:
    """Distinct vendors behind the process's products, first-seen order."""

    vendors: List[Vendor] = []
    seen: Set[str] = set()
    for product in products_for_business_process(store, process_id):
        if product.vendor_id in seen:
            continue
        seen.add(product.vendor_id)
        vendor = find_vendor(store, product.vendor_id)
        if vendor is not None:
            vendors.append(vendor)
    return vendors


def vendor_products_for_process(store: EntityStore, vendor_id: str, process_id: str) -> List[Product]:
    return [p for p in products_for_business_process(store, process_id) if p.vendor_id == vendor_id]


def best_product_per_vendor_for_process(store: EntityStore, process_id: str) -> List[VendorBestProduct]:
    """
    One representative product per vendor for a process.

    The product covering the most of the process's capabilities wins; on a tie
    the one seen first in the product collection is kept. Vendors appear in the
    order their first qualifying product appears.
    """

    cap_ids = _process_capability_ids(store, process_id)
    best: Dict[str, VendorBestProduct] = {}
    for product in products_for_business_process(store, process_id):
        count = len(cap_ids.intersection(product.capability_ids))
        current = best.get(product.vendor_id)
        if current is None or count > current.capability_count:
            best[product.vendor_id] = VendorBestProduct(product.vendor_id, product, count)
    return list(best.values())


def capabilities_for_product_in_process(
    store: EntityStore, product_id: str, process_id: str
) -> List[Capability]:
    product = find_product(store, product_id)
    if product is None:
        return []
    owned = set(product.capability_ids)
    return [c for c in store.capabilities if c.business_process_id == process_id and c.id in owned]


def capability_count_for_product_in_process(store: EntityStore, product_id: str, process_id: str) -> int:
    return len(capabilities_for_product_in_process(store, product_id, process_id))


# Evaluations --------------------------------------------------------------------
# Duplicate key pairs are possible in the source data; the first record in
# collection order is the one reported.


def business_process_evaluation(
    store: EntityStore, vendor_id: Optional[str], process_id: Optional[str]
) -> Optional[BusinessProcessEvaluation]:
    return next(
        (
            e
            for e in store.business_process_evaluations
            if e.vendor_id == vendor_id and e.business_process_id == process_id
        ),
        None,
    )


def product_evaluation(
    store: EntityStore, product_id: Optional[str], capability_id: Optional[str]
) -> Optional[ProductEvaluation]:
    return next(
        (
            e
            for e in store.product_evaluations
            if e.product_id == product_id and e.capability_id == capability_id
        ),
        None,
    )


# Domain filtering ---------------------------------------------------------------


def business_process_in_domain(process: BusinessProcess, domain: str) -> bool:
    if domain == ALL_DOMAINS:
        return True
    return process.domain == domain


def capability_in_domain(store: EntityStore, capability: Capability, domain: str) -> bool:
    """Process domain matches, or the free-text tags mention the domain (any case)."""

    if domain == ALL_DOMAINS:
        return True
    process = find_business_process(store, capability.business_process_id)
    if process is not None and process.domain == domain:
        return True
    return domain.lower() in capability.tags.lower()


def filter_business_processes_by_domain(
    processes: Iterable[BusinessProcess], domain: str
) -> List[BusinessProcess]:
    return [bp for bp in processes if business_process_in_domain(bp, domain)]


def filter_capabilities_by_domain(
    store: EntityStore, capabilities: Iterable[Capability], domain: str
) -> List[Capability]:
    return [c for c in capabilities if capability_in_domain(store, c, domain)]


def visible_capabilities(store: EntityStore) -> List[Capability]:
    return filter_capabilities_by_domain(store, store.capabilities, store.selection.active_domain)


def capability_columns(store: EntityStore) -> Dict[str, List[Capability]]:
    """
    Spread the visible capabilities over the CRM / ERP / AI grid columns.

    A capability lands in every column whose domain its process carries or
    whose lowercase name appears in its tags, so cross-domain capabilities
    show up twice. Unlike the domain filter, the tag match here is
    case-sensitive. The AI column has no content yet.
    """

    visible = visible_capabilities(store)
    columns: Dict[str, List[Capability]] = {}
    for column in DOMAIN_COLUMNS:
        if column == "AI":
            columns[column] = []
            continue
        columns[column] = [c for c in visible if _in_grid_column(store, c, column)]
    return columns


def _in_grid_column(store: EntityStore, capability: Capability, column: str) -> bool:
    process = find_business_process(store, capability.business_process_id)
    if process is not None and process.domain == column:
        return True
    return column.lower() in capability.tags


# Product catalog ----------------------------------------------------------------


def products_for_capability(
    store: EntityStore,
    capability_id: str,
    *,
    vendor_id: Optional[str] = None,
    query: str = "",
    domain: Optional[str] = None,
) -> List[Product]:
    """
    Catalog listing for one capability.

    Optional vendor filter, case-insensitive name search, and the product's
    `domains` text must mention the domain unless it is ALL. The domain
    defaults to the store's active domain.
    """

    domain = domain or store.selection.active_domain
    needle = query.strip().lower()
    matches: List[Product] = []
    for product in store.products:
        if capability_id not in product.capability_ids:
            continue
        if vendor_id and product.vendor_id != vendor_id:
            continue
        if needle and needle not in product.name.lower():
            continue
        if domain != ALL_DOMAINS and domain.upper() not in product.domains.upper():
            continue
        matches.append(product)
    return matches


def resolve_assigned_product(store: EntityStore, capability_id: str) -> Optional[Product]:
    return find_product(store, resolve_assigned(store, capability_id))


def business_process_detail(
    store: EntityStore, product_id: str, process_id: str
) -> Optional[BusinessProcessDetail]:
    product = find_product(store, product_id)
    vendor = find_vendor(store, product.vendor_id) if product else None
    process = find_business_process(store, process_id)
    if product is None or vendor is None or process is None:
        return None

    return BusinessProcessDetail(
        product=product,
        vendor=vendor,
        business_process=process,
        capabilities=tuple(capabilities_for_product_in_process(store, product_id, process_id)),
        evaluation=business_process_evaluation(store, vendor.id, process_id),
        related_products=tuple(vendor_products_for_process(store, vendor.id, process_id)),
        features=tuple(product_features(product)),
    )

