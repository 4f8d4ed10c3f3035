"""
Session-scoped holder of the catalog collections, the assignment overlay and
the UI selection scalars.

The composition root (CLI `main`, the Streamlit session) builds one
`EntityStore` and passes it to everything else; there is no module-level
instance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from catalog_common.normalize import CatalogTables
from catalog_common.schema import (
    ALL_DOMAINS,
    COLLECTION_KINDS,
    DOMAINS,
    BusinessProcess,
    BusinessProcessEvaluation,
    Capability,
    Product,
    ProductEvaluation,
    Vendor,
)

from .assignments import AssignmentOverlay

LOGGER = logging.getLogger(__name__)


@dataclass
class SelectionState:
    """Current UI selections."""

    active_domain: str = ALL_DOMAINS
    selected_vendor_id: Optional[str] = None
    active_capability_id: Optional[str] = None
    active_product_id: Optional[str] = None


class EntityStore:
    def __init__(self, assignments: Optional[AssignmentOverlay] = None) -> None:
        self.assignments = assignments if assignments is not None else AssignmentOverlay()
        self.selection = SelectionState()
        self._tables = CatalogTables()

    # Collections -----------------------------------------------------------------

    @property
    def business_processes(self) -> Tuple[BusinessProcess, ...]:
        return self._tables.business_processes

    @property
    def capabilities(self) -> Tuple[Capability, ...]:
        return self._tables.capabilities

    @property
    def vendors(self) -> Tuple[Vendor, ...]:
        return self._tables.vendors

    @property
    def products(self) -> Tuple[Product, ...]:
        return self._tables.products

    @property
    def product_evaluations(self) -> Tuple[ProductEvaluation, ...]:
        return self._tables.product_evaluations

    @property
    def business_process_evaluations(self) -> Tuple[BusinessProcessEvaluation, ...]:
        return self._tables.business_process_evaluations

    @property
    def tables(self) -> CatalogTables:
        return self._tables

    def collection(self, kind: str) -> Tuple[Any, ...]:
        return self._tables.get(kind)

    def counts(self) -> Dict[str, int]:
        return self._tables.counts()

    def is_populated(self) -> bool:
        return all(self._tables.get(kind) for kind in COLLECTION_KINDS)

    def replace_collections(self, tables: CatalogTables) -> None:
        """Swap in a whole new set of collections. Reserved for the source merger."""

        self._tables = tables

    # Selection -------------------------------------------------------------------

    def set_active_domain(self, domain: str) -> None:
        if domain not in DOMAINS:
            LOGGER.warning("Ignoring unknown domain %r; expected one of %s", domain, ", ".join(DOMAINS))
            return
        self.selection.active_domain = domain

    def select_vendor(self, vendor_id: Optional[str]) -> None:
        self.selection.selected_vendor_id = vendor_id or None

    def open_capability(self, capability_id: Optional[str]) -> None:
        self.selection.active_capability_id = capability_id or None

    def open_product(self, product_id: Optional[str], capability_id: Optional[str] = None) -> None:
        self.selection.active_product_id = product_id or None
        if capability_id:
            self.selection.active_capability_id = capability_id

    def close_product(self) -> None:
        self.selection.active_product_id = None

    # Assignments -----------------------------------------------------------------

    def assign(self, capability_id: str, product_id: str) -> None:
        self.assignments.assign(capability_id, product_id)

    def clear_assignment(self, capability_id: str) -> None:
        self.assignments.clear(capability_id)

    def assign_active_product(self) -> bool:
        """Assign the open product to the open capability; False when either is unset."""

        product_id = self.selection.active_product_id
        capability_id = self.selection.active_capability_id
        if not (product_id and capability_id):
            return False
        self.assignments.assign(capability_id, product_id)
        return True

    def clear_active_assignment(self) -> bool:
        capability_id = self.selection.active_capability_id
        if not capability_id or capability_id not in self.assignments:
            return False
        self.assignments.clear(capability_id)
        return True
