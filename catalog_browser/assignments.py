from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from .storage import InMemoryKeyValueStore, KeyValueStore

if TYPE_CHECKING:  # pragma: no cover
    from .store import EntityStore

LOGGER = logging.getLogger(__name__)

ASSIGNMENTS_KEY = "assignments"


def _is_flat_mapping(payload: Any) -> bool:
    return isinstance(payload, dict) and all(
        isinstance(k, str) and isinstance(v, str) for k, v in payload.items()
    )


class AssignmentOverlay:
    """
    Sparse capability id -> product id map chosen by the user.

    The saved mapping is read from storage on construction.

    Each mutation writes the full mapping to storage before returning.
    """

    def __init__(self, storage: Optional[KeyValueStore] = None) -> None:
        self.storage: KeyValueStore = storage if storage is not None else InMemoryKeyValueStore()
        self._mapping: Dict[str, str] = {}
        self.load()

    def load(self) -> Dict[str, str]:
        """Rebuild the mapping from storage; malformed payloads count as empty."""

        payload = self.storage.get(ASSIGNMENTS_KEY)
        if payload is None:
            self._mapping = {}
        elif _is_flat_mapping(payload):
            self._mapping = dict(payload)
        else:
            LOGGER.warning("Ignoring malformed %r payload in storage", ASSIGNMENTS_KEY)
            self._mapping = {}
        return self.as_dict()

    def _persist(self) -> None:
        self.storage.set(ASSIGNMENTS_KEY, dict(self._mapping))

    def assign(self, capability_id: str, product_id: str) -> None:
        self._mapping[capability_id] = product_id
        self._persist()
        LOGGER.info("Assigned %s -> %s", capability_id, product_id)

    def clear(self, capability_id: str) -> None:
        if self._mapping.pop(capability_id, None) is None:
            return
        self._persist()
        LOGGER.info("Cleared assignment for %s", capability_id)

    def get(self, capability_id: str) -> Optional[str]:
        return self._mapping.get(capability_id)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._mapping)

    def __contains__(self, capability_id: object) -> bool:
        return capability_id in self._mapping

    def __len__(self) -> int:
        return len(self._mapping)


def resolve_assigned(store: "EntityStore", capability_id: str) -> Optional[str]:
    """
    Product id shown for a capability.

    Order: explicit assignment; else the first product of the selected vendor
    that lists the capability; else None.
    """

    explicit = store.assignments.get(capability_id)
    if explicit is not None:
        return explicit

    vendor_id = store.selection.selected_vendor_id
    if not vendor_id:
        return None

    for product in store.products:
        if product.vendor_id == vendor_id and capability_id in product.capability_ids:
            return product.id
    return None
