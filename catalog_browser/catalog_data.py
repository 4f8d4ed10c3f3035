"""
Data loading and source merging for the capability catalog.

Each of the six collections is resolved from exactly one source, in strict
precedence:

1. a user overlay saved in the key-value store under the collection's kind,
2. CSV exports read from the data directory (only when external loading is
   requested),
3. the built-in bootstrap data set.

External retrievals run together and are only applied once every one of them
has settled. Any failure among them sends every collection that would have
come from the CSV exports back to bootstrap; the merge itself never raises
for data problems.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import polars as pl
import yaml

from catalog_common.normalize import CatalogTables, normalize_catalog_tables, normalize_records, record_to_row
from catalog_common.schema import COLLECTION_KINDS, ENTITY_SCHEMAS

from .config import DEFAULT_BOOTSTRAP_PATH, Settings
from .storage import JsonFileKeyValueStore, KeyValueStore
from .store import EntityStore
from .assignments import AssignmentOverlay

LOGGER = logging.getLogger(__name__)

SOURCE_OVERLAY = "overlay"
SOURCE_EXTERNAL = "external"
SOURCE_BOOTSTRAP = "bootstrap"

Row = Mapping[str, Any]
# Returns the raw rows for one collection kind, or None when that source has
# nothing for it. Raising means the retrieval failed.
RowFetcher = Callable[[str], Optional[Sequence[Row]]]


@dataclass
class MergeReport:
    sources: Dict[str, str] = field(default_factory=dict)
    counts: Dict[str, int] = field(default_factory=dict)
    external_requested: bool = False
    external_error: Optional[str] = None

    def summary(self) -> str:
        parts = [f"{kind}={self.counts.get(kind, 0)} ({self.sources.get(kind, '?')})" for kind in COLLECTION_KINDS]
        return ", ".join(parts)


def load_csv_rows(path: Path | str) -> List[Dict[str, Any]]:
    """Read a CSV export into raw row dicts; every column stays a string."""

    df = pl.read_csv(Path(path), infer_schema=False)
    return df.to_dicts()


def csv_row_fetcher(data_dir: Path | str) -> RowFetcher:
    """Fetcher that reads each collection from its CSV file under ``data_dir``."""

    base = Path(data_dir)

    def fetch(kind: str) -> List[Dict[str, Any]]:
        path = base / ENTITY_SCHEMAS[kind].source_file
        LOGGER.info("Loading %s", path)
        rows = load_csv_rows(path)
        LOGGER.info("Loaded %s: %d rows", path, len(rows))
        return rows

    return fetch


def load_bootstrap_rows(path: Path | str | None = None) -> Dict[str, List[Dict[str, Any]]]:
    """Load the raw bootstrap rows, keyed by collection kind."""

    path = Path(path) if path is not None else DEFAULT_BOOTSTRAP_PATH
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Bootstrap data in {path} must be a mapping keyed by collection.")
    return {kind: list(data.get(kind) or []) for kind in COLLECTION_KINDS}


def bootstrap_tables(path: Path | str | None = None) -> CatalogTables:
    """Normalized built-in data set."""

    records, _ = normalize_catalog_tables(load_bootstrap_rows(path))
    return CatalogTables(**records)


def save_collection_overlay(storage: KeyValueStore, kind: str, records: Sequence[Any]) -> None:
    """Persist edited records for one collection; the next merge picks them up."""

    if kind not in ENTITY_SCHEMAS:
        raise KeyError(f"Unknown collection kind: {kind}")
    storage.set(kind, [record_to_row(record) for record in records])


def clear_collection_overlay(storage: KeyValueStore, kind: str) -> None:
    storage.delete(kind)


def _overlay_records(storage: KeyValueStore, kind: str) -> Optional[tuple]:
    """Saved overlay for ``kind``, or None when absent or malformed."""

    payload = storage.get(kind)
    if payload is None:
        return None
    if not isinstance(payload, list) or not all(isinstance(row, dict) for row in payload):
        LOGGER.warning("Ignoring malformed %s overlay in storage", kind)
        return None
    records = tuple(normalize_records(payload, kind))
    if not records:
        LOGGER.warning("Ignoring %s overlay with no usable rows", kind)
        return None
    return records


async def fetch_external_rows(
    kinds: Sequence[str], fetch_rows: RowFetcher
) -> Dict[str, Optional[Sequence[Row]]]:
    """
    Run the retrievals for ``kinds`` together and wait for all of them.

    Raises the first failure only after every retrieval has settled.
    """

    tasks = [asyncio.to_thread(fetch_rows, kind) for kind in kinds]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    fetched: Dict[str, Optional[Sequence[Row]]] = {}
    first_error: Optional[BaseException] = None
    for kind, result in zip(kinds, results):
        if isinstance(result, BaseException):
            LOGGER.error("Failed to load %s: %s", kind, result)
            first_error = first_error or result
            continue
        fetched[kind] = result
    if first_error is not None:
        raise first_error
    return fetched


async def _external_records(
    kinds: Sequence[str], fetch_rows: RowFetcher
) -> Dict[str, tuple]:
    fetched = await fetch_external_rows(kinds, fetch_rows)
    present = {kind: rows for kind, rows in fetched.items() if rows is not None}
    records, _ = normalize_catalog_tables(present, log=LOGGER.debug)
    return {kind: recs for kind, recs in records.items() if recs}


async def merge_sources(
    store: EntityStore,
    storage: KeyValueStore,
    *,
    use_external: bool = False,
    fetch_rows: Optional[RowFetcher] = None,
    bootstrap: Optional[CatalogTables] = None,
) -> MergeReport:
    """
    Resolve all six collections and populate ``store``.

    The assignment overlay is reloaded from storage first. ``fetch_rows`` is
    only consulted when ``use_external`` is true.
    """

    report = MergeReport(external_requested=use_external)
    store.assignments.load()
    bootstrap = bootstrap if bootstrap is not None else bootstrap_tables()

    resolved: Dict[str, tuple] = {}
    for kind in COLLECTION_KINDS:
        overlay = _overlay_records(storage, kind)
        if overlay is not None:
            resolved[kind] = overlay
            report.sources[kind] = SOURCE_OVERLAY

    pending = [kind for kind in COLLECTION_KINDS if kind not in resolved]
    if use_external and pending:
        if fetch_rows is None:
            LOGGER.warning("External loading requested without a row fetcher; using bootstrap data")
        else:
            try:
                external = await _external_records(pending, fetch_rows)
            except Exception as exc:
                LOGGER.warning("External load failed, using bootstrap data: %s", exc)
                report.external_error = str(exc)
            else:
                for kind, records in external.items():
                    resolved[kind] = records
                    report.sources[kind] = SOURCE_EXTERNAL

    for kind in COLLECTION_KINDS:
        if kind not in resolved:
            resolved[kind] = tuple(bootstrap.get(kind))
            report.sources[kind] = SOURCE_BOOTSTRAP

    store.replace_collections(CatalogTables(**resolved))
    report.counts = store.counts()
    LOGGER.info("Catalog loaded: %s", report.summary())
    return report


def load_catalog(
    settings: Settings,
    *,
    storage: Optional[KeyValueStore] = None,
    store: Optional[EntityStore] = None,
    fetch_rows: Optional[RowFetcher] = None,
) -> tuple[EntityStore, MergeReport]:
    """
    Synchronous entry point: build (or refresh) a store from ``settings``.

    Callers that already own a store pass it in to reload it in place; its
    selection state is kept.
    """

    if storage is None:
        storage = store.assignments.storage if store is not None else JsonFileKeyValueStore(settings.storage_path)
    if store is None:
        store = EntityStore(AssignmentOverlay(storage))
    if fetch_rows is None and settings.use_external:
        fetch_rows = csv_row_fetcher(settings.data_dir)

    report = asyncio.run(
        merge_sources(
            store,
            storage,
            use_external=settings.use_external,
            fetch_rows=fetch_rows,
            bootstrap=bootstrap_tables(settings.bootstrap_path),
        )
    )
    return store, report
