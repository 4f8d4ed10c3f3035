from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence, Tuple

import polars as pl

from .schema import (
    COLLECTION_KINDS,
    ENTITY_SCHEMAS,
    BusinessProcess,
    BusinessProcessEvaluation,
    Capability,
    EntitySchema,
    Product,
    ProductEvaluation,
    Vendor,
    schema_for_record,
)

Row = Mapping[str, Any]

# Leading integer, mirroring the permissive parse used by the editors that
# produce these files ("12 weeks" -> 12, "3.7" -> 3).
_LEADING_INT = r"^\s*([+-]?\d+)"


def _raw_column(rows: Sequence[Row], raw_name: str) -> pl.Series:
    """Collect one raw column as strings; absent and None cells become null."""

    values: List[str | None] = []
    for row in rows:
        value = row.get(raw_name)
        values.append(None if value is None else str(value))
    return pl.Series(raw_name, values, dtype=pl.Utf8)


def _raw_frame(rows: Sequence[Row], schema: EntitySchema) -> pl.DataFrame:
    return pl.DataFrame([_raw_column(rows, raw).alias(canon) for canon, raw in schema.columns.items()])


def _text_expr(name: str, default: Any) -> pl.Expr:
    trimmed = pl.col(name).str.strip_chars().fill_null("")
    if default:
        return pl.when(trimmed == "").then(pl.lit(default)).otherwise(trimmed).alias(name)
    return trimmed.alias(name)


def _int_expr(name: str) -> pl.Expr:
    return (
        pl.col(name)
        .str.extract(_LEADING_INT, 1)
        .cast(pl.Int64, strict=False)
        .fill_null(0)
        .alias(name)
    )


def _list_expr(name: str, delimiter: str) -> pl.Expr:
    """Split-trim-filter-empty; null or blank cells become an empty list."""

    return (
        pl.col(name)
        .fill_null("")
        .str.split(delimiter)
        .list.eval(pl.element().str.strip_chars().filter(pl.element().str.strip_chars() != ""))
        .alias(name)
    )


def normalization_exprs(schema: EntitySchema) -> List[pl.Expr]:
    """Polars expressions that turn a raw frame into typed columns."""

    defaults = schema.defaults()
    exprs: List[pl.Expr] = [pl.col(schema.id_field).str.strip_chars().alias(schema.id_field)]
    for name in schema.columns:
        if name == schema.id_field:
            continue
        delimiter = schema.delimiter(name)
        if delimiter:
            exprs.append(_list_expr(name, delimiter))
        elif name in schema.int_fields:
            exprs.append(_int_expr(name))
        else:
            exprs.append(_text_expr(name, defaults.get(name, "")))
    return exprs


def normalize_frame(rows: Sequence[Row], schema: EntitySchema) -> pl.DataFrame:
    """
    Normalize raw rows into a typed Polars frame for one collection.

    Rows whose trimmed identifier is empty or absent are dropped; surviving
    rows keep their input order.
    """

    df = _raw_frame(rows, schema).with_columns(normalization_exprs(schema))
    return df.filter(pl.col(schema.id_field).is_not_null() & (pl.col(schema.id_field) != ""))


def _to_record(row: Mapping[str, Any], schema: EntitySchema) -> Any:
    values = {name: tuple(value) if isinstance(value, list) else value for name, value in row.items()}
    return schema.record_type(**values)


def normalize_records(rows: Iterable[Row], kind: str) -> List[Any]:
    """Normalize raw field maps for ``kind`` into typed records."""

    schema = ENTITY_SCHEMAS[kind]
    df = normalize_frame(list(rows), schema)
    return [_to_record(row, schema) for row in df.iter_rows(named=True)]


def normalize_business_processes(rows: Iterable[Row]) -> List[BusinessProcess]:
    return normalize_records(rows, "business_processes")


def normalize_capabilities(rows: Iterable[Row]) -> List[Capability]:
    return normalize_records(rows, "capabilities")


def normalize_vendors(rows: Iterable[Row]) -> List[Vendor]:
    return normalize_records(rows, "vendors")


def normalize_products(rows: Iterable[Row]) -> List[Product]:
    return normalize_records(rows, "products")


def normalize_product_evaluations(rows: Iterable[Row]) -> List[ProductEvaluation]:
    return normalize_records(rows, "product_evaluations")


def normalize_business_process_evaluations(rows: Iterable[Row]) -> List[BusinessProcessEvaluation]:
    return normalize_records(rows, "business_process_evaluations")


def record_to_row(record: Any) -> Dict[str, str]:
    """
    Serialize a typed record back to its raw-row shape.

    List fields are joined with their delimiter so the row normalizes back to
    an equal record.
    """

    schema = schema_for_record(record)
    row: Dict[str, str] = {}
    for canon, raw in schema.columns.items():
        value = getattr(record, canon)
        delimiter = schema.delimiter(canon)
        if delimiter:
            row[raw] = delimiter.join(value)
        else:
            row[raw] = str(value)
    return row


@dataclass(frozen=True)
class CatalogTables:
    """The six normalized collections, in source order."""

    business_processes: Tuple[BusinessProcess, ...] = ()
    capabilities: Tuple[Capability, ...] = ()
    vendors: Tuple[Vendor, ...] = ()
    products: Tuple[Product, ...] = ()
    product_evaluations: Tuple[ProductEvaluation, ...] = ()
    business_process_evaluations: Tuple[BusinessProcessEvaluation, ...] = ()

    def get(self, kind: str) -> Tuple[Any, ...]:
        return getattr(self, kind)

    def counts(self) -> Dict[str, int]:
        return {kind: len(self.get(kind)) for kind in COLLECTION_KINDS}


@dataclass
class NormalizationReport:
    raw_row_counts: Dict[str, int] = field(default_factory=dict)
    kept_row_counts: Dict[str, int] = field(default_factory=dict)

    def dropped(self, kind: str) -> int:
        return self.raw_row_counts.get(kind, 0) - self.kept_row_counts.get(kind, 0)


def normalize_catalog_tables(
    row_sets: Mapping[str, Sequence[Row]],
    *,
    log: Callable[[str], None] | None = None,
) -> Tuple[Dict[str, Tuple[Any, ...]], NormalizationReport]:
    """
    Normalize any subset of the six raw row sets.

    Returns (records_by_kind, report). Unknown kinds raise KeyError; that is a
    caller bug, not a data problem.
    """

    records: Dict[str, Tuple[Any, ...]] = {}
    report = NormalizationReport()
    for kind, rows in row_sets.items():
        normalized = normalize_records(rows, kind)
        records[kind] = tuple(normalized)
        report.raw_row_counts[kind] = len(rows)
        report.kept_row_counts[kind] = len(normalized)
        if log and report.dropped(kind):
            log(f"Dropped {report.dropped(kind)} {kind} rows without an id")
    return records, report
