"""
Shared catalog schema and normalization helpers used by the data layer, the
CLI and the Streamlit browser.
"""

from .schema import (  # noqa: F401
    ALL_DOMAINS,
    COLLECTION_KINDS,
    DOMAIN_COLUMNS,
    DOMAINS,
    ENTITY_SCHEMAS,
    BusinessProcess,
    BusinessProcessEvaluation,
    Capability,
    EntitySchema,
    Product,
    ProductEvaluation,
    Vendor,
)

from .normalize import (  # noqa: F401
    CatalogTables,
    NormalizationReport,
    normalize_business_process_evaluations,
    normalize_business_processes,
    normalize_capabilities,
    normalize_catalog_tables,
    normalize_product_evaluations,
    normalize_products,
    normalize_records,
    normalize_vendors,
    record_to_row,
)

__all__ = [
    "ALL_DOMAINS",
    "COLLECTION_KINDS",
    "DOMAIN_COLUMNS",
    "DOMAINS",
    "ENTITY_SCHEMAS",
    "BusinessProcess",
    "BusinessProcessEvaluation",
    "Capability",
    "EntitySchema",
    "Product",
    "ProductEvaluation",
    "Vendor",
    "CatalogTables",
    "NormalizationReport",
    "normalize_business_process_evaluations",
    "normalize_business_processes",
    "normalize_capabilities",
    "normalize_catalog_tables",
    "normalize_product_evaluations",
    "normalize_products",
    "normalize_records",
    "normalize_vendors",
    "record_to_row",
]
