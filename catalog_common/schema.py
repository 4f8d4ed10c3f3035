from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Sequence, Tuple, Type


ALL_DOMAINS = "ALL"
DOMAINS: Tuple[str, ...] = (ALL_DOMAINS, "CRM", "ERP", "AI")
# Capability grid columns, in display order.
DOMAIN_COLUMNS: Tuple[str, ...] = ("CRM", "ERP", "AI")

COMMA = ","
PIPE = "|"


@dataclass(frozen=True)
class BusinessProcess:
    id: str
    name: str = ""
    description: str = ""
    order: int = 0
    domain: str = ""


@dataclass(frozen=True)
class Capability:
    id: str
    name: str = ""
    business_process_id: str = ""
    description: str = ""
    value_proposition: str = ""
    process_types: str = ""
    color: str = "blue"
    order: int = 0
    tags: str = ""


@dataclass(frozen=True)
class Vendor:
    id: str
    name: str = ""
    brand_color: str = "#000000"
    market_position: str = ""
    best_for: str = ""
    website: str = ""
    target_company_size: str = ""
    overall_strengths: str = ""
    overall_weaknesses: str = ""
    domains: str = ""


@dataclass(frozen=True)
class Product:
    id: str
    name: str = ""
    vendor_id: str = ""
    description: str = ""
    product_type: str = "module"
    capability_ids: Tuple[str, ...] = ()
    features: str = ""
    pricing_tier: str = ""
    market_position: str = ""
    performance_metrics: str = ""
    deployment_models: str = ""
    integrations: str = ""
    domains: str = ""


@dataclass(frozen=True)
class ProductEvaluation:
    id: str
    product_id: str = ""
    capability_id: str = ""
    good_for: Tuple[str, ...] = ()
    not_ideal_for: Tuple[str, ...] = ()
    best_use_cases: Tuple[str, ...] = ()
    special_features: Tuple[str, ...] = ()
    competitive_advantages: Tuple[str, ...] = ()
    competitive_disadvantages: Tuple[str, ...] = ()
    implementation_complexity: str = ""
    typical_implementation_time: str = ""
    confidence: str = ""


@dataclass(frozen=True)
class BusinessProcessEvaluation:
    id: str
    vendor_id: str = ""
    business_process_id: str = ""
    overall_fit: str = ""
    key_products: Tuple[str, ...] = ()
    good_for: Tuple[str, ...] = ()
    not_ideal_for: Tuple[str, ...] = ()
    best_use_cases: Tuple[str, ...] = ()
    strengths: Tuple[str, ...] = ()
    weaknesses: Tuple[str, ...] = ()
    implementation_complexity: str = ""
    typical_implementation_time: str = ""
    total_cost_of_ownership: str = ""
    confidence: str = ""


@dataclass(frozen=True)
class EntitySchema:
    """Canonical schema definition for one catalog collection."""

    kind: str
    record_type: Type
    source_file: str
    columns: Mapping[str, str]  # canonical -> raw column name
    id_field: str = "id"
    int_fields: Sequence[str] = ()
    list_fields: Mapping[str, str] = field(default_factory=dict)  # canonical -> delimiter

    def defaults(self) -> Dict[str, object]:
        """Field defaults taken from the record type."""

        record_fields = self.record_type.__dataclass_fields__
        return {name: record_fields[name].default for name in self.columns if name != self.id_field}

    def delimiter(self, field_name: str) -> Optional[str]:
        return self.list_fields.get(field_name)


BUSINESS_PROCESS_COLS: Mapping[str, str] = {
    "id": "id",
    "name": "name",
    "description": "description",
    "order": "order",
    "domain": "domain",
}

CAPABILITY_COLS: Mapping[str, str] = {
    "id": "id",
    "name": "name",
    "business_process_id": "businessProcessId",
    "description": "description",
    "value_proposition": "valueProposition",
    "process_types": "processTypes",
    "color": "color",
    "order": "order",
    "tags": "tags",
}

VENDOR_COLS: Mapping[str, str] = {
    "id": "id",
    "name": "name",
    "brand_color": "brandColor",
    "market_position": "marketPosition",
    "best_for": "bestFor",
    "website": "website",
    "target_company_size": "targetCompanySize",
    "overall_strengths": "overallStrengths",
    "overall_weaknesses": "overallWeaknesses",
    "domains": "domains",
}

PRODUCT_COLS: Mapping[str, str] = {
    "id": "id",
    "name": "name",
    "vendor_id": "vendorId",
    "description": "description",
    "product_type": "productType",
    "capability_ids": "capabilityIds",
    "features": "features",
    "pricing_tier": "pricingTier",
    "market_position": "marketPosition",
    "performance_metrics": "performanceMetrics",
    "deployment_models": "deploymentModels",
    "integrations": "integrations",
    "domains": "domains",
}

PRODUCT_EVALUATION_COLS: Mapping[str, str] = {
    "id": "id",
    "product_id": "productId",
    "capability_id": "capabilityId",
    "good_for": "goodFor",
    "not_ideal_for": "notIdealFor",
    "best_use_cases": "bestUseCases",
    "special_features": "specialFeatures",
    "competitive_advantages": "competitiveAdvantages",
    "competitive_disadvantages": "competitiveDisadvantages",
    "implementation_complexity": "implementationComplexity",
    "typical_implementation_time": "typicalImplementationTime",
    "confidence": "confidence",
}

BUSINESS_PROCESS_EVALUATION_COLS: Mapping[str, str] = {
    "id": "id",
    "vendor_id": "vendorId",
    "business_process_id": "businessProcessId",
    "overall_fit": "overallFit",
    "key_products": "keyProducts",
    "good_for": "goodFor",
    "not_ideal_for": "notIdealFor",
    "best_use_cases": "bestUseCases",
    "strengths": "strengths",
    "weaknesses": "weaknesses",
    "implementation_complexity": "implementationComplexity",
    "typical_implementation_time": "typicalImplementationTime",
    "total_cost_of_ownership": "totalCostOfOwnership",
    "confidence": "confidence",
}


def _pipe_lists(*names: str) -> Dict[str, str]:
    return {name: PIPE for name in names}


def _entity_schemas() -> Dict[str, EntitySchema]:
    """Build immutable schema map, in load order."""

    return {
        "business_processes": EntitySchema(
            "business_processes",
            BusinessProcess,
            "business_processes.csv",
            BUSINESS_PROCESS_COLS,
            int_fields=("order",),
        ),
        "capabilities": EntitySchema(
            "capabilities",
            Capability,
            "capabilities.csv",
            CAPABILITY_COLS,
            int_fields=("order",),
        ),
        "vendors": EntitySchema(
            "vendors",
            Vendor,
            "vendors.csv",
            VENDOR_COLS,
        ),
        "products": EntitySchema(
            "products",
            Product,
            "platform_products.csv",
            PRODUCT_COLS,
            list_fields={"capability_ids": COMMA},
        ),
        "product_evaluations": EntitySchema(
            "product_evaluations",
            ProductEvaluation,
            "product_evaluations.csv",
            PRODUCT_EVALUATION_COLS,
            list_fields=_pipe_lists(
                "good_for",
                "not_ideal_for",
                "best_use_cases",
                "special_features",
                "competitive_advantages",
                "competitive_disadvantages",
            ),
        ),
        "business_process_evaluations": EntitySchema(
            "business_process_evaluations",
            BusinessProcessEvaluation,
            "business_process_evaluations.csv",
            BUSINESS_PROCESS_EVALUATION_COLS,
            list_fields=_pipe_lists(
                "key_products",
                "good_for",
                "not_ideal_for",
                "best_use_cases",
                "strengths",
                "weaknesses",
            ),
        ),
    }


ENTITY_SCHEMAS: Dict[str, EntitySchema] = _entity_schemas()
COLLECTION_KINDS: Tuple[str, ...] = tuple(ENTITY_SCHEMAS)


def schema_for_record(record: object) -> EntitySchema:
    """Return the schema whose record type matches ``record``."""

    for schema in ENTITY_SCHEMAS.values():
        if isinstance(record, schema.record_type):
            return schema
    raise TypeError(f"Not a catalog record: {type(record).__name__}")
