from dataclasses import replace

import pytest

from catalog_browser.queries import (
    UNKNOWN,
    best_product_per_vendor_for_process,
    business_process_detail,
    business_process_evaluation,
    capabilities_for_process,
    capabilities_for_product_in_process,
    capability_columns,
    capability_count_for_product_in_process,
    filter_business_processes_by_domain,
    filter_capabilities_by_domain,
    find_business_process_evaluation,
    product_evaluation,
    product_features,
    products_for_business_process,
    products_for_capability,
    resolve_assigned_product,
    vendor_name,
    vendor_products_for_process,
    vendors_for_business_process,
    visible_capabilities,
)
from catalog_common.schema import ALL_DOMAINS, Capability, Product


def _ids(records):
    return [r.id for r in records]


def test_products_for_business_process_in_source_order(store):
    assert _ids(products_for_business_process(store, "bp-1")) == ["p1", "p2", "p3", "p4"]
    assert _ids(products_for_business_process(store, "bp-2")) == ["p3"]
    assert products_for_business_process(store, "bp-9") == []
    assert products_for_business_process(store, "missing") == []


def test_vendors_for_business_process_dedupes_and_skips_unknown(store):
    assert _ids(vendors_for_business_process(store, "bp-1")) == ["v1", "v2"]
    assert _ids(vendors_for_business_process(store, "bp-2")) == ["v2"]


def test_vendor_products_for_process(store):
    assert _ids(vendor_products_for_process(store, "v1", "bp-1")) == ["p1", "p2"]
    assert vendor_products_for_process(store, "v1", "bp-2") == []


def test_best_product_prefers_widest_coverage(store):
    best = best_product_per_vendor_for_process(store, "bp-1")

    assert [(b.vendor_id, b.product.id, b.capability_count) for b in best] == [
        ("v1", "p1", 2),
        ("v2", "p3", 1),
        ("v-missing", "p4", 1),
    ]


def test_best_product_tie_keeps_first_seen(store, tables):
    extra = Product(id="p5", vendor_id="v2", capability_ids=("cap-3", "cap-4"))
    store.replace_collections(replace(tables, products=tables.products + (extra,)))

    best = {b.vendor_id: b.product.id for b in best_product_per_vendor_for_process(store, "bp-2")}

    assert best == {"v2": "p3"}


@pytest.mark.parametrize("process_id", ["bp-1", "bp-2", "bp-9", "missing"])
def test_best_product_at_most_one_entry_per_vendor(store, process_id):
    best = best_product_per_vendor_for_process(store, process_id)
    vendor_ids = [b.vendor_id for b in best]
    qualifying = {p.vendor_id for p in products_for_business_process(store, process_id)}

    assert len(vendor_ids) == len(set(vendor_ids))
    assert set(vendor_ids) == qualifying


@pytest.mark.parametrize("product_id", ["p1", "p2", "p3", "p4", "missing"])
@pytest.mark.parametrize("process_id", ["bp-1", "bp-2", "bp-9", "missing"])
def test_capability_count_matches_capability_list(store, product_id, process_id):
    caps = capabilities_for_product_in_process(store, product_id, process_id)

    assert capability_count_for_product_in_process(store, product_id, process_id) == len(caps)


def test_capabilities_for_product_in_process(store):
    assert _ids(capabilities_for_product_in_process(store, "p3", "bp-2")) == ["cap-3", "cap-4"]
    assert _ids(capabilities_for_product_in_process(store, "p3", "bp-1")) == ["cap-1"]


def test_capabilities_for_process_sorted_by_order(store):
    assert _ids(capabilities_for_process(store, "bp-2")) == ["cap-3", "cap-4"]


def test_evaluations_use_first_match(store):
    assert business_process_evaluation(store, "v1", "bp-1").id == "bpe-1"
    assert product_evaluation(store, "p1", "cap-1").id == "pe-1"
    assert product_evaluation(store, "p1", "cap-1").good_for == ("Big teams", "Fast ramp")


def test_missing_evaluation_returns_none(store):
    assert business_process_evaluation(store, "v9", "bp-9") is None
    assert product_evaluation(store, "p2", "cap-1") is None
    assert find_business_process_evaluation(store, "bpe-2").overall_fit == "poor"
    assert find_business_process_evaluation(store, "nope") is None


def test_all_domain_returns_input_unchanged(store):
    caps = list(store.capabilities)
    processes = list(store.business_processes)

    assert filter_capabilities_by_domain(store, caps, ALL_DOMAINS) == caps
    assert filter_business_processes_by_domain(processes, ALL_DOMAINS) == processes


def test_domain_filter_uses_process_domain_and_tags(store):
    assert _ids(filter_business_processes_by_domain(store.business_processes, "ERP")) == ["bp-2", "bp-9"]
    # cap-3 belongs to an ERP process but its tags mention CRM.
    assert _ids(filter_capabilities_by_domain(store, store.capabilities, "CRM")) == ["cap-1", "cap-2", "cap-3"]
    assert _ids(filter_capabilities_by_domain(store, store.capabilities, "ERP")) == ["cap-3", "cap-4"]
    assert filter_capabilities_by_domain(store, store.capabilities, "AI") == []


def test_visible_capabilities_follow_active_domain(store):
    assert len(visible_capabilities(store)) == 4
    store.set_active_domain("ERP")
    assert _ids(visible_capabilities(store)) == ["cap-3", "cap-4"]


def test_capability_columns(store):
    columns = capability_columns(store)

    assert list(columns) == ["CRM", "ERP", "AI"]
    # cap-3 tags say "CRM" in upper case, which the grid split does not match.
    assert _ids(columns["CRM"]) == ["cap-1", "cap-2"]
    assert _ids(columns["ERP"]) == ["cap-3", "cap-4"]
    assert columns["AI"] == []


def test_capability_columns_match_lowercase_tags(store, tables):
    caps = (
        Capability(id="x-lower", business_process_id="bp-1", tags="crm, erp"),
        Capability(id="x-upper", business_process_id="bp-1", tags="ERP"),
    )
    store.replace_collections(replace(tables, capabilities=caps))

    columns = capability_columns(store)

    assert _ids(columns["CRM"]) == ["x-lower", "x-upper"]
    assert _ids(columns["ERP"]) == ["x-lower"]


def test_products_for_capability_filters(store):
    assert _ids(products_for_capability(store, "cap-1")) == ["p1", "p2", "p3"]
    assert _ids(products_for_capability(store, "cap-1", vendor_id="v2")) == ["p3"]
    assert _ids(products_for_capability(store, "cap-1", query="  LIT ")) == ["p2"]
    assert _ids(products_for_capability(store, "cap-1", domain="ERP")) == ["p3"]

    store.set_active_domain("ERP")
    assert _ids(products_for_capability(store, "cap-1")) == ["p3"]


def test_vendor_name_degrades_to_unknown(store):
    assert vendor_name(store, "v1") == "Vendor One"
    assert vendor_name(store, "v-missing") == UNKNOWN
    assert vendor_name(store, None) == UNKNOWN


def test_product_features_split_on_pipes():
    assert product_features(Product(id="p", features="A | B ||C ")) == ["A", "B", "C"]
    assert product_features(Product(id="p")) == []


def test_resolve_assigned_product_with_dangling_assignment(store):
    store.assign("cap-1", "p2")
    assert resolve_assigned_product(store, "cap-1").name == "Lite"

    store.assign("cap-1", "ghost")
    assert resolve_assigned_product(store, "cap-1") is None


def test_business_process_detail(store):
    detail = business_process_detail(store, "p1", "bp-1")

    assert detail.vendor.id == "v1"
    assert detail.business_process.name == "Lead to Cash"
    assert _ids(detail.capabilities) == ["cap-1", "cap-2"]
    assert detail.evaluation.id == "bpe-1"
    assert _ids(detail.related_products) == ["p1", "p2"]


def test_business_process_detail_missing_parts(store):
    assert business_process_detail(store, "p4", "bp-1") is None
    assert business_process_detail(store, "ghost", "bp-1") is None
    assert business_process_detail(store, "p1", "ghost") is None


def test_queries_do_not_mutate_store(store):
    before = (store.tables, store.assignments.as_dict(), replace(store.selection))
    products_for_business_process(store, "bp-1")
    best_product_per_vendor_for_process(store, "bp-1")
    business_process_detail(store, "p1", "bp-1")
    products_for_capability(store, "cap-1", query="x")

    assert (store.tables, store.assignments.as_dict(), store.selection) == before
