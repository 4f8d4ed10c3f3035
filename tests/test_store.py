from catalog_browser.store import EntityStore
from catalog_common.schema import ALL_DOMAINS


def test_new_store_is_empty_with_default_selection():
    store = EntityStore()

    assert store.counts() == {
        "business_processes": 0,
        "capabilities": 0,
        "vendors": 0,
        "products": 0,
        "product_evaluations": 0,
        "business_process_evaluations": 0,
    }
    assert not store.is_populated()
    assert store.selection.active_domain == ALL_DOMAINS
    assert store.selection.selected_vendor_id is None


def test_replace_collections_exposes_typed_tuples(store):
    assert store.is_populated()
    assert isinstance(store.products, tuple)
    assert [p.id for p in store.collection("products")] == ["p1", "p2", "p3", "p4"]


def test_unknown_domain_is_ignored(store):
    store.set_active_domain("ERP")
    store.set_active_domain("HR")

    assert store.selection.active_domain == "ERP"


def test_blank_vendor_selection_means_none(store):
    store.select_vendor("v1")
    store.select_vendor("")

    assert store.selection.selected_vendor_id is None


def test_assign_active_product_needs_capability_and_product(store):
    assert store.assign_active_product() is False

    store.open_capability("cap-1")
    assert store.assign_active_product() is False

    store.open_product("p2", "cap-1")
    assert store.assign_active_product() is True
    assert store.assignments.get("cap-1") == "p2"


def test_clear_active_assignment(store):
    store.open_product("p2", "cap-1")
    store.assign_active_product()

    assert store.clear_active_assignment() is True
    assert store.clear_active_assignment() is False
    assert "cap-1" not in store.assignments


def test_close_product_keeps_capability(store):
    store.open_product("p1", "cap-2")
    store.close_product()

    assert store.selection.active_product_id is None
    assert store.selection.active_capability_id == "cap-2"
