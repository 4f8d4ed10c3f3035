import json

from catalog_browser.assignments import ASSIGNMENTS_KEY, AssignmentOverlay, resolve_assigned
from catalog_browser.storage import InMemoryKeyValueStore, JsonFileKeyValueStore
from catalog_browser.store import EntityStore


def test_assign_persists_full_mapping_immediately(kv_store):
    overlay = AssignmentOverlay(kv_store)

    overlay.assign("cap-1", "p1")
    overlay.assign("cap-2", "p2")
    overlay.assign("cap-1", "p3")

    assert kv_store.get(ASSIGNMENTS_KEY) == {"cap-1": "p3", "cap-2": "p2"}


def test_clear_removes_and_persists(kv_store):
    overlay = AssignmentOverlay(kv_store)
    overlay.assign("cap-1", "p1")

    overlay.clear("cap-1")
    overlay.clear("never-assigned")

    assert overlay.get("cap-1") is None
    assert kv_store.get(ASSIGNMENTS_KEY) == {}


def test_load_rebuilds_from_storage_and_ignores_malformed_payloads():
    storage = InMemoryKeyValueStore({ASSIGNMENTS_KEY: {"cap-1": "p1"}})
    overlay = AssignmentOverlay(storage)

    assert overlay.load() == {"cap-1": "p1"}

    storage.set(ASSIGNMENTS_KEY, {"cap-1": {"nested": "p1"}})
    assert overlay.load() == {}

    storage.set(ASSIGNMENTS_KEY, ["cap-1", "p1"])
    assert overlay.load() == {}


def test_assignments_survive_a_new_process(tmp_path):
    path = tmp_path / "storage.json"
    AssignmentOverlay(JsonFileKeyValueStore(path)).assign("cap-1", "p1")

    reloaded = AssignmentOverlay(JsonFileKeyValueStore(path))
    reloaded.load()

    assert reloaded.get("cap-1") == "p1"
    assert json.loads(path.read_text(encoding="utf-8")) == {ASSIGNMENTS_KEY: {"cap-1": "p1"}}


def test_resolve_prefers_explicit_assignment(store):
    store.select_vendor("v2")
    store.assign("cap-1", "p2")

    assert resolve_assigned(store, "cap-1") == "p2"


def test_resolve_falls_back_to_first_product_of_selected_vendor(store):
    assert resolve_assigned(store, "cap-1") is None

    store.select_vendor("v1")
    assert resolve_assigned(store, "cap-1") == "p1"
    assert resolve_assigned(store, "cap-3") is None

    store.select_vendor("v2")
    assert resolve_assigned(store, "cap-1") == "p3"


def test_assign_then_clear_never_returns_cleared_product(store):
    store.assign("cap-1", "p2")
    store.clear_assignment("cap-1")
    assert resolve_assigned(store, "cap-1") is None

    store.select_vendor("v1")
    store.assign("cap-1", "p2")
    store.clear_assignment("cap-1")
    assert resolve_assigned(store, "cap-1") == "p1"


def test_unreadable_storage_file_degrades_to_empty(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("{not json", encoding="utf-8")

    storage = JsonFileKeyValueStore(path)
    overlay = AssignmentOverlay(storage)

    assert overlay.load() == {}


def test_write_failure_does_not_raise(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory", encoding="utf-8")
    storage = JsonFileKeyValueStore(blocker / "storage.json")
    store = EntityStore(AssignmentOverlay(storage))

    store.assign("cap-1", "p1")

    assert store.assignments.get("cap-1") == "p1"
    assert not (blocker / "storage.json").exists()


def test_new_overlay_reads_saved_mapping_before_first_write(tmp_path):
    path = tmp_path / "storage.json"
    AssignmentOverlay(JsonFileKeyValueStore(path)).assign("cap-1", "p1")

    second = AssignmentOverlay(JsonFileKeyValueStore(path))
    assert second.get("cap-1") == "p1"
    second.assign("cap-2", "p2")

    third = AssignmentOverlay(JsonFileKeyValueStore(path))
    assert third.load() == {"cap-1": "p1", "cap-2": "p2"}


def test_blank_explicit_assignment_still_takes_precedence():
    storage = InMemoryKeyValueStore({ASSIGNMENTS_KEY: {"cap-1": ""}})
    store = EntityStore(AssignmentOverlay(storage))
    store.select_vendor("v1")

    assert resolve_assigned(store, "cap-1") == ""
