from __future__ import annotations

import logging
from typing import Dict, List, Sequence

import polars as pl
import streamlit as st

from catalog_browser.catalog_data import MergeReport, load_catalog
from catalog_browser.config import Settings, load_settings
from catalog_browser.queries import (
    best_product_per_vendor_for_process,
    business_process_detail,
    capability_columns,
    filter_business_processes_by_domain,
    find_capability,
    find_product,
    product_evaluation,
    products_for_capability,
    resolve_assigned_product,
    vendor_name,
)
from catalog_common.schema import DOMAINS, Capability, Product

STORE_KEY = "catalog_store"
REPORT_KEY = "catalog_report"
SETTINGS_KEY = "catalog_settings"


def get_store(force_reload: bool = False):
    """Build the session's store once; later reruns reuse it."""

    if force_reload or STORE_KEY not in st.session_state:
        settings: Settings = st.session_state.get(SETTINGS_KEY) or load_settings()
        existing = st.session_state.get(STORE_KEY) if force_reload else None
        store, report = load_catalog(settings, store=existing)
        st.session_state[SETTINGS_KEY] = settings
        st.session_state[STORE_KEY] = store
        st.session_state[REPORT_KEY] = report
    return st.session_state[STORE_KEY]


def products_frame(store, products: Sequence[Product]) -> pl.DataFrame:
    """Tabular view of products for st.dataframe."""

    return pl.DataFrame(
        {
            "Product": [p.name for p in products],
            "Vendor": [vendor_name(store, p.vendor_id) for p in products],
            "Type": [p.product_type for p in products],
            "Pricing": [p.pricing_tier for p in products],
            "Capabilities": [len(p.capability_ids) for p in products],
        },
        schema={
            "Product": pl.Utf8,
            "Vendor": pl.Utf8,
            "Type": pl.Utf8,
            "Pricing": pl.Utf8,
            "Capabilities": pl.Int64,
        },
    )


def render_sidebar(store) -> None:
    st.sidebar.header("View")
    domain = st.sidebar.selectbox(
        "Domain",
        options=list(DOMAINS),
        index=list(DOMAINS).index(store.selection.active_domain),
        key="domain_select",
    )
    store.set_active_domain(domain)

    vendor_options: List[str | None] = [None] + [v.id for v in store.vendors]
    vendor_id = st.sidebar.selectbox(
        "Vendor",
        options=vendor_options,
        format_func=lambda v: "No vendor selected" if v is None else vendor_name(store, v),
        key="vendor_select",
    )
    store.select_vendor(vendor_id)

    st.sidebar.header("Data")
    report: MergeReport | None = st.session_state.get(REPORT_KEY)
    if report is not None:
        st.sidebar.caption(report.summary())
        if report.external_error:
            st.sidebar.warning(f"CSV load failed, using built-in data: {report.external_error}")
    if st.sidebar.button("Reload data", use_container_width=True):
        get_store(force_reload=True)
        st.rerun()
    if st.sidebar.button("Clear stored data", use_container_width=True):
        store.assignments.storage.clear()
        get_store(force_reload=True)
        st.rerun()


def render_capability_card(store, cap: Capability) -> None:
    assigned = resolve_assigned_product(store, cap.id)
    with st.container(border=True):
        st.markdown(f"**{cap.name}**")
        if cap.value_proposition:
            st.caption(cap.value_proposition)
        if assigned:
            st.markdown(f"`{vendor_name(store, assigned.vendor_id)} • {assigned.name}`")
        else:
            st.caption("Unassigned")
        if st.button("Products", key=f"open_{cap.id}"):
            store.open_capability(cap.id)
            store.close_product()


def render_capability_grid(store) -> None:
    columns: Dict[str, List[Capability]] = capability_columns(store)
    grid = st.columns(len(columns))
    for col, (name, caps) in zip(grid, columns.items()):
        with col:
            st.subheader(name)
            if not caps:
                st.info("AI capabilities coming soon" if name == "AI" else "No capabilities for this filter.")
            for cap in caps:
                render_capability_card(store, cap)


def render_product_catalog(store) -> None:
    cap = find_capability(store, store.selection.active_capability_id)
    if cap is None:
        return

    st.markdown(f"### Products for {cap.name}")
    if cap.tags:
        st.caption(f"Tags: {cap.tags}")

    filter_col, search_col = st.columns(2)
    with filter_col:
        vendor_filter = st.selectbox(
            "Vendor filter",
            options=[None] + [v.id for v in store.vendors],
            format_func=lambda v: "All vendors" if v is None else vendor_name(store, v),
            key="catalog_vendor_filter",
        )
    with search_col:
        query = st.text_input("Search products", key="catalog_search").strip()

    products = products_for_capability(store, cap.id, vendor_id=vendor_filter, query=query)
    if not products:
        st.info("No products found")
    else:
        st.dataframe(products_frame(store, products).to_pandas(), use_container_width=True, hide_index=True)
        chosen = st.selectbox(
            "Details for",
            options=[p.id for p in products],
            format_func=lambda pid: find_product(store, pid).name,
            key="catalog_product_select",
        )
        store.open_product(chosen, cap.id)
        render_evaluation_panel(store)

    action_col, clear_col = st.columns(2)
    with action_col:
        if st.button("Select this product", disabled=not products, use_container_width=True):
            if store.assign_active_product():
                st.success("Product assigned")
                st.rerun()
    with clear_col:
        if st.button("Clear selection", use_container_width=True):
            if store.clear_active_assignment():
                st.rerun()


def _bullets(title: str, items: Sequence[str]) -> None:
    if items:
        st.markdown(f"**{title}**")
        st.markdown("\n".join(f"- {item}" for item in items))


def render_evaluation_panel(store) -> None:
    product = find_product(store, store.selection.active_product_id)
    capability_id = store.selection.active_capability_id
    if product is None:
        return

    st.markdown(f"#### {product.name}")
    st.caption(f"{vendor_name(store, product.vendor_id)} • {product.product_type}")
    evaluation = product_evaluation(store, product.id, capability_id)
    if evaluation is None:
        st.info("No evaluation data available for this product and capability.")
        return

    _bullets("Good For", evaluation.good_for)
    _bullets("Not Ideal For", evaluation.not_ideal_for)
    _bullets("Best Use Cases", evaluation.best_use_cases)
    _bullets("Special Features", evaluation.special_features)
    _bullets("Competitive Advantages", evaluation.competitive_advantages)
    _bullets("Competitive Disadvantages", evaluation.competitive_disadvantages)
    meta = st.columns(3)
    meta[0].metric("Implementation Complexity", evaluation.implementation_complexity or "-")
    meta[1].metric("Typical Implementation Time", evaluation.typical_implementation_time or "-")
    meta[2].metric("Confidence Level", evaluation.confidence or "-")


def render_process_detail(store, product_id: str, process_id: str) -> None:
    detail = business_process_detail(store, product_id, process_id)
    if detail is None:
        st.warning("Product, vendor or business process is missing from the catalog.")
        return

    st.markdown(f"**{detail.vendor.name} • {detail.product.name}**")
    if detail.evaluation is not None:
        evaluation = detail.evaluation
        st.markdown(f"Overall fit: **{(evaluation.overall_fit or '-').upper()}**")
        cols = st.columns(3)
        cols[0].metric("Complexity", evaluation.implementation_complexity or "-")
        cols[1].metric("Timeline", evaluation.typical_implementation_time or "-")
        cols[2].metric("TCO", evaluation.total_cost_of_ownership or "-")
        _bullets("Key Products", evaluation.key_products)
        _bullets("Strengths", evaluation.strengths)
        _bullets("Weaknesses", evaluation.weaknesses)
        _bullets("Best Use Cases", evaluation.best_use_cases)

    st.caption(detail.product.description or "No description available")
    if len(detail.related_products) > 1:
        _bullets(f"Related {detail.vendor.name} Products", [p.name for p in detail.related_products])
    _bullets(
        f"Capabilities Supported ({len(detail.capabilities)})",
        [f"{c.name}: {c.value_proposition or c.description}" for c in detail.capabilities],
    )
    _bullets("Key Features", detail.features)


def render_processes_tab(store) -> None:
    processes = sorted(store.business_processes, key=lambda bp: bp.order)
    for process in filter_business_processes_by_domain(processes, store.selection.active_domain):
        with st.expander(f"{process.name} ({process.domain or '-'})"):
            entries = best_product_per_vendor_for_process(store, process.id)
            if not entries:
                st.info("No products cover this business process.")
                continue
            vendor_id = st.radio(
                "Vendor",
                options=[e.vendor_id for e in entries],
                format_func=lambda v: vendor_name(store, v),
                horizontal=True,
                key=f"bp_vendor_{process.id}",
            )
            best = next(e for e in entries if e.vendor_id == vendor_id)
            render_process_detail(store, best.product.id, process.id)


def main() -> None:
    st.set_page_config(page_title="Capability Catalog", layout="wide")
    st.title("Capability Catalog")
    st.caption("Business processes → capabilities → vendor products. Assign a product to each capability.")

    settings = st.session_state.get(SETTINGS_KEY) or load_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO), format="%(levelname)s: %(message)s")
    st.session_state[SETTINGS_KEY] = settings

    store = get_store()
    render_sidebar(store)

    grid_tab, process_tab = st.tabs(["Capabilities", "Business Processes"])
    with grid_tab:
        render_capability_grid(store)
        render_product_catalog(store)
    with process_tab:
        render_processes_tab(store)


if __name__ == "__main__":
    main()
