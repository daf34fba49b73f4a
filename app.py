"""
Streamlit entry point — Catalog Importer UI.

Four screens over the same database connection:
  1. Import — upload supplier price lists, pick the brand of each file,
     run the import pipeline with a live progress bar, show the outcome.
  2. Components — browse/search/sort the imported catalog.
  3. Discounts — view a brand's discount groups, paste new ones.
  4. Price history — browse superseded prices.

Contains NO business logic — only calls processing and storage modules and
displays results.
"""

import logging

import pandas as pd
import streamlit as st

from config.brand_mappings import configured_brand_ids, has_brand_config
from config.schema import COMPONENT_COLUMNS, PRICE_HISTORY_COLUMNS
from config.settings import (
    DEFAULT_PAGE_SIZE,
    StoreSettings,
    load_store_settings,
    load_store_timeout,
)
from processing.discount_importer import import_discounts
from processing.models import ProcessingStatus
from processing.pipeline import import_price_list
from storage.base import ConnectionCheck, StoreError
from storage.supabase_store import SupabaseStore
from utils.paging import clamp_page, page_count

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Page configuration
# ═══════════════════════════════════════════════════════════════════════════

st.set_page_config(
    page_title="Catalog Importer",
    page_icon="📦",
    layout="wide",
    initial_sidebar_state="expanded",
)


# ═══════════════════════════════════════════════════════════════════════════
# Connection helpers
# ═══════════════════════════════════════════════════════════════════════════

def _secret(name: str) -> str:
    """Read a setting from Streamlit secrets (empty when there is no secrets file)."""
    try:
        return st.secrets.get(name, None) or ""
    except FileNotFoundError:
        return ""


@st.cache_resource
def _connect(url: str, api_key: str, timeout: float) -> SupabaseStore:
    return SupabaseStore.from_settings(StoreSettings(url=url, api_key=api_key, timeout=timeout))


def _current_store() -> SupabaseStore:
    return _connect(
        st.session_state["supabase_url"],
        st.session_state["supabase_key"],
        st.session_state["supabase_timeout"],
    )


@st.cache_data(ttl=60, show_spinner=False)
def _brand_counts(_count_rows, table: str, url: str, brand_ids: tuple[int, ...]) -> dict[int, int]:
    """Rows per brand for the brand selectors; empty when counting fails."""
    try:
        return {brand_id: _count_rows(brand_id=brand_id) for brand_id in brand_ids}
    except StoreError as exc:
        logger.warning(f"Could not count {table} rows per brand: {exc}")
        return {}


def _brand_label(brand_id: int | None, names: dict[int, str], counts: dict[int, int]) -> str:
    if brand_id is None:
        return "All brands"
    if brand_id in counts:
        return f"{names[brand_id]} ({counts[brand_id]})"
    return names[brand_id]


def _reset_page(page_key: str) -> None:
    st.session_state[page_key] = 1


def _init_session_state() -> None:
    """Ensure all required session state keys exist with sensible defaults."""
    env_settings = load_store_settings()
    defaults: dict = {
        "supabase_url": _secret("SUPABASE_URL") or (env_settings.url if env_settings else ""),
        "supabase_key": _secret("SUPABASE_KEY") or (env_settings.api_key if env_settings else ""),
        "supabase_timeout": load_store_timeout(),
        "connected": False,
        "import_results": [],
        "components_page": 1,
        "history_page": 1,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


_init_session_state()


# ═══════════════════════════════════════════════════════════════════════════
# Sidebar: Connection
# ═══════════════════════════════════════════════════════════════════════════

st.sidebar.title("🔌 Database")

st.sidebar.text_input("Supabase URL", key="supabase_url")
st.sidebar.text_input("Anon key", key="supabase_key", type="password")

if st.sidebar.button("Test connection", use_container_width=True):
    if not st.session_state["supabase_url"] or not st.session_state["supabase_key"]:
        st.sidebar.error("Fill in the URL and the key.")
    else:
        try:
            check = _current_store().test_connection()
        except StoreError as exc:
            check = ConnectionCheck(ok=False, message=str(exc))
        st.session_state["connected"] = check.ok
        if check.ok:
            st.sidebar.success(check.message)
        else:
            st.sidebar.error(check.message)

if not st.session_state["connected"]:
    st.title("📦 Catalog Importer")
    st.info("Connect to the database in the sidebar to start.")
    st.stop()

try:
    store = _current_store()
    brands = store.list_brands()
except StoreError as exc:
    logger.error(f"Could not load brands: {exc}")
    st.error(f"Could not load brands: {exc}")
    st.stop()

brand_names = {brand.idmarca: brand.nome for brand in brands}


# ═══════════════════════════════════════════════════════════════════════════
# Main area
# ═══════════════════════════════════════════════════════════════════════════

st.title("📦 Catalog Importer")

tab_import, tab_components, tab_discounts, tab_history = st.tabs(
    ["📁 Import", "🔎 Components", "％ Discounts", "🕑 Price history"]
)


# ═══════════════════════════════════════════════════════════════════════════
# Section 1: Import
# ═══════════════════════════════════════════════════════════════════════════

with tab_import:
    uploaded_files = st.file_uploader(
        "Supplier price lists",
        type=["xlsx", "xlsm", "xls"],
        accept_multiple_files=True,
        help="Drag and drop one or more Excel price lists.",
    )

    importable = [brand for brand in brands if has_brand_config(brand.idmarca)]
    if uploaded_files and not importable:
        st.warning(
            "None of the brands in the database has an import configuration "
            f"(configured brand ids: {configured_brand_ids()})."
        )

    file_brands: list[int | None] = []
    for idx, uploaded_file in enumerate(uploaded_files or []):
        cols = st.columns([3, 2])
        cols[0].text(uploaded_file.name)
        choice = cols[1].selectbox(
            "Brand",
            options=[None] + [brand.idmarca for brand in importable],
            format_func=lambda brand_id: "Select brand..." if brand_id is None else brand_names[brand_id],
            key=f"file_{idx}_brand",
            label_visibility="collapsed",
        )
        file_brands.append(choice)

    ready = [
        (uploaded_file, brand_id)
        for uploaded_file, brand_id in zip(uploaded_files or [], file_brands)
        if brand_id is not None
    ]

    if ready and st.button(f"Process {len(ready)} file(s) ▶", type="primary", use_container_width=True):
        results = []
        for uploaded_file, brand_id in ready:
            st.subheader(uploaded_file.name)
            progress_bar = st.progress(0, text="Starting...")

            def on_progress(status: ProcessingStatus, bar=progress_bar) -> None:
                bar.progress(status.percent / 100, text=status.message)

            results.append(import_price_list(
                uploaded_file.getvalue(),
                uploaded_file.name,
                brand_id,
                store,
                on_progress=on_progress,
            ))
        st.session_state["import_results"] = results
        _brand_counts.clear()

    for pipeline_result in st.session_state["import_results"]:
        imported = pipeline_result.import_result
        label = f"{pipeline_result.filename} — {brand_names.get(pipeline_result.brand_id, pipeline_result.brand_id)}"
        if pipeline_result.status == "failed":
            st.error(f"{label}: {'; '.join(pipeline_result.errors)}")
        elif pipeline_result.status == "partial":
            st.warning(f"{label}: {imported.success_count} inserted, {imported.error_count} errors")
        else:
            st.success(f"{label}: {imported.success_count} inserted")

        with st.expander("Details"):
            metric_cols = st.columns(4)
            metric_cols[0].metric("Inserted", imported.success_count)
            metric_cols[1].metric("Errors", imported.error_count)
            metric_cols[2].metric("Rows skipped", pipeline_result.skipped_count)
            metric_cols[3].metric("Sheet", pipeline_result.sheet_name or "—")
            if pipeline_result.column_mapping is not None:
                st.json(pipeline_result.column_mapping.describe())
            for message in pipeline_result.messages:
                st.text(message)


# ═══════════════════════════════════════════════════════════════════════════
# Section 2: Components
# ═══════════════════════════════════════════════════════════════════════════

with tab_components:
    component_counts = _brand_counts(
        store.count_components, "components", st.session_state["supabase_url"], tuple(brand_names)
    )
    filter_cols = st.columns([2, 3, 2, 1])
    component_brand = filter_cols[0].selectbox(
        "Brand",
        options=[None] + list(brand_names),
        format_func=lambda brand_id: _brand_label(brand_id, brand_names, component_counts),
        key="components_brand",
        on_change=_reset_page,
        args=("components_page",),
    )
    component_search = filter_cols[1].text_input(
        "Search reference or description", key="components_search",
        on_change=_reset_page, args=("components_page",),
    )
    component_sort = filter_cols[2].selectbox(
        "Sort by", options=COMPONENT_COLUMNS, index=COMPONENT_COLUMNS.index("updated_at"),
        key="components_sort", on_change=_reset_page, args=("components_page",),
    )
    component_asc = filter_cols[3].checkbox(
        "Ascending", key="components_asc", on_change=_reset_page, args=("components_page",),
    )

    try:
        total_rows = store.count_components(
            brand_id=component_brand, search=component_search or None,
        )
        total_pages = page_count(total_rows, DEFAULT_PAGE_SIZE)
        st.session_state["components_page"] = clamp_page(
            st.session_state["components_page"], total_rows, DEFAULT_PAGE_SIZE
        )
        page = store.list_components(
            page=st.session_state["components_page"],
            per_page=DEFAULT_PAGE_SIZE,
            brand_id=component_brand,
            search=component_search or None,
            sort_by=component_sort,
            ascending=component_asc,
        )
    except StoreError as exc:
        st.error(f"Could not load components: {exc}")
    else:
        st.caption(f"{page.total} components")
        st.dataframe(pd.DataFrame(page.rows), use_container_width=True, hide_index=True)
        st.number_input(
            "Page", min_value=1, max_value=total_pages, key="components_page",
        )


# ═══════════════════════════════════════════════════════════════════════════
# Section 3: Discounts
# ═══════════════════════════════════════════════════════════════════════════

with tab_discounts:
    discount_brand = st.selectbox(
        "Brand",
        options=list(brand_names),
        format_func=lambda brand_id: brand_names[brand_id],
        key="discounts_brand",
    )

    if discount_brand is not None:
        try:
            discounts = store.list_discounts(discount_brand)
        except StoreError as exc:
            st.error(f"Could not load discounts: {exc}")
            discounts = []

        if discounts:
            st.dataframe(
                pd.DataFrame([
                    {"Group": record.grupo_desconto, "Discount (%)": record.display_value}
                    for record in discounts
                ]),
                use_container_width=True,
                hide_index=True,
            )
        else:
            st.info("No discounts configured for this brand.")

        pasted = st.text_area(
            "Paste discount groups (group ⇥ percentage, one per line)",
            key="discounts_paste",
            height=200,
        )
        if st.button("Import discounts", disabled=not pasted.strip()):
            outcome = import_discounts(store, pasted, discount_brand)
            if outcome.error_count:
                st.error("; ".join(outcome.messages))
            else:
                st.success(f"{outcome.success_count} discount groups saved")
                for message in outcome.messages:
                    st.text(message)


# ═══════════════════════════════════════════════════════════════════════════
# Section 4: Price history
# ═══════════════════════════════════════════════════════════════════════════

with tab_history:
    history_counts = _brand_counts(
        store.count_price_history, "price history", st.session_state["supabase_url"], tuple(brand_names)
    )
    history_cols = st.columns([2, 3, 2, 1])
    history_brand = history_cols[0].selectbox(
        "Brand",
        options=[None] + list(brand_names),
        format_func=lambda brand_id: _brand_label(brand_id, brand_names, history_counts),
        key="history_brand",
        on_change=_reset_page,
        args=("history_page",),
    )
    history_search = history_cols[1].text_input(
        "Search reference", key="history_search",
        on_change=_reset_page, args=("history_page",),
    )
    history_sort = history_cols[2].selectbox(
        "Sort by", options=PRICE_HISTORY_COLUMNS, index=PRICE_HISTORY_COLUMNS.index("valido_ate"),
        key="history_sort", on_change=_reset_page, args=("history_page",),
    )
    history_asc = history_cols[3].checkbox(
        "Ascending", key="history_asc", on_change=_reset_page, args=("history_page",),
    )

    try:
        total_rows = store.count_price_history(
            brand_id=history_brand, search=history_search or None,
        )
        total_pages = page_count(total_rows, DEFAULT_PAGE_SIZE)
        st.session_state["history_page"] = clamp_page(
            st.session_state["history_page"], total_rows, DEFAULT_PAGE_SIZE
        )
        history_page = store.list_price_history(
            page=st.session_state["history_page"],
            per_page=DEFAULT_PAGE_SIZE,
            brand_id=history_brand,
            search=history_search or None,
            sort_by=history_sort,
            ascending=history_asc,
        )
    except StoreError as exc:
        st.error(f"Could not load price history: {exc}")
    else:
        history_frame = pd.DataFrame(history_page.rows)
        if not history_frame.empty and "idmarca" in history_frame.columns:
            history_frame["idmarca"] = history_frame["idmarca"].map(
                lambda brand_id: brand_names.get(brand_id, brand_id)
            )
        st.caption(f"{history_page.total} entries")
        st.dataframe(history_frame, use_container_width=True, hide_index=True)
        st.number_input(
            "Page", min_value=1, max_value=total_pages, key="history_page",
        )
