import streamlit as st

from catalog import (
    ProductFilters,
    facet_values,
    fetch_products,
    filter_products,
    load_catalog,
    resolve_nodes,
)
from columns import COLUMN_DEFINITIONS, COLUMNS_BY_KEY, ColumnVisibility, applies_to, media_column_visibility
from constants import (
    DEFINITIONS_BY_KEY,
    LARGE_SELECTION_THRESHOLD,
    METAFIELD_DEFINITIONS,
    PRODUCT_FILTERS_KEY,
)
from dirty_state import DirtyStateStore
from export import XLSX_MIME, build_products_export, make_xlsx_download
from fitguide import (
    actionable_count,
    care_pages,
    fitguide_pages,
    match_fitguides,
    matches_to_edits,
    suggest_fitguide_page,
    target_products,
)
from grid import apply_grid_edits, build_grid_frame
from grouping import auto_link_updates, detect_livid_auto_links, detect_product_groups, group_link_updates
from logging_config import get_logger, setup_logging
from media import (
    UploadFile,
    delete_product_media,
    fetch_product_media,
    reorder_moves,
    reorder_product_media,
    upload_files,
    upload_product_media,
)
from metafield_writer import save_dirty_cells, save_metafields
from model_records import ModelStore
from models import LINKED, NOT_LINKED, PARTIALLY_LINKED, extract_id, parse_gid_list, serialize_gid_list
from persisted_state import PersistedState
from settings import SettingsError, load_settings
from shopify_client import ShopifyClient, ShopifyError, check_shop_access

# =========================
# App & Shopify Setup
# =========================
st.set_page_config(page_title="Metafield Manager", layout="wide")

try:
    settings = load_settings()
except SettingsError as e:
    st.error(f"{e}. Add them to .streamlit/secrets.toml.")
    st.stop()

setup_logging(settings.log_level)
logger = get_logger("app")

LINK_ICONS = {LINKED: "🟢", NOT_LINKED: "🔴"}


@st.cache_resource(show_spinner=False)
def get_client(_settings):
    return ShopifyClient(_settings)


@st.cache_resource(show_spinner=False)
def get_model_store(_client):
    # Holds the model-definition guard for the lifetime of the server process
    return ModelStore(_client)


@st.cache_resource(show_spinner=False)
def get_ui_state(path):
    return PersistedState(path)


@st.cache_data(ttl=5 * 60, show_spinner=False)
def load_products():
    return fetch_products(get_client(settings))


@st.cache_data(ttl=10 * 60, show_spinner=False)
def load_references():
    """Pages, collections and models, fetched in parallel."""
    client_ = get_client(settings)
    return load_catalog(client_, get_model_store(client_), include=("pages", "collections", "models"))


@st.cache_data(ttl=2 * 60, show_spinner=False)
def load_product_media(product_id):
    return fetch_product_media(get_client(settings), product_id)


@st.cache_data(ttl=10 * 60, show_spinner=False)
def load_file_titles(ids):
    nodes = resolve_nodes(get_client(settings), list(ids))
    return {n.id: (n.alt or extract_id(n.id)) for n in nodes if n}


client = get_client(settings)
ui_state = get_ui_state(str(settings.ui_state_path))

if "dirty_store" not in st.session_state:
    st.session_state["dirty_store"] = DirtyStateStore()
if "cancel_save" not in st.session_state:
    st.session_state["cancel_save"] = False
store = st.session_state["dirty_store"]

# =========================
# Sidebar
# =========================
with st.sidebar:
    st.title("🔧 Metafield Manager")
    view = st.radio("View", ["Products", "Groups", "Models", "Media"], key="view")
    with st.expander("🔐 Store access", expanded=False):
        if st.button("Check connection"):
            ok, message = check_shop_access(settings, label=settings.store_url)
            (st.success if ok else st.error)(message)
    if st.button("🔄 Refresh data", use_container_width=True):
        st.cache_data.clear()
        st.rerun()
    if len(store):
        st.warning(f"{len(store)} unsaved change{'s' if len(store) != 1 else ''}. Reloading the page loses them.")

try:
    with st.spinner("Loading products…"):
        products = load_products()
except ShopifyError as e:
    st.error(f"Failed to load products: {e}")
    st.stop()

products_by_id = {p.id: p for p in products}


def product_label(p):
    return f"{p.title} ({p.vendor}, {extract_id(p.id)})"


def show_save_result(result, change_count):
    if result.success:
        st.success(result.summary(change_count))
    else:
        st.error(result.summary(change_count))


def reference_titles(pages, collections):
    titles = {p.id: p.title for p in products}
    titles.update({p.id: p.title for p in pages})
    titles.update({c.id: c.title for c in collections})
    return titles


# =========================
# Products view
# =========================
def render_products_view():
    references = load_references()
    pages = references["pages"]
    collections = references["collections"]
    models = references["models"]

    # ---------- Filters ----------
    filters = ProductFilters.from_dict(ui_state.get(PRODUCT_FILTERS_KEY))
    facets = facet_values(products)
    with st.expander("🔍 Filters", expanded=False):
        c1, c2, c3 = st.columns(3)
        with c1:
            filters.search = st.text_input("Search title / handle / vendor", value=filters.search)
            filters.missing_flat = st.checkbox("Missing flat image only", value=filters.missing_flat)
        with c2:
            filters.vendors = st.multiselect("Vendors", facets["vendors"],
                                             default=[v for v in filters.vendors if v in facets["vendors"]])
            filters.product_types = st.multiselect("Product types", facets["product_types"],
                                                   default=[t for t in filters.product_types if t in facets["product_types"]])
        with c3:
            filters.tags = st.multiselect("Tags", facets["tags"],
                                          default=[t for t in filters.tags if t in facets["tags"]])
            filters.statuses = st.multiselect("Status", facets["statuses"],
                                              default=[s for s in filters.statuses if s in facets["statuses"]])
    if filters.to_dict() != ui_state.get(PRODUCT_FILTERS_KEY):
        ui_state.set(PRODUCT_FILTERS_KEY, filters.to_dict())

    filtered = filter_products(products, filters)
    st.caption(f"Showing {len(filtered)} of {len(products)} products")

    # ---------- Columns ----------
    visibility = ColumnVisibility(ui_state)
    with st.expander("🧱 Columns", expanded=False):
        chosen = st.multiselect(
            "Visible columns",
            [c.key for c in COLUMN_DEFINITIONS],
            default=visibility.visible_keys,
            format_func=lambda k: COLUMNS_BY_KEY[k].label,
        )
        if set(chosen) != set(visibility.visible_keys):
            visibility.set_visible(chosen)
        b1, b2 = st.columns(2)
        if b1.button("Reset to defaults"):
            visibility.reset_to_defaults()
            st.rerun()
        if b2.button("Show all"):
            visibility.show_all()
            st.rerun()

    # ---------- Selection ----------
    selected_ids = st.multiselect(
        "Selected products (for bulk actions)",
        [p.id for p in filtered],
        format_func=lambda pid: product_label(products_by_id[pid]),
        key="selected_ids",
    )

    with st.expander("📝 Bulk apply / copy down", expanded=False):
        bulk_fields = [d.key for d in METAFIELD_DEFINITIONS if d.type != "list.product_reference"]
        field = st.selectbox("Field", bulk_fields, format_func=lambda k: DEFINITIONS_BY_KEY[k].label)
        value = st.text_area("Value", key="bulk_value")
        confirm = True
        if len(selected_ids) >= LARGE_SELECTION_THRESHOLD:
            confirm = st.checkbox(f"Yes, update all {len(selected_ids)} selected products")
        if st.button("Apply to selected", disabled=not selected_ids or not confirm):
            touched = store.bulk_apply(products, selected_ids, field, value)
            st.success(f"Set {DEFINITIONS_BY_KEY[field].label} on {touched} products. Save to apply")

        st.markdown("---")
        copy_fields = st.multiselect("Fields to copy from the first selected product",
                                     [c.key for c in COLUMN_DEFINITIONS],
                                     format_func=lambda k: COLUMNS_BY_KEY[k].label)
        if st.button("Copy down", disabled=len(selected_ids) < 2 or not copy_fields):
            source, count = store.copy_down(filtered, selected_ids, copy_fields)
            if source:
                st.success(f"Copied {len(copy_fields)} field(s) from {source.title} to {count} product(s)")

    # ---------- Fitguide auto-link ----------
    guides = fitguide_pages(pages)
    scope = target_products(products, selected_ids)
    with st.expander(f"📏 Auto-link fitguides ({actionable_count(scope)} candidates)", expanded=False):
        matches = match_fitguides(store.apply_to_products(scope), guides)
        if not matches:
            st.info("No fitguide matches found.")
        else:
            st.dataframe(
                [{"product": m.product.title, "fitguide": m.page.title,
                  "override": "⚠️ replaces current" if m.is_override else ""} for m in matches],
                use_container_width=True,
            )
            if st.button(f"Link {len(matches)} products"):
                for product, fld, page_id in matches_to_edits(matches):
                    store.edit(products_by_id[product.id], fld, page_id)
                st.success(f"Linked {len(matches)} products to fitguides. Save to apply")

    # ---------- Reference editor ----------
    with st.expander("🔗 Edit reference field", expanded=False):
        render_reference_editor(filtered, pages, collections, models, guides)

    # ---------- Grid ----------
    columns = visibility.visible_columns
    titles = reference_titles(pages, collections)
    flat_ids = tuple(sorted({store.get_effective_value(p, "flat") for p in filtered} - {""}))
    if flat_ids and COLUMNS_BY_KEY["flat"] in columns:
        titles.update(load_file_titles(flat_ids))

    frame = build_grid_frame(filtered, store, columns, titles)
    editable = [c.key for c in columns if c.render_type == "text"]
    column_config = {
        "id": None,
        "title": st.column_config.TextColumn("Title", disabled=True),
        "vendor": st.column_config.TextColumn("Vendor", disabled=True),
        "product_type": st.column_config.TextColumn("Type", disabled=True),
        "status": st.column_config.TextColumn("Status", disabled=True),
    }
    for col in columns:
        column_config[col.key] = st.column_config.TextColumn(col.label, disabled=col.key not in editable)

    edited = st.data_editor(
        frame,
        hide_index=True,
        num_rows="fixed",
        use_container_width=True,
        column_config=column_config,
        key="products_editor",
    )
    if apply_grid_edits(edited, products_by_id, store, editable):
        st.rerun()

    render_save_bar()

    with st.expander("📤 Export current view", expanded=False):
        if st.button("⬇️ Build export file"):
            fname, data = make_xlsx_download(build_products_export(filtered, store), label="view")
            st.download_button("Download XLSX", data=data.getvalue(), file_name=fname, mime=XLSX_MIME)


def render_reference_editor(filtered, pages, collections, models, guides):
    if not filtered:
        st.caption("No products in view.")
        return
    product = st.selectbox("Product", filtered, format_func=product_label, key="ref_product")
    ref_cols = [c for c in COLUMN_DEFINITIONS if c.render_type != "text" and applies_to(c, product)]
    col = st.selectbox("Field", ref_cols, format_func=lambda c: c.label, key="ref_field")
    current = store.get_effective_value(product, col.key)

    new_value = current
    if col.render_type == "ref_product":
        options = [p.id for p in products if p.id != product.id]
        chosen = st.multiselect("Linked products", options,
                                default=[i for i in parse_gid_list(current) if i in products_by_id],
                                format_func=lambda pid: product_label(products_by_id[pid]))
        new_value = serialize_gid_list(chosen) if chosen else ""
    elif col.render_type == "ref_page":
        candidates = care_pages(pages) if col.key == "care" else guides
        by_id = {p.id: p for p in candidates}
        options = [""] + list(by_id)
        if col.key == "fitguide" and not current:
            suggested = suggest_fitguide_page(product, products, candidates)
            if suggested:
                st.caption(f"Suggested: {suggested.title}")
        new_value = st.selectbox("Page", options, index=options.index(current) if current in options else 0,
                                 format_func=lambda i: by_id[i].title if i else "(none)")
    elif col.render_type == "ref_collection":
        by_id = {c.id: c for c in collections}
        options = [""] + list(by_id)
        new_value = st.selectbox("Collection", options, index=options.index(current) if current in options else 0,
                                 format_func=lambda i: by_id[i].title if i else "(none)")
    elif col.render_type == "ref_metaobject":
        by_id = {m.id: m for m in models}
        model_id = st.selectbox("Model", [""] + list(by_id),
                                format_func=lambda i: by_id[i].name if i else "(none)")
        new_value = by_id[model_id].info_text if model_id else ""
        st.caption(f"Current: {current or 'none'}")
    else:
        new_value = st.text_input("File GID", value=current)

    if st.button("Stage change", key="ref_stage"):
        store.edit(product, col.key, new_value)
        st.success("Staged. Save to apply")


def request_cancel():
    st.session_state["cancel_save"] = True


def reset_grid_state():
    # The editor replays its stored cell deltas on every run
    st.session_state.pop("products_editor", None)


def render_save_bar():
    st.markdown("### 💾 Save")
    c1, c2, c3 = st.columns([1, 1, 2])
    with c1:
        save_clicked = st.button(f"✅ Save all changes ({len(store)})", disabled=not len(store), type="primary")
    with c2:
        st.button("⏹ Cancel save", on_click=request_cancel)
    with c3:
        clear_succeeded = st.checkbox(
            "After a partial failure, keep only the failed edits",
            value=False,
            help="By default every edit stays pending until a save completes without errors.",
        )
    if st.button("↩️ Discard all changes", disabled=not len(store)):
        store.clear()
        reset_grid_state()
        st.rerun()

    if not save_clicked:
        return

    st.session_state["cancel_save"] = False
    change_count = len(store)
    progress = st.progress(0.0, text="Saving…")

    def on_progress(completed, total):
        progress.progress(completed / total, text=f"Saving {completed}/{total}…")

    result = save_dirty_cells(
        store,
        client,
        on_progress=on_progress,
        should_cancel=lambda: st.session_state.get("cancel_save", False),
        clear_succeeded=clear_succeeded,
        on_saved=load_products.clear,
    )
    progress.empty()
    if result.success:
        reset_grid_state()
    show_save_result(result, change_count)
    with st.expander("💬 Save log", expanded=not result.success):
        st.write(f"Products processed: {result.completed}/{result.total}, batches: {result.batches_processed}")
        for line in result.errors:
            st.write(f"❌ {line}")


# =========================
# Groups view
# =========================
def render_groups_view():
    flash = st.session_state.pop("groups_flash", None)
    if flash:
        st.success(flash)

    groups = detect_product_groups(products)
    st.subheader(f"👥 Product groups ({len(groups)})")

    suggestions = detect_livid_auto_links(products)
    with st.expander(f"⚡ Auto-populate Livid same_product links ({len(suggestions)} products)"):
        if not suggestions:
            st.info("No new Livid auto-links to apply.")
        elif st.button(f"Yes, update {len(suggestions)} products"):
            with st.spinner("Linking…"):
                result = save_metafields(client, auto_link_updates(suggestions))
            if result.success:
                load_products.clear()
                st.session_state["groups_flash"] = f"Auto-linked {len(suggestions)} Livid products"
                st.rerun()
            else:
                st.error(f"Some links failed: {', '.join(result.errors)}")

    status_filter = st.multiselect("Link status", [LINKED, PARTIALLY_LINKED, NOT_LINKED])
    for group in groups:
        if status_filter and group.link_status not in status_filter:
            continue
        icon = LINK_ICONS.get(group.link_status, "🟡")
        with st.expander(f"{icon} {group.base_name} · {group.vendor} / {group.product_type} ({len(group.members)})"):
            st.write("\n".join(f"- {m.title}" for m in group.members))
            if group.link_status != LINKED and st.button("Link all members", key=f"link_{group.id}"):
                result = save_metafields(client, group_link_updates(group.member_ids))
                if result.success:
                    load_products.clear()
                    st.session_state["groups_flash"] = f'Linked {len(group.members)} products in "{group.base_name}"'
                    st.rerun()
                else:
                    st.error(f"Some links failed: {', '.join(result.errors)}")


# =========================
# Models view
# =========================
def render_models_view():
    model_store = get_model_store(client)
    models = load_references()["models"]
    st.subheader(f"🧍 Models ({len(models)})")

    with st.form("create_model", clear_on_submit=True):
        c1, c2, c3 = st.columns(3)
        name = c1.text_input("Name")
        height = c2.text_input("Height")
        size_worn = c3.text_input("Size worn")
        notes = st.text_area("Notes")
        if st.form_submit_button("➕ Create model"):
            if not name.strip():
                st.warning("Name is required.")
            else:
                try:
                    model_store.create_model(name.strip(), height, size_worn, notes)
                    load_references.clear()
                    st.rerun()
                except ShopifyError as e:
                    st.error(f"Failed to create model: {e}")

    for model in models:
        with st.expander(f"{model.name or model.handle} · {model.height}, size {model.size_worn}"):
            with st.form(f"edit_{model.id}"):
                name = st.text_input("Name", value=model.name)
                height = st.text_input("Height", value=model.height)
                size_worn = st.text_input("Size worn", value=model.size_worn)
                notes = st.text_area("Notes", value=model.notes)
                save, delete = st.columns(2)
                saved = save.form_submit_button("💾 Save")
                deleted = delete.form_submit_button("🗑 Delete")
            try:
                if saved:
                    model_store.update_model(model.id, name, height, size_worn, notes)
                elif deleted:
                    model_store.delete_model(model.id)
                if saved or deleted:
                    load_references.clear()
                    st.rerun()
            except ShopifyError as e:
                st.error(str(e))


# =========================
# Media view
# =========================
def render_media_view():
    product = st.selectbox("Product", products, format_func=product_label, key="media_product")
    try:
        media = load_product_media(product.id)
    except ShopifyError as e:
        st.error(f"Failed to fetch media: {e}")
        return

    visibility = media_column_visibility(ui_state)
    sections = st.multiselect(
        "Sections",
        [c.key for c in visibility.definitions if applies_to(c, product)],
        default=[k for k in visibility.visible_keys if applies_to(visibility.definitions_by_key[k], product)],
        format_func=lambda k: visibility.definitions_by_key[k].label,
    )
    hidden_here = [k for k in visibility.visible_keys if not applies_to(visibility.definitions_by_key[k], product)]
    if sorted(sections + hidden_here) != sorted(visibility.visible_keys):
        visibility.set_visible(sections + hidden_here)

    for key in ("men_images", "women_images"):
        if key not in sections:
            continue
        ids = parse_gid_list(store.get_effective_value(product, key))
        st.markdown(f"**{visibility.definitions_by_key[key].label}** ({len(ids)})")
        if ids:
            titles = load_file_titles(tuple(ids))
            st.write("\n".join(f"- {titles.get(i, extract_id(i))}" for i in ids))

    if "product_media" not in sections:
        media = []
    st.subheader(f"🖼 Media ({len(media)})")
    if media:
        cols = st.columns(6)
        for i, item in enumerate(media):
            with cols[i % 6]:
                if item.thumbnail_url:
                    st.image(item.thumbnail_url, caption=item.alt or str(i + 1))

        labels = {m.id: f"{i + 1}. {m.alt or extract_id(m.id)}" for i, m in enumerate(media)}
        to_delete = st.multiselect("Delete media", list(labels), format_func=labels.get)
        if st.button("🗑 Delete selected", disabled=not to_delete):
            try:
                delete_product_media(client, product.id, to_delete)
                load_product_media.clear()
                st.rerun()
            except ShopifyError as e:
                st.error(f"Failed to delete media: {e}")

        order = st.multiselect("New order (pick in order)", list(labels), format_func=labels.get)
        if st.button("↕️ Reorder", disabled=len(order) != len(media)):
            try:
                reorder_product_media(client, product.id, reorder_moves([m.id for m in media], order))
                load_product_media.clear()
                st.rerun()
            except ShopifyError as e:
                st.error(f"Failed to reorder media: {e}")

    uploads = st.file_uploader("Upload product images", accept_multiple_files=True, type=["jpg", "jpeg", "png", "webp"])
    target = st.selectbox("Upload as", ["product_media", "flat", "men_images", "women_images"])
    if uploads and st.button("⬆️ Upload"):
        files = [UploadFile(u.name, u.getvalue(), u.type or "") for u in uploads]
        progress = st.progress(0.0, text="Uploading…")

        def on_progress(completed, total):
            progress.progress(completed / total, text=f"Uploading {completed}/{total}…")

        try:
            if target == "product_media":
                upload_product_media(client, product.id, files, on_progress=on_progress)
                load_product_media.clear()
                st.success(f"Uploaded {len(files)} image(s)")
            else:
                file_ids = upload_files(client, files, on_progress=on_progress)
                if target == "flat":
                    value = file_ids[0] if file_ids else ""
                else:
                    existing = parse_gid_list(store.get_effective_value(product, target))
                    value = serialize_gid_list(existing + file_ids)
                store.edit(product, target, value)
                st.success(f"Uploaded {len(file_ids)} file(s), {target} staged, save to apply")
        except ShopifyError as e:
            st.error(str(e))
        finally:
            progress.empty()

    if len(store):
        render_save_bar()


# =========================
# Router
# =========================
try:
    if view == "Products":
        render_products_view()
    elif view == "Groups":
        render_groups_view()
    elif view == "Models":
        render_models_view()
    else:
        render_media_view()
except ShopifyError as e:
    logger.exception("Shopify call failed")
    st.error(f"Shopify error: {e}")

with st.expander("💡 How it works", expanded=False):
    st.markdown("""
- Edit text cells in the grid; reference fields are changed through **Edit reference field**.
- Edits stay pending (and are shown in the grid) until **Save all changes**.
- Clearing a value deletes the metafield in Shopify.
- **Groups** finds products sharing a title prefix within a vendor + type and links them via *Same Product*.
""")
