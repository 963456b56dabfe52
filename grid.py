import pandas as pd

from columns import applies_to
from models import extract_id, parse_gid_list

BASE_COLUMNS = ["id", "title", "vendor", "product_type", "status"]


def _clean(value) -> str:
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value)


def reference_label(value, render_type, titles_by_id) -> str:
    """Human-readable text for a reference cell ("" when unset)."""
    if not value:
        return ""
    if render_type in ("ref_product", "ref_file") and value.startswith("["):
        ids = parse_gid_list(value)
        return ", ".join(titles_by_id.get(i, extract_id(i)) for i in ids)
    if render_type == "ref_metaobject":
        # model_info holds generated text, not a GID
        return value
    return titles_by_id.get(value, extract_id(value))


def build_grid_frame(products, store, columns, titles_by_id=None) -> pd.DataFrame:
    """One row per product with pending edits already applied."""
    titles_by_id = titles_by_id or {}
    rows = []
    for p in products:
        row = {
            "id": p.id,
            "title": p.title,
            "vendor": p.vendor,
            "product_type": p.product_type,
            "status": p.status,
        }
        for col in columns:
            value = store.get_effective_value(p, col.key)
            if col.render_type == "text":
                row[col.key] = value
            elif not applies_to(col, p):
                row[col.key] = None
            else:
                row[col.key] = reference_label(value, col.render_type, titles_by_id)
        rows.append(row)
    return pd.DataFrame(rows, columns=BASE_COLUMNS + [c.key for c in columns])


def apply_grid_edits(edited: pd.DataFrame, products_by_id, store, editable_fields) -> int:
    """Feed every editable cell of the edited frame into the store.

    Returns how many cells changed compared to what was shown.
    """
    if edited is None or edited.empty:
        return 0
    changed = 0
    for _, row in edited.iterrows():
        product = products_by_id.get(row["id"])
        if product is None:
            continue
        for field in editable_fields:
            if field not in row:
                continue
            new_value = _clean(row[field])
            if new_value != store.get_effective_value(product, field):
                changed += 1
            store.edit(product, field, new_value)
    return changed
